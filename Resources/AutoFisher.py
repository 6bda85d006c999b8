import API
import os
import sys

"""
AutoFisher
Version: 1.1
Last Updated: 2026-10-18

Features:
- Fishes with an equipped fishing pole (0x0DC0) at the water tile you pick.
- Equips a new pole from the backpack when none is held or the pole breaks.
- Sails the boat forward for a few seconds when nothing is biting.
- Overhead status messages visible only to you.
- Simple gump with Start/Pause and Export Log controls.

Setup:
1) Carry fishing poles in your backpack and stand on a boat.
2) Press Start, then click a water tile when asked.
3) The script re-asks for water after boat moves, pole swaps, or range errors.
"""

# Overrides for FishingActivity.DEFAULTS (saved per character when set).
SETTINGS = {
    # "fishing_delay_ms": 9000,
    # "move_boat": False,
}
DATA_KEY = "auto_fisher_config"
DEBUG = False

_script_dir = os.path.dirname(__file__) if "__file__" in globals() else os.getcwd()
_util_dir = os.path.normpath(os.path.join(_script_dir, "..", "Utilities"))
if _util_dir and _util_dir not in sys.path:
    sys.path.insert(0, _util_dir)

try:
    import ActivityLoop
    import FishingActivity
except Exception as ex:
    API.SysMsg(f"[AutoFisher][STARTUP] Shared modules not found in {_util_dir}: {ex}", 33)
    raise


def main():
    ActivityLoop.run_macro(
        API,
        "AutoFisher",
        FishingActivity.FishingActivity,
        FishingActivity.FishingConfig,
        FishingActivity.DEFAULTS,
        DATA_KEY,
        settings=SETTINGS,
        debug=DEBUG,
        script_path=globals().get("__file__"),
    )


def _should_autostart_main():
    module_name = str(globals().get("__name__", ""))
    if module_name in ("__main__", "<module>"):
        return True
    return module_name.endswith("AutoFisher")


if _should_autostart_main():
    main()
