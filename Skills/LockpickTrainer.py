import API
import os
import sys

"""
Lockpick Trainer (Paragon Chest)
Version: 1.1
Last Updated: 2026-10-18

Features:
- Lockpicks a paragon chest through the UO Sagas lockpicking gump (313384064).
- Closes the gump before every attempt and presses button 2 to pick.
- Waits for HP to recover when below the threshold (traps hurt).
- Swaps to the next lockpick when one breaks; stops when none are left.
- Simple gump with Start/Pause and Export Log controls.

Setup:
1) Carry lockpicks (0x14FD) in your backpack.
2) Stand next to a paragon chest: 0x9FF8 (copper/bronze/iron, 0-50 skill)
   or 0x9FF9 (shadow, 50-80 skill).
3) Press Start.
"""

SETTINGS = {
    # "hp_threshold": 75,
    # "chest_graphics": [0x9FF9],
}
DATA_KEY = "lockpick_trainer_config"
DEBUG = False

_script_dir = os.path.dirname(__file__) if "__file__" in globals() else os.getcwd()
_util_dir = os.path.normpath(os.path.join(_script_dir, "..", "Utilities"))
if _util_dir and _util_dir not in sys.path:
    sys.path.insert(0, _util_dir)

try:
    import ActivityLoop
    import LockpickActivity
except Exception as ex:
    API.SysMsg(f"[LockpickTrainer][STARTUP] Shared modules not found in {_util_dir}: {ex}", 33)
    raise


def main():
    ActivityLoop.run_macro(
        API,
        "LockpickTrainer",
        LockpickActivity.LockpickActivity,
        LockpickActivity.LockpickConfig,
        LockpickActivity.DEFAULTS,
        DATA_KEY,
        settings=SETTINGS,
        debug=DEBUG,
        script_path=globals().get("__file__"),
    )


def _should_autostart_main():
    module_name = str(globals().get("__name__", ""))
    if module_name in ("__main__", "<module>"):
        return True
    return module_name.endswith("LockpickTrainer")


if _should_autostart_main():
    main()
