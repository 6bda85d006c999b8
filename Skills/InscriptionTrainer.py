import API
import os
import sys

"""
Inscription Trainer (Hidden)
Version: 1.1
Last Updated: 2026-10-18

Features:
- Crafts scrolls with a scribe pen (0x0FBF) from the crafting gump.
- Re-hides whenever you are revealed.
- Waits for mana regen below the threshold.
- Stops when the pen is gone or materials run out.
"""

SETTINGS = {}
DATA_KEY = "inscription_trainer_config"
DEBUG = False

_script_dir = os.path.dirname(__file__) if "__file__" in globals() else os.getcwd()
_util_dir = os.path.normpath(os.path.join(_script_dir, "..", "Utilities"))
if _util_dir and _util_dir not in sys.path:
    sys.path.insert(0, _util_dir)

try:
    import ActivityLoop
    import InscriptionActivity
except Exception as ex:
    API.SysMsg(f"[InscriptionTrainer][STARTUP] Shared modules not found in {_util_dir}: {ex}", 33)
    raise


def main():
    ActivityLoop.run_macro(
        API,
        "InscriptionTrainer",
        InscriptionActivity.InscriptionActivity,
        InscriptionActivity.InscriptionConfig,
        InscriptionActivity.DEFAULTS,
        DATA_KEY,
        settings=SETTINGS,
        debug=DEBUG,
        script_path=globals().get("__file__"),
    )


def _should_autostart_main():
    module_name = str(globals().get("__name__", ""))
    if module_name in ("__main__", "<module>"):
        return True
    return module_name.endswith("InscriptionTrainer")


if _should_autostart_main():
    main()
