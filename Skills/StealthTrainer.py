import API
import os
import sys

"""
Hiding/Stealth Trainer
Version: 1.1
Last Updated: 2026-10-18

Features:
- Uses Hiding when visible and Stealth (in place) when hidden.
- Overhead feedback for every attempt.
"""

SETTINGS = {}
DATA_KEY = "stealth_trainer_config"
DEBUG = False

_script_dir = os.path.dirname(__file__) if "__file__" in globals() else os.getcwd()
_util_dir = os.path.normpath(os.path.join(_script_dir, "..", "Utilities"))
if _util_dir and _util_dir not in sys.path:
    sys.path.insert(0, _util_dir)

try:
    import ActivityLoop
    import StealthActivity
except Exception as ex:
    API.SysMsg(f"[StealthTrainer][STARTUP] Shared modules not found in {_util_dir}: {ex}", 33)
    raise


def main():
    ActivityLoop.run_macro(
        API,
        "StealthTrainer",
        StealthActivity.StealthActivity,
        StealthActivity.StealthConfig,
        StealthActivity.DEFAULTS,
        DATA_KEY,
        settings=SETTINGS,
        debug=DEBUG,
        script_path=globals().get("__file__"),
    )


def _should_autostart_main():
    module_name = str(globals().get("__name__", ""))
    if module_name in ("__main__", "<module>"):
        return True
    return module_name.endswith("StealthTrainer")


if _should_autostart_main():
    main()
