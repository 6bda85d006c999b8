import API
import os
import sys

"""
Item Identification Trainer
Version: 1.1
Last Updated: 2026-10-18

Features:
- Finds a pouch, backpack, bag, wooden box or paragon chest on your tile.
- Opens it and identifies every non-container item inside.
- Retries an item until the journal stops saying "You are not certain".

Setup:
1) Drop the items into a pouch and stand on top of it.
2) Press Start. Raise container_range to reach containers further away.
"""

SETTINGS = {}
DATA_KEY = "item_id_trainer_config"
DEBUG = False

_script_dir = os.path.dirname(__file__) if "__file__" in globals() else os.getcwd()
_util_dir = os.path.normpath(os.path.join(_script_dir, "..", "Utilities"))
if _util_dir and _util_dir not in sys.path:
    sys.path.insert(0, _util_dir)

try:
    import ActivityLoop
    import ItemIdActivity
except Exception as ex:
    API.SysMsg(f"[ItemIdTrainer][STARTUP] Shared modules not found in {_util_dir}: {ex}", 33)
    raise


def main():
    ActivityLoop.run_macro(
        API,
        "ItemIdTrainer",
        ItemIdActivity.ItemIdActivity,
        ItemIdActivity.ItemIdConfig,
        ItemIdActivity.DEFAULTS,
        DATA_KEY,
        settings=SETTINGS,
        debug=DEBUG,
        script_path=globals().get("__file__"),
    )


def _should_autostart_main():
    module_name = str(globals().get("__name__", ""))
    if module_name in ("__main__", "<module>"):
        return True
    return module_name.endswith("ItemIdTrainer")


if _should_autostart_main():
    main()
