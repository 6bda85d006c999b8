import MacroConfig
from ActivityLoop import (
    Activity,
    JournalRule,
    MSG_NO_TOOL,
    MSG_REMEDIATED,
    NOTHING_FOUND,
    NOT_VISIBLE,
    OUT_OF_RANGE,
    READY,
    SUCCESS,
    TARGET_FAILED,
    TOOL_BROKEN,
    UNKNOWN,
    acquire,
)

"""
Fishing activity: cast an equipped pole at a remembered water tile, re-equip
from the backpack when the pole breaks, and sail forward when nothing bites.
"""

DEFAULTS = {
    "pole_graphic": 0x0DC0,  # Fishing pole.
    "fishing_delay_ms": 8000,  # Settle time after a cast (7000-10000 depending on shard).
    "target_timeout_ms": 1000,  # Wait for the cast cursor.
    "manual_target_ms": 10000,  # Time the operator gets to click water.
    "equip_delay_ms": 1000,
    "boat_move_ms": 5000,  # Sail time when no fish are biting.
    "retry_pause_ms": 1000,
    "move_boat": True,
    "message_hue": 69,  # Orange.
}
FishingConfig = MacroConfig.config_type("FishingConfig", DEFAULTS)

POLE_NAME = "fishing pole"
HAND_LAYERS = ["RightHand", "LeftHand", "OneHanded", "TwoHanded"]

# Order matters: a break message wins over a miss in the same journal.
POLE_BROKEN_TEXTS = [
    "fishing pole breaks",
    "broke your fishing pole",
    "You have worn out your tool!",
]
NO_FISH_TEXTS = [
    "fail to catch anything",
]
TOO_FAR_TEXTS = [
    "That is too far away",
]
CANNOT_SEE_TEXTS = [
    "You cannot see that",
]
CATCH_TEXTS = [
    "You pull out",
    "You fish up",
]

RULES = [
    JournalRule(TOOL_BROKEN, POLE_BROKEN_TEXTS),
    JournalRule(NOTHING_FOUND, NO_FISH_TEXTS),
    JournalRule(OUT_OF_RANGE, TOO_FAR_TEXTS),
    JournalRule(NOT_VISIBLE, CANNOT_SEE_TEXTS),
    JournalRule(SUCCESS, CATCH_TEXTS),
]

MESSAGES = {
    MSG_NO_TOOL: "No fishing pole found!",
    MSG_REMEDIATED: "Equipped new fishing pole.",
    "select_water": "Select water to fish!",
    TARGET_FAILED: "Failed to target water!",
    TOOL_BROKEN: "Fishing pole broke!",
    NOTHING_FOUND: "No fish here, moving boat!",
    OUT_OF_RANGE: "Water too far away, select again!",
    NOT_VISIBLE: "Can't see that water, select again!",
    SUCCESS: "Caught something.",
    UNKNOWN: "Fishing error, Retry!",
}


def is_fishing_pole(item, pole_graphic):
    if not item:
        return False
    name = str(getattr(item, "Name", "") or "").lower()
    if POLE_NAME in name:
        return True
    return int(getattr(item, "Graphic", 0) or 0) == int(pole_graphic)


def _target_pos(api):
    # (x, y, z) of the last targeted location, or None when unset.
    pos = getattr(api, "LastTargetPos", None)
    if pos is None:
        return None
    x = int(getattr(pos, "X", 0) or 0)
    y = int(getattr(pos, "Y", 0) or 0)
    z = int(getattr(pos, "Z", 0) or 0)
    if x == 0 and y == 0:
        return None
    return (x, y, z)


class FishingActivity(Activity):
    name = "AutoFisher"
    messages = MESSAGES
    retarget_outcomes = (NOTHING_FOUND, OUT_OF_RANGE, NOT_VISIBLE, TARGET_FAILED)

    def __init__(self, config):
        Activity.__init__(self, config)
        self.hue = int(config.message_hue)
        self.water = None  # (x, y, z, graphic) picked by the operator.

    def rules(self, loop):
        return RULES

    def equipped_pole(self, api):
        # Pole held in either hand, or None.
        for layer in HAND_LAYERS:
            try:
                item = api.FindLayer(layer)
            except Exception:
                item = None
            if is_fishing_pole(item, self.config.pole_graphic):
                return item
        return None

    def backpack_pole(self, api):
        for item in api.ItemsInContainer(api.Backpack, True) or []:
            if is_fishing_pole(item, self.config.pole_graphic):
                return item
        return None

    def check_precondition(self, loop):
        if self.equipped_pole(loop.api):
            return READY
        return acquire()

    def remediate(self, loop):
        pole = self.backpack_pole(loop.api)
        if not pole:
            return None
        loop.api.EquipItem(pole.Serial)
        loop.pause(MacroConfig.ms(self.config.equip_delay_ms))
        return self.equipped_pole(loop.api)

    def _await_operator_target(self, loop):
        # Wait for the operator to click water, then remember the tile.
        api = loop.api
        before = _target_pos(api)
        waited = 0.0
        limit = MacroConfig.ms(self.config.manual_target_ms)
        while api.HasTarget() and waited < limit:
            loop.pause(0.1)
            waited += 0.1
        if api.HasTarget():
            api.CancelTarget()
            loop.log.warn("No water selected before timeout.", phase="TARGET")
            return False
        pos = _target_pos(api)
        if pos is None or pos == before:
            # Cursor closed without a new click (ESC).
            loop.log.warn("Water selection cancelled; will ask again.", phase="TARGET")
            return False
        x, y, z = pos
        tile = api.GetTile(x, y)
        graphic = int(getattr(tile, "Graphic", 0) or 0) if tile else 0
        self.water = (x, y, z, graphic)
        loop.log.info(f"Fishing spot set: {x},{y},{z} graphic=0x{graphic:04X}", phase="TARGET")
        return True

    def dispatch(self, loop):
        api = loop.api
        pole = self.equipped_pole(api)
        if not pole:
            return TOOL_BROKEN
        api.UseObject(pole.Serial)
        if not api.WaitForTarget("any", MacroConfig.ms(self.config.target_timeout_ms)):
            return TARGET_FAILED
        if loop.state.need_new_target or not self.water:
            loop.feedback.emit("select_water")
            if not self._await_operator_target(loop):
                return TARGET_FAILED
            loop.state.need_new_target = False
            return None
        x, y, z, graphic = self.water
        api.Target(x, y, z, graphic)
        return None

    def settle_seconds(self, loop):
        return MacroConfig.ms(self.config.fishing_delay_ms)

    def _move_boat(self, loop):
        if not self.config.move_boat:
            return
        loop.api.Msg("forward")
        loop.pause(MacroConfig.ms(self.config.boat_move_ms))
        loop.api.Msg("stop")

    def on_outcome(self, loop, outcome):
        if outcome == NOTHING_FOUND:
            self._move_boat(loop)
        elif outcome == TARGET_FAILED:
            loop.pause(MacroConfig.ms(self.config.retry_pause_ms))
