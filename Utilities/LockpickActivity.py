import MacroConfig
from ActivityLoop import (
    Activity,
    DIALOG_MISSING,
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
    fatal,
    wait_for,
)

"""
Lockpicking trainer for paragon chests (UO Sagas lockpicking gump).

Chest graphics by skill:
- 0x9FF8 copper/bronze/iron, facing right (0-50 skill).
- 0x9FF9 shadow, facing left (50-80 skill).
"""

DEFAULTS = {
    "lockpick_graphic": 0x14FD,
    "chest_graphics": [0x9FF8, 0x9FF9],
    "gump_id": 313384064,
    "close_button": 0,
    "lockpick_button": 2,
    "hp_threshold": 75,  # Traps hurt; wait below this.
    "hp_check_pause_ms": 5000,
    "close_pause_ms": 500,
    "target_timeout_ms": 1000,
    "gump_timeout_ms": 1000,
    "pause_after_gump_ms": 1000,
    "retry_pause_ms": 1000,
    "message_hue": 69,
}
LockpickConfig = MacroConfig.config_type("LockpickConfig", DEFAULTS)

RULES = [
    JournalRule(TOOL_BROKEN, ["You broke the lockpick."]),
    JournalRule(OUT_OF_RANGE, ["That is too far away"]),
    JournalRule(NOT_VISIBLE, ["You cannot see that"]),
    JournalRule(NOTHING_FOUND, ["You are unable to pick the lock."]),
    JournalRule(SUCCESS, ["The lock quickly yields to your skill."]),
]

MESSAGES = {
    MSG_NO_TOOL: "No lockpick",
    MSG_REMEDIATED: "Found another lockpick.",
    "low_hp": "HP too low ({hits}/{max_hits}); waiting to recover",
    "no_chest": "No paragon chest",
    TARGET_FAILED: "Failed to target chest: {detail}",
    DIALOG_MISSING: "Gump not found for chest: {detail}",
    TOOL_BROKEN: "Lockpick broke!",
    OUT_OF_RANGE: "Chest too far away.",
    NOT_VISIBLE: "Can't see the chest.",
    NOTHING_FOUND: "Failed to pick the lock.",
    SUCCESS: "Lock picked.",
    UNKNOWN: "Lockpicking error, Retry!",
}


class LockpickActivity(Activity):
    name = "LockpickTrainer"
    messages = MESSAGES

    def __init__(self, config):
        Activity.__init__(self, config)
        self.hue = int(config.message_hue)

    def rules(self, loop):
        return RULES

    def find_lockpick(self, api):
        # Look through nested bags as well.
        for item in api.ItemsInContainer(api.Backpack, True) or []:
            if int(getattr(item, "Graphic", 0) or 0) == int(self.config.lockpick_graphic):
                return item
        return None

    def find_chest(self, api):
        # First chest found, trying each facing.
        for graphic in self.config.chest_graphics:
            chest = api.FindType(graphic)
            if chest:
                return chest
        return None

    def before_cycle(self, loop):
        # Close a leftover gump so each attempt starts fresh.
        gump_id = self.config.gump_id
        if loop.api.HasGump(gump_id):
            loop.api.ReplyGump(self.config.close_button, gump_id)
        loop.pause(MacroConfig.ms(self.config.close_pause_ms))

    def check_precondition(self, loop):
        api = loop.api
        hits = int(api.Player.Hits)
        if hits < self.config.hp_threshold:
            return wait_for(
                "low_hp",
                MacroConfig.ms(self.config.hp_check_pause_ms),
                hits=hits,
                max_hits=int(api.Player.HitsMax),
            )
        # Chest first: an acquired lockpick goes straight to dispatch.
        if not self.find_chest(api):
            return fatal("no_chest")
        if not self.find_lockpick(api):
            return acquire()
        return READY

    def remediate(self, loop):
        # Same search as the precondition; on the acquire path this is a re-check.
        return self.find_lockpick(loop.api)

    def dispatch(self, loop):
        api = loop.api
        cfg = self.config
        lockpick = self.find_lockpick(api)
        if not lockpick and loop.state.tool:
            lockpick = api.FindItem(loop.state.tool.Serial)
        if not lockpick:
            return TOOL_BROKEN
        chest = self.find_chest(api)
        if not chest:
            return TARGET_FAILED
        loop.state.detail = f"0x{int(chest.Serial):08X}"
        loop.log.debug(f"Picking paragon chest: {loop.state.detail} (Graphic ID: 0x{int(chest.Graphic):04X})")

        api.UseObject(lockpick.Serial)
        if not api.WaitForTarget("any", MacroConfig.ms(cfg.target_timeout_ms)):
            return TARGET_FAILED
        api.Target(chest.Serial)

        if not api.WaitForGump(cfg.gump_id, MacroConfig.ms(cfg.gump_timeout_ms)):
            return DIALOG_MISSING
        api.ReplyGump(cfg.lockpick_button, cfg.gump_id)
        loop.log.debug(f"Pressed lockpick button on chest: {loop.state.detail}", phase="GUMP")

        # The server answers with two gump refreshes.
        for label in ("First", "Second"):
            if not api.WaitForGump(cfg.gump_id, MacroConfig.ms(cfg.gump_timeout_ms)):
                loop.log.debug(f"{label} gump update not received for chest: {loop.state.detail}", phase="GUMP")
        return None

    def settle_seconds(self, loop):
        return MacroConfig.ms(self.config.pause_after_gump_ms)

    def on_outcome(self, loop, outcome):
        if outcome in (TARGET_FAILED, DIALOG_MISSING):
            loop.pause(MacroConfig.ms(self.config.retry_pause_ms))
