import MacroConfig
from ActivityLoop import (
    Activity,
    DIALOG_MISSING,
    JournalRule,
    MSG_NO_TOOL,
    MSG_REMEDIATED,
    OUT_OF_MATERIALS,
    READY,
    SUCCESS,
    StateRule,
    TOOL_BROKEN,
    UNKNOWN,
    acquire,
    wait_for,
)

"""
Inscription trainer: crafts scrolls with a scribe pen while staying hidden.
"""

DEFAULTS = {
    "scribe_pen_graphic": 0x0FBF,
    "gump_id": 2653346093,  # Scribe pen crafting menu (UOSagas).
    "gump_timeout_ms": 3000,
    "page_button": 21,  # Scroll to craft.
    "craft_button": 0,
    "mana_threshold": 50,
    "mana_wait_ms": 500,
    "hiding_delay_ms": 250,
    "craft_settle_ms": 1200,
    "retry_pause_ms": 500,
    "stay_hidden": True,
    "message_hue": 69,
}
InscriptionConfig = MacroConfig.config_type("InscriptionConfig", DEFAULTS)

WORN_OUT_TEXTS = [
    "You have worn out your tool!",
]
NO_MATERIAL_TEXTS = [
    "You do not have enough",
    "You don't have enough",
]

MESSAGES = {
    MSG_NO_TOOL: "No scribe pen found in backpack!",
    MSG_REMEDIATED: "Using another scribe pen.",
    "low_mana": "Low mana, waiting for regen...",
    "not_hidden": ("Player is not hidden", 22),
    "crafting": ("Crafting...", 10),
    DIALOG_MISSING: "{detail}",
    TOOL_BROKEN: "Scribe pen worn out!",
    OUT_OF_MATERIALS: "Out of materials, stopping.",
    SUCCESS: ("Craft attempt finished.", 10),
    UNKNOWN: "No crafting result seen, retrying.",
}


def is_hidden(api):
    return bool(getattr(api.Player, "IsHidden", False))


class InscriptionActivity(Activity):
    name = "InscriptionTrainer"
    messages = MESSAGES
    retarget_outcomes = ()
    fatal_outcomes = (OUT_OF_MATERIALS,)

    def __init__(self, config):
        Activity.__init__(self, config)
        self.hue = int(config.message_hue)
        self._rules = [
            JournalRule(TOOL_BROKEN, WORN_OUT_TEXTS),
            JournalRule(OUT_OF_MATERIALS, NO_MATERIAL_TEXTS),
            StateRule(SUCCESS, self._gump_reopened),
        ]

    def _gump_reopened(self, loop):
        return bool(loop.api.HasGump(self.config.gump_id))

    def rules(self, loop):
        return self._rules

    def find_pen(self, api):
        for item in api.ItemsInContainer(api.Backpack, True) or []:
            if int(getattr(item, "Graphic", 0) or 0) == int(self.config.scribe_pen_graphic):
                return item
        return None

    def before_cycle(self, loop):
        if not self.config.stay_hidden:
            return
        if is_hidden(loop.api):
            loop.log.debug("Hidden")
            return
        loop.feedback.emit("not_hidden")
        loop.api.UseSkill("Hiding")
        loop.pause(MacroConfig.ms(self.config.hiding_delay_ms))

    def check_precondition(self, loop):
        if int(loop.api.Player.Mana) < self.config.mana_threshold:
            return wait_for("low_mana", MacroConfig.ms(self.config.mana_wait_ms))
        if not self.find_pen(loop.api):
            return acquire()
        return READY

    def remediate(self, loop):
        # The precondition already searched nested bags, so the acquire path
        # is a plain re-check; after a worn-out pen this finds the next one.
        return self.find_pen(loop.api)

    def dispatch(self, loop):
        api = loop.api
        cfg = self.config
        timeout = MacroConfig.ms(cfg.gump_timeout_ms)
        pen = self.find_pen(api)
        if not pen:
            return TOOL_BROKEN
        api.UseObject(pen.Serial)
        if not api.WaitForGump(cfg.gump_id, timeout):
            loop.state.detail = "Failed to open crafting gump!"
            return DIALOG_MISSING
        api.ReplyGump(cfg.page_button, cfg.gump_id)
        if not api.WaitForGump(cfg.gump_id, timeout):
            loop.state.detail = "Failed to craft scroll!"
            return DIALOG_MISSING
        api.ReplyGump(cfg.craft_button, cfg.gump_id)
        loop.feedback.emit("crafting")
        return None

    def settle_seconds(self, loop):
        return MacroConfig.ms(self.config.craft_settle_ms)

    def on_outcome(self, loop, outcome):
        if outcome == DIALOG_MISSING:
            loop.pause(MacroConfig.ms(self.config.retry_pause_ms))
