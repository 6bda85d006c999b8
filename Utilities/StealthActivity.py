import MacroConfig
from ActivityLoop import Activity, NOT_HIDDEN, SUCCESS, StateRule

"""
Hiding/Stealth trainer: hide when visible, stealth in place when hidden.
"""

DEFAULTS = {
    "hiding_delay_ms": 250,
    "stealth_delay_ms": 250,
    "failure_pause_ms": 500,
    "message_hue": 69,
}
StealthConfig = MacroConfig.config_type("StealthConfig", DEFAULTS)

HIDING = "Hiding"
STEALTH = "Stealth"

MESSAGES = {
    "hiding": ("Attempting to hide...", 22),
    "stealth": ("Using Stealth...", 10),
    SUCCESS: "Hidden",
    NOT_HIDDEN: "Not hidden, trying again.",
}


def _hidden(loop):
    return bool(getattr(loop.api.Player, "IsHidden", False))


RULES = [
    StateRule(SUCCESS, _hidden),
    StateRule(NOT_HIDDEN, lambda loop: not _hidden(loop)),
]


class StealthActivity(Activity):
    name = "StealthTrainer"
    messages = MESSAGES
    retarget_outcomes = ()
    depleted_outcomes = ()

    def __init__(self, config):
        Activity.__init__(self, config)
        self.hue = int(config.message_hue)
        self.last_skill = None

    def rules(self, loop):
        return RULES

    def dispatch(self, loop):
        if _hidden(loop):
            loop.feedback.emit("stealth")
            self.last_skill = STEALTH
        else:
            loop.feedback.emit("hiding")
            self.last_skill = HIDING
        loop.api.UseSkill(self.last_skill)
        return None

    def settle_seconds(self, loop):
        if self.last_skill == STEALTH:
            return MacroConfig.ms(self.config.stealth_delay_ms)
        return MacroConfig.ms(self.config.hiding_delay_ms)

    def on_outcome(self, loop, outcome):
        # Revealed by a stealth attempt: back off before hiding again.
        if outcome == NOT_HIDDEN and self.last_skill == STEALTH:
            loop.pause(MacroConfig.ms(self.config.failure_pause_ms))
