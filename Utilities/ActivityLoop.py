import os

import MacroConfig
from MacroLog import MacroLog, report_startup_exception, script_dir

"""
ActivityLoop

Shared polling loop for the activity macros.

Every macro repeats the same cycle:
    Idle -> CheckPrecondition -> Dispatch -> AwaitSettle -> Classify -> React -> (Idle | Terminate)

An Activity subclass supplies the game-specific parts (what to check, which
action to send, which journal texts mean what). The loop owns sequencing,
journal clearing, remediation and operator feedback.
"""

# Loop states.
IDLE = "Idle"
CHECK_PRECONDITION = "CheckPrecondition"
DISPATCH = "Dispatch"
AWAIT_SETTLE = "AwaitSettle"
CLASSIFY = "Classify"
REACT = "React"
TERMINATE = "Terminate"

# Outcome names.
SUCCESS = "Success"
TOOL_BROKEN = "ToolBroken"
NOTHING_FOUND = "NothingFound"
OUT_OF_RANGE = "OutOfRange"
NOT_VISIBLE = "NotVisible"
TARGET_FAILED = "TargetFailed"
DIALOG_MISSING = "DialogMissing"
OUT_OF_MATERIALS = "OutOfMaterials"
NOT_CERTAIN = "NotCertain"
NOT_HIDDEN = "NotHidden"
UNKNOWN = "Unknown"

# Precondition remedies.
REMEDY_ACQUIRE = "acquire"
REMEDY_WAIT = "wait"

# Feedback keys used by the loop itself.
MSG_REMEDIATED = "remediated"
MSG_NO_TOOL = "no_tool"

SETTLE_POLL_S = 0.1
PAUSED_IDLE_S = 0.2
DEFAULT_HUE = 69


# === JOURNAL RULES ===

class JournalRule:
    # Matches when any of its texts is in the journal.
    def __init__(self, outcome, texts):
        self.outcome = outcome
        self.texts = tuple(texts)

    def matches(self, journal, loop=None):
        for text in self.texts:
            if journal.contains(text):
                return True
        return False


class StateRule:
    # Matches when predicate(loop) is true; used for host state flags.
    def __init__(self, outcome, predicate):
        self.outcome = outcome
        self.predicate = predicate

    def matches(self, journal, loop=None):
        return bool(self.predicate(loop))


def classify(journal, rules, loop=None, default=UNKNOWN):
    """Return the outcome of the first matching rule.

    Rules are evaluated in list order, so specific signatures must be listed
    before generic ones. The journal is only read, never cleared.
    """
    for rule in rules:
        if rule.matches(journal, loop):
            return rule.outcome
    return default


def journal_texts(rules):
    texts = []
    for rule in rules:
        for text in getattr(rule, "texts", ()):
            if text not in texts:
                texts.append(text)
    return texts


class HostJournal:
    # Journal view over the host API.
    def __init__(self, api):
        self.api = api

    def contains(self, text):
        return bool(self.api.InJournal(text))

    def clear(self):
        self.api.ClearJournal()


# === PRECONDITIONS ===

class Readiness:
    """Result of a precondition check.

    Attributes:
        ready: True when the cycle may dispatch its action.
        remedy: REMEDY_ACQUIRE, REMEDY_WAIT, or None for a fatal condition.
        key: Feedback key shown when not ready.
        wait_s: Recovery pause for REMEDY_WAIT.
        fields: Values substituted into the feedback template.
    """

    def __init__(self, ready, remedy=None, key=None, wait_s=0.0, fields=None):
        self.ready = bool(ready)
        self.remedy = remedy
        self.key = key
        self.wait_s = float(wait_s)
        self.fields = dict(fields or {})

    def __repr__(self):
        return f"Readiness(ready={self.ready}, remedy={self.remedy!r}, key={self.key!r})"


READY = Readiness(True)


def wait_for(key, wait_s, **fields):
    return Readiness(False, REMEDY_WAIT, key, wait_s, fields)


def acquire(key=None, **fields):
    return Readiness(False, REMEDY_ACQUIRE, key, 0.0, fields)


def fatal(key, **fields):
    return Readiness(False, None, key, 0.0, fields)


# === FEEDBACK ===

class _Fields(dict):
    def __missing__(self, key):
        return ""


class Feedback:
    """Operator-only status text for outcomes and precondition failures.

    Message values are either a template string or a (template, hue) pair.
    Keys without a message are silent.
    """

    def __init__(self, api, messages, hue=DEFAULT_HUE, log=None, overhead=True):
        self.api = api
        self.messages = dict(messages or {})
        self.hue = int(hue)
        self.log = log
        self.overhead = bool(overhead)

    def render(self, key, **fields):
        entry = self.messages.get(key)
        if entry is None:
            return None, self.hue
        hue = self.hue
        if isinstance(entry, tuple):
            entry, hue = entry
        return str(entry).format_map(_Fields(fields)), int(hue)

    def emit(self, key, **fields):
        if key is None:
            return None
        text, hue = self.render(key, **fields)
        if text is None:
            return None
        if self.overhead:
            self.api.HeadMsg(text, self.api.Player, hue)
        else:
            self.api.SysMsg(text, hue)
        if self.log:
            self.log.debug(text, phase="FEEDBACK")
        return text


# === ACTIVITY ===

class Activity:
    """Game-specific half of a macro.

    Subclasses override the hooks they need. Hooks receive the running
    ActivityLoop so they can reach the host API, pause, and emit feedback.
    """

    name = "Activity"
    messages = {}
    retarget_outcomes = (OUT_OF_RANGE, NOT_VISIBLE, TARGET_FAILED)
    depleted_outcomes = (TOOL_BROKEN,)
    fatal_outcomes = ()
    default_outcome = UNKNOWN
    hue = DEFAULT_HUE

    def __init__(self, config):
        self.config = config

    def rules(self, loop):
        return []

    def before_cycle(self, loop):
        pass

    def check_precondition(self, loop):
        return READY

    def remediate(self, loop):
        # Return the re-acquired tool, or None when nothing is left.
        return None

    def dispatch(self, loop):
        # Send the cycle's action; return an outcome name if it could not be sent.
        return None

    def settle_seconds(self, loop):
        return 1.0

    def on_outcome(self, loop, outcome):
        pass


class LoopState:
    # Cross-iteration state for one run.
    def __init__(self):
        self.state = IDLE
        self.need_new_target = True
        self.outcome = None
        self.detail = ""
        self.tool = None
        self.cycles = 0
        self.remediations = 0
        self.fatal_reason = ""


# === LOOP CONTROLLER ===

class ActivityLoop:
    def __init__(self, api, activity, log=None, feedback=None, journal=None, running=True):
        self.api = api
        self.activity = activity
        self.log = log or MacroLog(api, activity.name)
        self.feedback = feedback or Feedback(api, activity.messages, hue=activity.hue, log=self.log)
        self.journal = journal or HostJournal(api)
        self.state = LoopState()
        self.running = bool(running)
        self._handlers = {
            IDLE: self._idle,
            CHECK_PRECONDITION: self._check_precondition,
            DISPATCH: self._dispatch,
            AWAIT_SETTLE: self._await_settle,
            CLASSIFY: self._classify,
            REACT: self._react,
        }

    # --- waits ---

    def pause(self, seconds):
        # Blocking wait that still services gump callbacks.
        self.api.ProcessCallbacks()
        if seconds > 0:
            self.api.Pause(seconds)

    def settle(self, seconds, texts=()):
        """Wait for the host to finish processing the last action.

        Returns early (True) once any of texts shows in the journal; with no
        texts this is a plain fixed wait.
        """
        if not texts:
            self.pause(seconds)
            return False
        elapsed = 0.0
        while elapsed < seconds:
            if self._journal_has_any(texts):
                return True
            step = min(SETTLE_POLL_S, seconds - elapsed)
            self.pause(step)
            elapsed += step
        return self._journal_has_any(texts)

    def _journal_has_any(self, texts):
        for text in texts:
            if self.journal.contains(text):
                return True
        return False

    # --- control ---

    def toggle_running(self):
        self.running = not self.running
        self.log.info(f"{self.activity.name}: {'ON' if self.running else 'OFF'}")
        return self.running

    def classify(self):
        return classify(self.journal, self.activity.rules(self), loop=self, default=self.activity.default_outcome)

    def remediate(self):
        """Make one attempt to re-acquire the tool or consumable.

        Any remediation forces a fresh manual target on the next cycle.
        Returns False after emitting the fatal message when nothing is left.
        """
        self.state.remediations += 1
        self.state.need_new_target = True
        tool = self.activity.remediate(self)
        if tool:
            self.state.tool = tool
            self.feedback.emit(MSG_REMEDIATED)
            self.log.info(f"Re-acquired tool 0x{int(getattr(tool, 'Serial', 0) or 0):08X}.", phase="TOOL")
            return True
        self.stop(MSG_NO_TOOL, "required consumable unavailable")
        return False

    def stop(self, key, reason, **fields):
        self.state.fatal_reason = reason
        self.feedback.emit(key, **fields)
        self.log.error(f"Stopping: {reason}")
        return TERMINATE

    def step(self):
        handler = self._handlers[self.state.state]
        self.state.state = handler()
        return self.state.state

    def run_cycle(self):
        # Advance from Idle until the loop is back in Idle or terminated.
        self.step()
        while self.state.state not in (IDLE, TERMINATE):
            self.step()
        return self.state.state

    def run(self, max_cycles=None):
        self.journal.clear()
        self.log.info(f"{self.activity.name} loop started.")
        cycles = 0
        while self.state.state != TERMINATE:
            self.run_cycle()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
        if self.state.state == TERMINATE:
            self.log.info(f"{self.activity.name} stopped.")
        return self.state

    # --- state handlers ---

    def _idle(self):
        if not self.running:
            self.pause(PAUSED_IDLE_S)
            return IDLE
        self.state.cycles += 1
        self.state.outcome = None
        self.state.detail = ""
        self.activity.before_cycle(self)
        return CHECK_PRECONDITION

    def _check_precondition(self):
        readiness = self.activity.check_precondition(self)
        if readiness.ready:
            return DISPATCH
        if readiness.remedy == REMEDY_WAIT:
            self.feedback.emit(readiness.key, **readiness.fields)
            self.pause(readiness.wait_s)
            return IDLE
        if readiness.remedy == REMEDY_ACQUIRE:
            self.feedback.emit(readiness.key, **readiness.fields)
            if self.remediate():
                return DISPATCH
            return TERMINATE
        return self.stop(readiness.key, readiness.key or "precondition failed", **readiness.fields)

    def _dispatch(self):
        self.journal.clear()
        failure = self.activity.dispatch(self)
        if failure:
            self.state.outcome = failure
            return REACT
        return AWAIT_SETTLE

    def _await_settle(self):
        texts = journal_texts(self.activity.rules(self))
        self.settle(self.activity.settle_seconds(self), texts)
        return CLASSIFY

    def _classify(self):
        self.state.outcome = self.classify()
        self.log.debug(f"Outcome: {self.state.outcome}", phase="CLASSIFY")
        return REACT

    def _react(self):
        outcome = self.state.outcome
        activity = self.activity
        self.feedback.emit(outcome, detail=self.state.detail)
        if outcome in activity.fatal_outcomes:
            return self.stop(None, outcome)
        if outcome in activity.depleted_outcomes:
            self.journal.clear()
            if not self.remediate():
                return TERMINATE
            activity.on_outcome(self, outcome)
            return IDLE
        if outcome in activity.retarget_outcomes:
            self.state.need_new_target = True
        if outcome != SUCCESS:
            self.journal.clear()
        activity.on_outcome(self, outcome)
        return IDLE


# === CONTROL GUMP ===

class ControlGump:
    """Small Start/Pause gump in the style of the other Legion scripts."""

    def __init__(self, api, loop, title=None, x=200, y=200, export_path=None):
        self.api = api
        self.loop = loop
        self.title = title or loop.activity.name
        self.x = int(x)
        self.y = int(y)
        self.w = 220
        self.h = 90
        self.export_path = export_path
        self.gump = None

    def _toggle(self):
        self.loop.toggle_running()
        self.build()

    def _export(self):
        if self.export_path:
            self.loop.log.export(self.export_path)

    def build(self):
        if self.gump:
            self.gump.Dispose()
            self.gump = None

        g = self.api.CreateGump(True, True, False)
        g.SetRect(self.x, self.y, self.w, self.h)
        bg = self.api.CreateGumpColorBox(0.7, "#1B1B1B")
        bg.SetRect(0, 0, self.w, self.h)
        g.Add(bg)

        title = self.api.CreateGumpTTFLabel(self.title, 14, "#FFFFFF", "alagard", "center", self.w)
        title.SetPos(0, 6)
        g.Add(title)

        button = self.api.CreateSimpleButton("Pause" if self.loop.running else "Start", 80, 20)
        button.SetPos(20, 40)
        g.Add(button)
        self.api.AddControlOnClick(button, self._toggle)

        if self.export_path:
            export = self.api.CreateSimpleButton("Export Log", 80, 20)
            export.SetPos(120, 40)
            g.Add(export)
            self.api.AddControlOnClick(export, self._export)

        self.api.AddGump(g)
        self.gump = g
        return g


# === LAUNCHER ===

def run_macro(api, script_name, activity_cls, config_type, defaults, data_key,
              settings=None, debug=False, script_path=None, autostart=False):
    """Start one macro the way every script does it.

    Args:
        api: Host API module.
        script_name: Name used for messages and log files.
        activity_cls: Activity subclass taking the config record.
        config_type: namedtuple type for the activity's settings.
        defaults: Default settings.
        data_key: Persistent-variable key holding saved settings.
        settings: Overrides from the script; saved for the character.
        debug: Show debug diagnostics in the client.
        script_path: The script's __file__, used to place log files.
        autostart: Begin running without pressing Start.

    Returns:
        LoopState: Final loop state once the macro terminates.
    """
    base = script_dir(script_path)
    startup_step = "create log"
    try:
        log = MacroLog(api, script_name, debug, os.path.join(base, f"{script_name}Debug.log") if debug else None)
        startup_step = "load config"
        config = MacroConfig.load_config(api, data_key, config_type, defaults, settings, log)
        if settings:
            MacroConfig.save_config(api, data_key, config)
        startup_step = "build loop"
        activity = activity_cls(config)
        loop = ActivityLoop(api, activity, log=log, running=autostart)
        startup_step = "build control gump"
        ControlGump(api, loop, title=script_name, export_path=os.path.join(base, f"{script_name}Log.txt")).build()
    except Exception as ex:
        report_startup_exception(api, script_name, startup_step, ex, base)
        raise

    if not autostart:
        log.info(f"{script_name} loaded. Press Start to begin.")
    return loop.run()
