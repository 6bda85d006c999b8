from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from ActivityLoop import (
    IDLE,
    MSG_NO_TOOL,
    MSG_REMEDIATED,
    NOTHING_FOUND,
    READY,
    SUCCESS,
    TARGET_FAILED,
    TERMINATE,
    TOOL_BROKEN,
    UNKNOWN,
    Activity,
    ActivityLoop,
    ControlGump,
    Feedback,
    JournalRule,
    StateRule,
    acquire,
    classify,
    fatal,
    journal_texts,
    wait_for,
)
from fakes import FakeApi, FakeItem


class ListJournal:
    def __init__(self, entries):
        self.entries = list(entries)

    def contains(self, text):
        return any(text in entry for entry in self.entries)

    def clear(self):
        self.entries = []


class ProbeActivity(Activity):
    name = "Probe"
    messages = {
        MSG_NO_TOOL: "No tool!",
        MSG_REMEDIATED: "New tool.",
        TOOL_BROKEN: "Broke!",
        SUCCESS: "Done.",
        UNKNOWN: "Huh?",
        "low": "Low {what}",
        "gone": "Gone",
    }

    def __init__(self, readiness=READY, tools=(), dispatch_result=None, journal_after=()):
        Activity.__init__(self, None)
        self.readiness = readiness
        self.tools = list(tools)
        self.dispatch_result = dispatch_result
        self.journal_after = list(journal_after)
        self.dispatched = 0
        self.remediate_calls = 0
        self.outcomes = []

    def rules(self, loop):
        return [
            JournalRule(TOOL_BROKEN, ["breaks"]),
            JournalRule(NOTHING_FOUND, ["nothing"]),
            JournalRule(SUCCESS, ["done"]),
        ]

    def check_precondition(self, loop):
        return self.readiness

    def remediate(self, loop):
        self.remediate_calls += 1
        return self.tools.pop(0) if self.tools else None

    def dispatch(self, loop):
        self.dispatched += 1
        loop.api.journal.extend(self.journal_after)
        return self.dispatch_result

    def settle_seconds(self, loop):
        return 0.5

    def on_outcome(self, loop, outcome):
        self.outcomes.append(outcome)


def _loop(activity, running=True):
    api = FakeApi()
    return api, ActivityLoop(api, activity, running=running)


def test_specific_signature_wins_over_generic() -> None:
    rules = [
        JournalRule(TOOL_BROKEN, ["fishing pole breaks"]),
        JournalRule(NOTHING_FOUND, ["fail to catch anything"]),
    ]
    journal = ListJournal(["You fail to catch anything.", "Your fishing pole breaks."])

    assert classify(journal, rules) == TOOL_BROKEN


def test_classify_defaults_to_unknown() -> None:
    assert classify(ListJournal(["Hello"]), [JournalRule(SUCCESS, ["done"])]) == UNKNOWN


def test_classify_is_idempotent_and_does_not_clear() -> None:
    api, loop = _loop(ProbeActivity())
    api.journal = ["it breaks", "nothing here"]

    first = loop.classify()
    second = loop.classify()

    assert first == second == TOOL_BROKEN
    assert api.journal == ["it breaks", "nothing here"]
    assert api.count("ClearJournal") == 0


def test_state_rule_uses_predicate() -> None:
    rules = [StateRule(SUCCESS, lambda loop: loop == "hidden")]
    assert classify(ListJournal([]), rules, loop="hidden") == SUCCESS
    assert classify(ListJournal([]), rules, loop="seen") == UNKNOWN


def test_journal_texts_skips_state_rules_and_duplicates() -> None:
    rules = [
        JournalRule(TOOL_BROKEN, ["a", "b"]),
        StateRule(SUCCESS, lambda loop: True),
        JournalRule(NOTHING_FOUND, ["b", "c"]),
    ]
    assert journal_texts(rules) == ["a", "b", "c"]


def test_success_cycle_returns_to_idle() -> None:
    activity = ProbeActivity(journal_after=["All done"])
    api, loop = _loop(activity)

    assert loop.run_cycle() == IDLE
    assert loop.state.outcome == SUCCESS
    assert "Done." in api.head_msgs
    assert activity.outcomes == [SUCCESS]


def test_stale_journal_is_cleared_before_dispatch() -> None:
    activity = ProbeActivity(journal_after=["done"])
    api, loop = _loop(activity)
    api.journal = ["old pole breaks"]

    loop.run_cycle()

    assert loop.state.outcome == SUCCESS


def test_depletion_remediates_exactly_once_and_continues() -> None:
    activity = ProbeActivity(tools=[FakeItem(5)], journal_after=["it breaks", "nothing"])
    api, loop = _loop(activity)
    loop.state.need_new_target = False

    assert loop.run_cycle() == IDLE
    assert loop.state.outcome == TOOL_BROKEN
    assert activity.remediate_calls == 1
    assert loop.state.remediations == 1
    assert loop.state.need_new_target is True
    assert api.head_msgs[-2:] == ["Broke!", "New tool."]


def test_depletion_without_replacement_terminates() -> None:
    activity = ProbeActivity(journal_after=["it breaks"])
    api, loop = _loop(activity)

    assert loop.run_cycle() == TERMINATE
    assert activity.remediate_calls == 1
    assert api.head_msgs[-1] == "No tool!"
    assert loop.state.fatal_reason


def test_consumable_absent_everywhere_terminates_after_one_attempt() -> None:
    activity = ProbeActivity(readiness=acquire())
    api, loop = _loop(activity)

    state = loop.run(max_cycles=10)

    assert state.state == TERMINATE
    assert activity.remediate_calls == 1
    assert activity.dispatched == 0
    assert "No tool!" in api.head_msgs


def test_acquire_success_dispatches_in_same_cycle() -> None:
    activity = ProbeActivity(readiness=acquire(), tools=[FakeItem(9)], journal_after=["done"])
    api, loop = _loop(activity)

    assert loop.run_cycle() == IDLE
    assert activity.dispatched == 1
    assert loop.state.tool.Serial == 9


def test_wait_remedy_skips_dispatch_and_sleeps() -> None:
    activity = ProbeActivity(readiness=wait_for("low", 5.0, what="mana"))
    api, loop = _loop(activity)

    assert loop.run_cycle() == IDLE
    assert activity.dispatched == 0
    assert api.pauses == [5.0]
    assert api.head_msgs == ["Low mana"]


def test_fatal_precondition_stops_without_remediation() -> None:
    activity = ProbeActivity(readiness=fatal("gone"))
    api, loop = _loop(activity)

    assert loop.run_cycle() == TERMINATE
    assert activity.remediate_calls == 0
    assert api.head_msgs == ["Gone"]


def test_unknown_outcome_notifies_and_continues() -> None:
    activity = ProbeActivity(journal_after=["something odd"])
    api, loop = _loop(activity)

    assert loop.run_cycle() == IDLE
    assert loop.state.outcome == UNKNOWN
    assert "Huh?" in api.head_msgs


def test_dispatch_failure_skips_settle_and_forces_new_target() -> None:
    activity = ProbeActivity(dispatch_result=TARGET_FAILED)
    api, loop = _loop(activity)
    loop.state.need_new_target = False

    assert loop.run_cycle() == IDLE
    assert loop.state.outcome == TARGET_FAILED
    assert loop.state.need_new_target is True
    assert api.pauses == []


def test_need_new_target_starts_true() -> None:
    _, loop = _loop(ProbeActivity())
    assert loop.state.need_new_target is True


def test_settle_returns_early_on_result_text() -> None:
    api, loop = _loop(ProbeActivity())
    api.journal = ["done"]

    assert loop.settle(5.0, ["done"]) is True
    assert api.pauses == []


def test_settle_without_texts_is_fixed_wait() -> None:
    api, loop = _loop(ProbeActivity())

    assert loop.settle(2.0) is False
    assert api.pauses == [2.0]


def test_settle_polls_until_timeout() -> None:
    api, loop = _loop(ProbeActivity())

    assert loop.settle(0.3, ["never"]) is False
    assert api.slept == pytest.approx(0.3)


def test_paused_loop_idles_without_dispatch() -> None:
    activity = ProbeActivity(journal_after=["done"])
    api, loop = _loop(activity, running=False)

    assert loop.run_cycle() == IDLE
    assert activity.dispatched == 0
    assert api.pauses == [0.2]


def test_run_stops_after_max_cycles() -> None:
    activity = ProbeActivity(journal_after=["done"])
    api, loop = _loop(activity)

    state = loop.run(max_cycles=3)

    assert state.state == IDLE
    assert state.cycles == 3
    assert activity.dispatched == 3


def test_feedback_renders_hue_pairs_and_missing_fields() -> None:
    api = FakeApi()
    feedback = Feedback(api, {"a": ("Hi {name}{rest}", 22), "b": "Plain"}, overhead=False)

    assert feedback.render("a", name="Bo") == ("Hi Bo", 22)
    assert feedback.emit("b") == "Plain"
    assert feedback.emit("missing") is None
    assert feedback.emit(None) is None
    assert api.sys_msgs == ["Plain"]
    assert api.head_msgs == []


def test_control_gump_toggles_running() -> None:
    api = MagicMock()
    loop = ActivityLoop(api, ProbeActivity(), running=False)
    gump = ControlGump(api, loop, export_path="probe.txt")

    first = gump.build()
    clicks = [c.args[1] for c in api.AddControlOnClick.call_args_list]
    clicks[0]()

    assert loop.running is True
    assert len(clicks) == 2
    first.Dispose.assert_called_once()
    api.CreateSimpleButton.assert_any_call("Pause", 80, 20)
