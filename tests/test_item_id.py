from __future__ import annotations

import MacroConfig
from ActivityLoop import IDLE, NOT_CERTAIN, SUCCESS, TARGET_FAILED, ActivityLoop
from fakes import FakeApi, FakeItem
from ItemIdActivity import DEFAULTS, ItemIdActivity, ItemIdConfig

POUCH = 0x6000


def _trainer(contents=(), x=1000, y=1000, **overrides):
    api = FakeApi()
    api.ground.append(FakeItem(POUCH, 0x0E79, "pouch", root=0, is_container=True, x=x, y=y))
    for item in contents:
        api.add_item(item)
    config = MacroConfig.load_config(api, "", ItemIdConfig, DEFAULTS, overrides)
    return api, ActivityLoop(api, ItemIdActivity(config))


def _loot():
    return [
        FakeItem(0x6001, 0x1F03, "robe", root=POUCH),
        FakeItem(0x6002, 0x13B9, "viking sword", root=POUCH),
        FakeItem(0x6003, 0x0E76, "bag", root=POUCH, is_container=True),
        FakeItem(0x6004, 0x0EED, None, root=POUCH),
    ]


def test_identifies_each_valid_item_once_per_pass() -> None:
    api, loop = _trainer(_loot())

    loop.run(max_cycles=2)

    assert api.targets == [(0x6001,), (0x6002,)]
    assert ("UseObject", POUCH) in api.calls
    assert api.head_msgs[:3] == [
        "Starting to identify items in container...",
        "Identifying item: robe",
        "Identified: robe",
    ]
    assert loop.activity.count == 2


def test_finished_pass_reports_count_and_starts_over() -> None:
    api, loop = _trainer(_loot())
    loop.run(max_cycles=2)

    loop.run_cycle()

    assert "Finished identifying 2 items!" in api.head_msgs
    assert api.targets[-1] == (0x6001,)


def test_not_certain_retries_the_same_item() -> None:
    api, loop = _trainer([FakeItem(0x6001, 0x1F03, "robe", root=POUCH)])
    answers = ["You are not certain..."]

    def respond(a, args):
        if answers:
            a.journal.append(answers.pop(0))

    api.on_target = respond

    loop.run_cycle()
    assert loop.state.outcome == NOT_CERTAIN
    assert api.head_msgs[-1] == "Not certain, trying again..."

    loop.run_cycle()
    assert loop.state.outcome == SUCCESS
    assert api.targets == [(0x6001,), (0x6001,)]
    assert loop.activity.count == 1


def test_missing_cursor_skips_item_without_counting() -> None:
    api, loop = _trainer(_loot())
    api.cursor_ready = False

    loop.run_cycle()

    assert loop.state.outcome == TARGET_FAILED
    assert api.head_msgs[-1] == "Failed to use Item Identification! No targeting cursor."
    assert [i.Serial for i in loop.activity.queue] == [0x6002]
    assert loop.activity.count == 0
    assert any("Skipped robe." in line for line in loop.log.lines)


def test_no_container_keeps_waiting() -> None:
    api, loop = _trainer(x=1003)

    assert loop.run_cycle() == IDLE
    assert api.targets == []
    assert api.head_msgs == [
        "No container found with graphics: 0x0E79, 0x0E75, 0x0E76, 0x0E7D, 0x9FF9, 0x9FF8"
    ]
    assert api.pauses == [0.1]


def test_container_range_is_configurable() -> None:
    api, loop = _trainer(_loot(), x=1002, container_range=2)

    loop.run_cycle()

    assert api.targets == [(0x6001,)]


def test_container_with_only_nested_containers_has_nothing_to_do() -> None:
    api, loop = _trainer([FakeItem(0x6003, 0x0E76, "bag", root=POUCH, is_container=True)])

    assert loop.run_cycle() == IDLE
    assert api.head_msgs[-1] == "No valid items found after filtering!"
    assert any("Excluded item: 0x00006003" in line for line in loop.log.lines)
