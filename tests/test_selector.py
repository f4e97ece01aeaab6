import asyncio

import pytest

from peerrate.services.selector import (
    FETCH_ERROR_MESSAGES,
    CascadingSelector,
    ListState,
)


async def let_tasks_run():
    for _ in range(3):
        await asyncio.sleep(0)


@pytest.fixture
async def selector(fake_store):
    selector = CascadingSelector(fake_store)
    await selector.load_classes()
    return selector


def ids(options, attr):
    return [getattr(o, attr) for o in options]


# ═══════════════════════════════════════════════════════════════
#  Transitions
# ═══════════════════════════════════════════════════════════════

async def test_initial_state(selector):
    state = selector.state
    assert ids(state.classes, "class_id") == ["C1", "C2"]
    assert state.classes_state == ListState.POPULATED
    assert (state.class_id, state.group_id, state.rater_id, state.ratee_id) == ("", "", "", "")
    assert state.rating_score == 3
    assert state.groups_state == ListState.EMPTY


async def test_cascade_down_to_ratee(selector):
    await selector.select_class("C1")
    assert ids(selector.state.groups, "group_id") == ["G1", "G2"]

    await selector.select_group("G1")
    assert ids(selector.state.participants, "nrp") == ["S1", "S2"]

    selector.select_rater("S1")
    assert ids(selector.ratee_options, "nrp") == ["S2"]

    selector.select_ratee("S2")
    assert selector.state.ratee_id == "S2"


async def test_changing_class_clears_everything_downstream(selector):
    await selector.select_class("C1")
    await selector.select_group("G1")
    selector.select_rater("S1")
    selector.select_ratee("S2")

    await selector.select_class("C1")

    state = selector.state
    assert (state.group_id, state.rater_id, state.ratee_id) == ("", "", "")
    assert state.participants == []
    assert ids(state.groups, "group_id") == ["G1", "G2"]


async def test_clearing_class_skips_fetch(selector, fake_store):
    await selector.select_class("C1")
    calls_before = len(fake_store.calls)

    await selector.select_class("")

    assert selector.state.groups == []
    assert selector.state.groups_state == ListState.EMPTY
    assert len(fake_store.calls) == calls_before


async def test_changing_group_clears_rater_and_ratee(selector):
    await selector.select_class("C1")
    await selector.select_group("G1")
    selector.select_rater("S1")
    selector.select_ratee("S2")

    await selector.select_group("G2")

    assert selector.state.rater_id == ""
    assert selector.state.ratee_id == ""
    assert ids(selector.state.participants, "nrp") == ["S3"]


async def test_ratee_options_never_contain_rater(selector):
    await selector.select_class("C1")
    await selector.select_group("G1")
    for rater in ("S1", "S2"):
        selector.select_rater(rater)
        assert rater not in ids(selector.ratee_options, "nrp")


async def test_picking_ratee_as_rater_clears_ratee(selector):
    await selector.select_class("C1")
    await selector.select_group("G1")
    selector.select_rater("S1")
    selector.select_ratee("S2")

    selector.select_rater("S2")

    assert selector.state.ratee_id == ""
    selector.select_ratee("S2")
    assert selector.state.ratee_id == ""


async def test_unknown_selection_is_treated_as_empty(selector, fake_store):
    await selector.select_class("C1")
    await selector.select_group("G999")
    assert selector.state.group_id == ""
    assert ("participants", "G999") not in fake_store.calls


async def test_score_strings_become_ints(selector):
    selector.set_score(" 4 ")
    assert selector.state.rating_score == 4
    selector.set_score("abc")
    assert selector.state.rating_score == "abc"


# ═══════════════════════════════════════════════════════════════
#  Disabled fields
# ═══════════════════════════════════════════════════════════════

async def test_disabled_until_prerequisite_selected(selector):
    assert not selector.is_disabled("class_id")
    assert selector.is_disabled("group_id")
    assert selector.is_disabled("rater_id")
    assert selector.is_disabled("ratee_id")

    await selector.select_class("C1")
    assert not selector.is_disabled("group_id")
    assert selector.is_disabled("rater_id")

    await selector.select_group("G1")
    assert not selector.is_disabled("rater_id")
    assert selector.is_disabled("ratee_id")

    selector.select_rater("S1")
    assert not selector.is_disabled("ratee_id")


async def test_ratee_disabled_when_rater_is_alone(selector):
    await selector.select_class("C1")
    await selector.select_group("G2")
    selector.select_rater("S3")
    assert selector.ratee_options == []
    assert selector.is_disabled("ratee_id")


async def test_everything_disabled_while_submitting(selector):
    selector.state.submitting = True
    for field in ("class_id", "group_id", "rater_id", "ratee_id", "rating_score", "rating_comment", "submit"):
        assert selector.is_disabled(field)


async def test_everything_disabled_while_fetching(selector, fake_store):
    gate = asyncio.Event()
    fake_store.gates[("groups", "C1")] = gate
    task = asyncio.create_task(selector.select_class("C1"))
    await let_tasks_run()

    assert selector.loading
    assert selector.state.groups_state == ListState.LOADING
    assert selector.is_disabled("class_id")
    assert selector.is_disabled("submit")

    gate.set()
    await task
    assert not selector.loading
    assert not selector.is_disabled("group_id")


# ═══════════════════════════════════════════════════════════════
#  Stale fetches and failures
# ═══════════════════════════════════════════════════════════════

async def test_stale_group_fetch_is_discarded(selector, fake_store):
    gate = asyncio.Event()
    fake_store.gates[("groups", "C1")] = gate
    slow = asyncio.create_task(selector.select_class("C1"))
    await let_tasks_run()

    await selector.select_class("C2")
    assert ids(selector.state.groups, "group_id") == ["G3"]

    gate.set()
    await slow

    assert selector.state.class_id == "C2"
    assert ids(selector.state.groups, "group_id") == ["G3"]
    assert selector.state.groups_state == ListState.POPULATED
    assert not selector.loading


async def test_stale_participant_fetch_is_discarded(selector, fake_store):
    await selector.select_class("C1")
    gate = asyncio.Event()
    fake_store.gates[("participants", "G1")] = gate
    slow = asyncio.create_task(selector.select_group("G1"))
    await let_tasks_run()

    await selector.select_class("C2")
    gate.set()
    await slow

    assert selector.state.participants == []
    assert selector.state.participants_state == ListState.EMPTY


async def test_fetch_failure_leaves_list_empty_with_message(selector, fake_store):
    fake_store.failing.add(("groups", "C1"))

    await selector.select_class("C1")

    assert selector.state.groups == []
    assert selector.state.groups_state == ListState.EMPTY
    assert selector.state.error == FETCH_ERROR_MESSAGES["groups"]
    assert not selector.loading

    await selector.select_class("C2")
    assert selector.state.error is None


# ═══════════════════════════════════════════════════════════════
#  Reset and session round-trip
# ═══════════════════════════════════════════════════════════════

async def test_reset_restores_defaults_and_keeps_classes(selector):
    await selector.select_class("C1")
    await selector.select_group("G1")
    selector.select_rater("S1")
    selector.set_score(5)
    selector.set_comment("hi")

    selector.reset()

    state = selector.state
    assert (state.class_id, state.group_id, state.rater_id, state.ratee_id) == ("", "", "", "")
    assert state.rating_score == 3
    assert state.rating_comment == ""
    assert ids(state.classes, "class_id") == ["C1", "C2"]


async def test_restore_replays_snapshot(fake_store):
    snapshot = {
        "class_id": "C1",
        "group_id": "G1",
        "rater_id": "S1",
        "ratee_id": "S2",
        "rating_score": 4,
        "rating_comment": "Great work",
    }
    selector = await CascadingSelector.restore(fake_store, snapshot)
    assert selector.snapshot() == snapshot


async def test_restore_keeps_group_fetch_failure(fake_store):
    fake_store.failing.add(("groups", "C1"))

    selector = await CascadingSelector.restore(fake_store, {"class_id": "C1", "group_id": "G1"})

    assert selector.state.class_id == "C1"
    assert selector.state.group_id == ""
    assert selector.state.groups == []
    assert selector.state.error == FETCH_ERROR_MESSAGES["groups"]


async def test_restore_keeps_class_fetch_failure(fake_store):
    fake_store.failing.add(("classes",))

    selector = await CascadingSelector.restore(fake_store, {})

    assert selector.state.classes == []
    assert selector.state.error == FETCH_ERROR_MESSAGES["classes"]


async def test_clearing_a_selection_keeps_fetch_failure(selector, fake_store):
    fake_store.failing.add(("participants", "G1"))
    await selector.select_class("C1")
    await selector.select_group("G1")
    assert selector.state.error == FETCH_ERROR_MESSAGES["participants"]

    selector.select_rater("")
    assert selector.state.error == FETCH_ERROR_MESSAGES["participants"]


async def test_restore_drops_selections_that_no_longer_fit(fake_store):
    selector = await CascadingSelector.restore(
        fake_store, {"class_id": "C1", "group_id": "G3", "rater_id": "S1"}
    )
    assert selector.state.class_id == "C1"
    assert selector.state.group_id == ""
    assert selector.state.rater_id == ""
