import asyncio

from focusnav import ActivationError

from tests.factories import Activations, make_element, make_engine, payloads, register_all


def _visit(engine, *ids):
    async def run():
        for eid in ids:
            assert await engine.focus_field(eid)

    asyncio.run(run())


def test_undo_redo_replays_activation():
    engine, events = make_engine()
    acts = Activations()
    register_all(engine, [make_element(e, i, activations=acts) for i, e in enumerate("abc", start=1)])
    _visit(engine, "a", "b", "c")
    acts.calls.clear()

    assert engine.undo_focus() is True
    assert engine.active_element_id == "b"
    assert engine.history_index == 1
    assert engine.undo_focus() is True
    assert engine.undo_focus() is False
    assert engine.redo_focus() is True
    assert engine.active_element_id == "b"
    assert acts.calls == ["b", "a", "b"]
    assert payloads(events, "focus_changed")[-1]["replay"] == "redo"


def test_undo_skips_validation():
    engine, _ = make_engine()
    register_all(engine, [make_element("a", 1), make_element("b", 2, can_leave_focus=lambda _t: False)])
    _visit(engine, "a", "b")
    assert engine.undo_focus() is True
    assert engine.active_element_id == "a"


def test_undo_to_unregistered_element_fails_without_moving():
    engine, _ = make_engine()
    register_all(engine, [make_element("a", 1), make_element("b", 2)])
    _visit(engine, "a", "b")
    engine.unregister("a")
    assert engine.undo_focus() is False
    assert engine.history_index == 1
    assert isinstance(engine.errors[-1].error, ActivationError)


def test_new_focus_after_undo_truncates_redo():
    engine, _ = make_engine()
    register_all(engine, [make_element(e, i) for i, e in enumerate("abc", start=1)])
    _visit(engine, "a", "b")
    engine.undo_focus()
    _visit(engine, "c")
    assert [h.element_id for h in engine.get_history()] == ["a", "c"]
    assert engine.redo_focus() is False


def test_history_capacity_and_clear():
    engine, _ = make_engine(max_history_size=3)
    register_all(engine, [make_element(e, i) for i, e in enumerate("abcde", start=1)])
    _visit(engine, *"abcde")
    assert [h.element_id for h in engine.get_history()] == ["c", "d", "e"]
    engine.clear_history()
    assert engine.get_history() == [] and engine.history_index == -1
    assert engine.active_element_id == "e"


def test_undo_steps_past_entries_of_a_closed_modal():
    engine, _ = make_engine()
    register_all(engine, [make_element("a", 1), make_element("b", 2), make_element("m1", 1, scope_id="m")])
    _visit(engine, "a", "b")
    engine.open_modal("m")
    assert engine.active_element_id == "m1"
    engine.close_modal()
    assert [h.element_id for h in engine.get_history()] == ["a", "b", "m1", "b"]

    assert engine.undo_focus() is True
    assert (engine.active_element_id, engine.history_index) == ("b", 1)
    assert engine.undo_focus() is True
    assert (engine.active_element_id, engine.history_index) == ("a", 0)
    assert engine.undo_focus() is False

    assert engine.redo_focus() is True
    assert engine.redo_focus() is True
    assert (engine.active_element_id, engine.history_index) == ("b", 3)
    assert engine.redo_focus() is False
