import asyncio

from focusnav import FocusScope

from tests.factories import Activations, event_names, make_element, make_engine, register_all


def test_second_concurrent_focus_field_is_dropped():
    engine, events = make_engine()
    acts = Activations()
    gate = {}

    async def slow_receive(_source):
        await gate["future"]
        return True

    register_all(
        engine,
        [make_element("a", 1, can_receive_focus=slow_receive, activations=acts), make_element("b", 2, activations=acts)],
    )

    async def run():
        gate["future"] = asyncio.get_running_loop().create_future()
        first = asyncio.create_task(engine.focus_field("a"))
        await asyncio.sleep(0)
        assert engine.is_navigating
        second = await engine.focus_field("b")
        gate["future"].set_result(None)
        return await first, second

    first, second = asyncio.run(run())
    assert (first, second) == (True, False)
    assert engine.active_element_id == "a"
    assert acts.calls == ["a"]
    assert "navigation_dropped" in event_names(events)
    assert engine.is_navigating is False


def test_stale_result_discarded_after_scope_change():
    engine, _ = make_engine()
    gate = {}

    async def slow_receive(_source):
        await gate["future"]
        return True

    register_all(engine, [make_element("a", 1, can_receive_focus=slow_receive)])

    async def run():
        gate["future"] = asyncio.get_running_loop().create_future()
        pending = asyncio.create_task(engine.focus_field("a"))
        await asyncio.sleep(0)
        engine.push_scope(FocusScope(id="dlg"))
        gate["future"].set_result(None)
        return await pending

    assert asyncio.run(run()) is False
    assert engine.active_element_id is None
    assert "stale" in str(engine.errors[-1].error)


def test_history_replay_refused_while_validating():
    engine, _ = make_engine()
    gate = {}

    async def slow_receive(_source):
        await gate["future"]
        return True

    register_all(engine, [make_element("a", 1), make_element("b", 2), make_element("c", 3, can_receive_focus=slow_receive)])

    async def run():
        await engine.focus_field("a")
        await engine.focus_field("b")
        gate["future"] = asyncio.get_running_loop().create_future()
        pending = asyncio.create_task(engine.focus_field("c"))
        await asyncio.sleep(0)
        refused = engine.undo_focus()
        gate["future"].set_result(None)
        return refused, await pending

    assert asyncio.run(run()) == (False, True)
    assert engine.active_element_id == "c"


def _restore_blocked_by(engine, validator):
    register_all(engine, [make_element("field1", 1), make_element("field2", 2)])
    assert asyncio.run(engine.focus_field("field2"))
    engine.update("field2", can_receive_focus=validator)
    engine.push_scope(FocusScope(id="s"))


def test_pop_scope_returns_while_restore_validator_is_pending():
    engine, _ = make_engine()

    async def never(_source):
        await asyncio.Event().wait()
        return True

    _restore_blocked_by(engine, never)
    engine.pop_scope()

    assert engine.active_element_id is None
    assert engine.is_navigating
    assert engine.parked() == 1
    assert engine.pump() == 1
    # other navigation is dropped while the restore waits
    assert asyncio.run(engine.focus_field("field1")) is False

    engine.dispose()
    assert engine.parked() == 0
    assert engine.is_navigating is False


def test_parked_restore_completes_when_pumped():
    engine, _ = make_engine()
    release = []

    async def gated(_source):
        event = asyncio.Event()
        release.append(event)
        await event.wait()
        return True

    _restore_blocked_by(engine, gated)
    engine.pop_scope()
    assert engine.parked() == 1

    release[0].set()
    assert engine.pump() == 0
    assert engine.active_element_id == "field2"
    assert engine.is_navigating is False


def test_synchronous_restore_finishes_inside_pop_scope():
    engine, _ = make_engine()
    _restore_blocked_by(engine, lambda _source: True)
    engine.pop_scope()
    assert engine.active_element_id == "field2"
    assert engine.parked() == 0
