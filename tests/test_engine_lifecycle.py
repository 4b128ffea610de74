import asyncio
import logging

import pytest

from focusnav import EngineSettings, FocusEngine, FocusScope, NavigationMode, RegistrationError, ScopeError

from tests.factories import event_names, make_element, make_engine, payloads, register_all


def test_register_and_unregister_update_steps():
    engine, events = make_engine()
    engine.register(make_element("a", 1, step=True))
    assert [s.id for s in engine.get_visible_steps()] == ["a"]
    with pytest.raises(RegistrationError):
        engine.register(make_element("a", 2))
    assert engine.unregister("a") is True
    assert engine.get_visible_steps() == []
    assert engine.get_element("a") is None
    assert engine.unregister("a") is False
    names = event_names(events)
    assert names.count("element_registered") == 1 and names.count("element_unregistered") == 1
    assert names.count("steps_updated") == 2


def test_unregister_active_element_clears_focus():
    engine, events = make_engine()
    register_all(engine, [make_element("a", 1)])
    asyncio.run(engine.focus_field("a"))
    engine.unregister("a")
    assert engine.active_element_id is None
    assert payloads(events, "focus_changed")[-1]["element_id"] is None


def test_update_merges_descriptor_fields():
    engine, events = make_engine()
    register_all(engine, [make_element("a", 1), make_element("b", 2)])
    assert engine.update("b", skip_in_navigation=True) is True
    assert engine.update("ghost", order=9) is False
    assert payloads(events, "element_updated") == [{"element_id": "b", "fields": ["skip_in_navigation"]}]

    async def run():
        await engine.focus_field("a")
        return await engine.focus_next()

    assert asyncio.run(run()) is False


def test_queries():
    engine, _ = make_engine()
    register_all(engine, [make_element("a", 1), make_element("m", 1, scope_id="dlg"), make_element("s", 2, skip_in_navigation=True)])
    assert [e.id for e in engine.get_elements_in_scope()] == ["a", "s"]
    assert [e.id for e in engine.get_elements_in_scope("dlg")] == ["m"]
    assert engine.can_focus_element("a")
    assert not engine.can_focus_element("s")
    assert not engine.can_focus_element("m")
    engine.push_scope(FocusScope(id="dlg", trap_focus=True))
    assert engine.can_focus_element("m") and not engine.can_focus_element("a")


def test_disabled_engine_refuses_navigation():
    engine, _ = make_engine(enabled=False)
    register_all(engine, [make_element("a", 1)])
    assert asyncio.run(engine.focus_first()) is False
    engine.set_enabled(True)
    assert asyncio.run(engine.focus_first()) is True


def test_no_target_reported_as_false_and_recorded():
    engine, events = make_engine()
    assert asyncio.run(engine.focus_next()) is False
    assert engine.errors[-1].kind == "NavigationError"
    assert "error_occurred" in event_names(events)
    engine.clear_errors()
    assert engine.errors == []


def test_error_summary_truncates_long_messages():
    engine, _ = make_engine()
    asyncio.run(engine.focus_field("x" * 300))
    summary = engine.errors[-1].summary()
    assert summary.startswith("NavigationError: focus_field: 'xxx")
    assert len(summary) == 160 and summary.endswith("...")
    assert engine.errors[-1].summary(max_len=500).endswith("is not registered")


def test_error_capacity_bounded():
    engine, _ = make_engine(error_capacity=2)
    for _ in range(4):
        asyncio.run(engine.focus_next())
    assert len(engine.errors) == 2


def test_snapshot_reflects_state():
    engine, _ = make_engine()
    register_all(engine, [make_element("a", 1, step=True)])
    asyncio.run(engine.focus_field("a"))
    engine.push_scope(FocusScope(id="dlg"))
    snap = engine.snapshot()
    assert snap.active_element_id is None
    assert snap.scope_ids == ("default", "dlg")
    assert snap.history_index == 0 and snap.history_length == 1
    assert snap.steps[0].id == "a"


def test_mode_changes_published():
    engine, events = make_engine(initial_mode=NavigationMode.KEYBOARD)
    engine.handle_pointer_move(200, 200)
    assert engine.navigation_mode is NavigationMode.HYBRID
    assert payloads(events, "mode_changed") == [{"previous": "keyboard", "mode": "hybrid"}]
    # keyboard never used, pointer recent: hybrid settles to pointer
    assert engine.settle_navigation_mode(now=engine.mode_classifier.last_pointer_at + 1) is True
    assert engine.navigation_mode is NavigationMode.POINTER


def test_set_debug_controls_package_logger():
    engine, _ = make_engine()
    pkg = logging.getLogger("focusnav")
    prior = pkg.level
    try:
        engine.set_debug(True)
        assert pkg.level == logging.DEBUG
        engine.set_debug(False)
        assert pkg.level == logging.NOTSET
    finally:
        pkg.setLevel(prior)


def test_dispose_tears_everything_down():
    engine, events = make_engine()
    register_all(engine, [make_element("a", 1)])
    asyncio.run(engine.focus_field("a"))
    engine.dispose()
    engine.dispose()
    assert event_names(events).count("engine_disposed") == 1
    assert engine.scope_ids() == []
    assert engine.get_element("a") is None
    assert engine.get_history() == []
    assert engine.active_element_id is None
    assert not engine.is_enabled
    assert asyncio.run(engine.focus_first()) is False
    with pytest.raises(ScopeError):
        engine.register(make_element("b", 1))


def test_mode_settling_reads_engine_clock():
    now = [1000.0]
    engine = FocusEngine(settings=EngineSettings(initial_mode=NavigationMode.KEYBOARD), clock=lambda: now[0])
    engine.handle_pointer_move(200, 200)
    assert engine.mode_classifier.last_pointer_at == 1000.0
    now[0] += 1.0
    assert engine.settle_navigation_mode() is True
    assert engine.navigation_mode is NavigationMode.POINTER
