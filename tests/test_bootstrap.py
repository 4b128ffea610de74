import asyncio
import logging

from focusnav import EngineSettings, FocusEngine, FocusableElement, ImmediateScheduler, QueuedScheduler
from focusnav.app.bootstrap import EngineContext, create_engine
from focusnav.services.event_bus import FocusEvent
from focusnav.services.logging_service import LoggingService


def test_create_engine_wires_one_root():
    sched = ImmediateScheduler()
    ctx = create_engine(scheduler=sched)
    try:
        assert isinstance(ctx, EngineContext)
        assert isinstance(ctx.engine, FocusEngine)
        assert ctx.engine.event_bus is ctx.event_bus
        assert ctx.engine.settings is ctx.settings
        assert ctx.scheduler is sched
        assert isinstance(ctx.logging_service, LoggingService) and ctx.logging_service.attached
        assert ctx.metadata["scheduler"] == "ImmediateScheduler"
    finally:
        ctx.dispose()


def test_compositions_are_isolated():
    a = create_engine(capture_logs=False, scheduler=ImmediateScheduler())
    b = create_engine(capture_logs=False, scheduler=ImmediateScheduler())
    a.engine.register(FocusableElement(id="x", order=1))
    assert b.engine.get_element("x") is None
    assert a.event_bus is not b.event_bus
    a.dispose()
    b.dispose()


def test_captured_logs_explain_refusals():
    ctx = create_engine(scheduler=ImmediateScheduler(), settings=EngineSettings(debug=True))
    try:
        ctx.engine.register(FocusableElement(id="a", order=1, can_receive_focus=lambda _src: False))
        assert asyncio.run(ctx.engine.focus_field("a")) is False
        messages = [e.message for e in ctx.logging_service.recent()]
        assert "NavigationError: focus_field: 'a' refused focus" in messages
    finally:
        ctx.dispose()
        logging.getLogger("focusnav").setLevel(logging.NOTSET)


def test_dispose_is_idempotent_and_releases_services():
    with create_engine(scheduler=QueuedScheduler()) as ctx:
        engine = ctx.engine
        svc = ctx.logging_service
        engine.subscribe(FocusEvent.FOCUS_CHANGED, lambda _evt: None)
    assert ctx.disposed
    assert ctx.event_bus.subscriber_count(FocusEvent.FOCUS_CHANGED) == 0
    assert not svc.attached
    assert not engine.is_enabled
    ctx.dispose()


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("FOCUSNAV_MAX_HISTORY", "7")
    monkeypatch.setenv("FOCUSNAV_POINTER_THRESHOLD", "12")
    monkeypatch.setenv("FOCUSNAV_DEBUG", "yes")
    settings = EngineSettings.from_env()
    assert settings.max_history_size == 7
    assert settings.pointer_move_threshold == 12.0
    assert settings.debug is True
    monkeypatch.delenv("FOCUSNAV_DEBUG")
    assert EngineSettings.from_env().debug is False
