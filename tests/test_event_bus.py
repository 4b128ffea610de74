from focusnav.app.bootstrap import create_engine
from focusnav.services.event_bus import ALL, EventBus, FocusEvent


def test_engine_publishes_on_context_bus():
    ctx = create_engine(capture_logs=False)
    try:
        bus = ctx.event_bus
        assert isinstance(bus, EventBus)
        assert ctx.engine.event_bus is bus
    finally:
        ctx.dispose()


def test_subscribe_publish_basic():
    bus = EventBus()
    received = []

    def handler(evt):
        received.append((evt.name, evt.payload))

    bus.subscribe(FocusEvent.FOCUS_CHANGED, handler)
    bus.publish(FocusEvent.FOCUS_CHANGED, {"element_id": "a"})
    assert received == [(FocusEvent.FOCUS_CHANGED.value, {"element_id": "a"})]


def test_once_subscription():
    bus = EventBus()
    count = 0

    def incr(_):
        nonlocal count
        count += 1

    bus.subscribe(FocusEvent.SCOPE_PUSHED, incr, once=True)
    bus.publish(FocusEvent.SCOPE_PUSHED)
    bus.publish(FocusEvent.SCOPE_PUSHED)
    assert count == 1  # second publish ignored
    assert bus.subscriber_count(FocusEvent.SCOPE_PUSHED) == 0


def test_error_isolation():
    bus = EventBus()
    order = []

    def bad(_):
        order.append("bad")
        raise RuntimeError("boom")

    def good(_):
        order.append("good")

    bus.subscribe(FocusEvent.MODE_CHANGED, bad)
    bus.subscribe(FocusEvent.MODE_CHANGED, good)
    bus.publish(FocusEvent.MODE_CHANGED, {"mode": "hybrid"})
    assert order == ["bad", "good"]
    assert len(bus.errors) == 1
    assert isinstance(bus.errors[0][1], RuntimeError)


def test_wildcard_runs_after_named_and_cancel():
    bus = EventBus()
    order = []
    bus.subscribe(ALL, lambda e: order.append(("all", e.name)))
    sub = bus.subscribe(FocusEvent.STEPS_UPDATED, lambda e: order.append(("named", e.name)))
    bus.publish(FocusEvent.STEPS_UPDATED)
    sub.cancel()
    bus.publish(FocusEvent.STEPS_UPDATED)
    assert order == [("named", "steps_updated"), ("all", "steps_updated"), ("all", "steps_updated")]


def test_tracing_ring_buffer():
    bus = EventBus()
    bus.enable_tracing(capacity=2)
    for name in (FocusEvent.SCOPE_PUSHED, FocusEvent.SCOPE_POPPED, FocusEvent.FOCUS_CHANGED):
        bus.publish(name, {"long": "x" * 100})
    traces = bus.recent_traces()
    assert [t[0] for t in traces] == ["scope_popped", "focus_changed"]
    assert traces[-1][2].endswith("...") and len(traces[-1][2]) == 40


def test_engine_publishes_through_subscribe_delegate():
    ctx = create_engine(capture_logs=False)
    seen = []
    ctx.engine.subscribe(FocusEvent.ELEMENT_REGISTERED, lambda e: seen.append(e.payload["element_id"]))
    from focusnav import FocusableElement

    ctx.engine.register(FocusableElement(id="mrn", order=1))
    ctx.dispose()
    assert seen == ["mrn"]
