from focusnav import ImmediateScheduler, QueuedScheduler


def test_immediate_runs_inline():
    ran = []
    ImmediateScheduler().schedule(lambda: ran.append(1))
    assert ran == [1]


def test_queued_runs_in_order_including_nested():
    sched = QueuedScheduler()
    ran = []

    def outer():
        ran.append("outer")
        sched.schedule(lambda: ran.append("nested"))

    sched.schedule(outer)
    sched.schedule(lambda: ran.append("second"))
    assert sched.pending() == 2
    assert sched.run_pending() == 3
    assert ran == ["outer", "second", "nested"]
    assert sched.pending() == 0
