from repair_round.scheduler import Scheduler


class TestScheduler:
    def test_tick_when_delay_elapses_then_callback_fires_once(self):
        fired = []
        scheduler = Scheduler()
        scheduler.schedule(3, lambda: fired.append(1))

        scheduler.tick(2)
        assert fired == []
        scheduler.tick()
        assert fired == [1]
        scheduler.tick(10)
        assert fired == [1]
        assert scheduler.pending == []

    def test_cancel_when_before_due_then_never_fires(self):
        fired = []
        scheduler = Scheduler()
        call = scheduler.schedule(2, lambda: fired.append(1))
        call.cancel()
        scheduler.tick(5)
        assert fired == []

    def test_cancel_all_when_several_pending_then_none_fire(self):
        fired = []
        scheduler = Scheduler()
        scheduler.schedule(1, lambda: fired.append("a"))
        scheduler.schedule(4, lambda: fired.append("b"))
        scheduler.cancel_all()
        scheduler.tick(5)
        assert fired == []

    def test_tick_when_callback_schedules_more_then_new_call_runs_later(self):
        fired = []
        scheduler = Scheduler()
        scheduler.schedule(1, lambda: scheduler.schedule(1, lambda: fired.append("inner")))
        scheduler.tick()
        assert fired == []
        scheduler.tick()
        assert fired == ["inner"]
