from fan_h2h.services.matches.scheduler import ManualScheduler, SocketIOScheduler


class FakeSocketIO:
    """Collects background tasks instead of running them, and records sleeps."""

    def __init__(self):
        self.tasks = []
        self.slept = []
        self.on_sleep = None

    def start_background_task(self, target, *args, **kwargs):
        self.tasks.append((target, args, kwargs))

    def sleep(self, seconds):
        self.slept.append(seconds)
        if self.on_sleep:
            self.on_sleep()

    def run_tasks(self):
        for target, args, kwargs in self.tasks:
            target(*args, **kwargs)


def test_background_timer_fires_after_its_delay():
    sio = FakeSocketIO()
    fired = []
    SocketIOScheduler(sio).call_later(2.5, fired.append, 'done')

    sio.run_tasks()
    assert fired == ['done']
    assert sio.slept == [1.0, 1.0, 0.5]


def test_cancelled_background_timer_stops_sleeping():
    sio = FakeSocketIO()
    fired = []
    handle = SocketIOScheduler(sio).call_later(300, fired.append, 'expired')
    sio.on_sleep = lambda: len(sio.slept) == 2 and handle.cancel()

    sio.run_tasks()
    assert fired == []
    assert sio.slept == [1.0, 1.0]


def test_timer_cancelled_before_start_never_sleeps():
    sio = FakeSocketIO()
    handle = SocketIOScheduler(sio).call_later(300, lambda: None)
    assert handle.cancel() is True

    sio.run_tasks()
    assert sio.slept == []
    assert handle.pending is False


def test_manual_scheduler_fires_in_deadline_order():
    scheduler = ManualScheduler()
    fired = []
    scheduler.call_later(2, fired.append, 'second')
    scheduler.call_later(1, fired.append, 'first')
    late = scheduler.call_later(5, fired.append, 'never')
    late.cancel()

    scheduler.advance(10)
    assert fired == ['first', 'second']
    assert scheduler.pending() == []
