from threading import RLock

from quiestleplus.game.models import Room, RoomSettings
from quiestleplus.game.timer import RoundTimer


def _room(seconds=3, room_id='r1', code='ABC123'):
    return Room(id=room_id, code=code, host_id='h', settings=RoomSettings(question_time=seconds))


class Recorder:
    def __init__(self):
        self.ticks = []
        self.expired = 0

    def on_tick(self, remaining):
        self.ticks.append(remaining)

    def on_expired(self):
        self.expired += 1


def test_start_sets_time_remaining_from_settings():
    timer = RoundTimer(RLock(), spawn=None)
    room = _room(seconds=30)
    rec = Recorder()
    timer.start(room, rec.on_expired, rec.on_tick)
    assert room.time_remaining == 30
    assert timer.is_running(room)


def test_ticks_count_down_and_expire_once():
    timer = RoundTimer(RLock(), spawn=None)
    room = _room(seconds=3)
    rec = Recorder()
    timer.start(room, rec.on_expired, rec.on_tick)

    assert timer.tick(room) is True
    assert timer.tick(room) is True
    assert timer.tick(room) is False
    assert rec.ticks == [2, 1, 0]
    assert rec.expired == 1
    assert room.time_remaining is None
    assert not timer.is_running(room)

    # Further ticks are no-ops.
    assert timer.tick(room) is False
    assert rec.expired == 1


def test_stop_is_idempotent_and_clears_remaining():
    timer = RoundTimer(RLock(), spawn=None)
    room = _room()
    rec = Recorder()
    timer.start(room, rec.on_expired, rec.on_tick)
    timer.stop(room)
    timer.stop(room)
    assert room.time_remaining is None
    assert timer.tick(room) is False
    assert rec.ticks == []
    assert rec.expired == 0


def test_restart_supersedes_previous_timer():
    timer = RoundTimer(RLock(), spawn=None)
    room = _room(seconds=2)
    first, second = Recorder(), Recorder()
    timer.start(room, first.on_expired, first.on_tick)
    timer.tick(room)
    timer.start(room, second.on_expired, second.on_tick)
    assert room.time_remaining == 2

    timer.tick(room)
    timer.tick(room)
    assert first.ticks == [1]
    assert first.expired == 0
    assert second.ticks == [1, 0]
    assert second.expired == 1


def test_background_runner_stops_when_cancelled():
    spawned = []
    timer = RoundTimer(RLock(), spawn=lambda fn, *args: spawned.append((fn, args)), sleep=lambda _s: None)
    room = _room(seconds=5)
    rec = Recorder()
    timer.start(room, rec.on_expired, rec.on_tick)
    assert len(spawned) == 1

    timer.stop(room)
    fn, args = spawned[0]
    fn(*args)
    assert rec.ticks == []
    assert rec.expired == 0


def test_background_runner_drives_to_expiry():
    spawned = []
    timer = RoundTimer(RLock(), spawn=lambda fn, *args: spawned.append((fn, args)), sleep=lambda _s: None)
    room = _room(seconds=3)
    rec = Recorder()
    timer.start(room, rec.on_expired, rec.on_tick)

    fn, args = spawned[0]
    fn(*args)
    assert rec.ticks == [2, 1, 0]
    assert rec.expired == 1


def test_stale_runner_does_not_touch_new_timer():
    spawned = []
    timer = RoundTimer(RLock(), spawn=lambda fn, *args: spawned.append((fn, args)), sleep=lambda _s: None)
    room = _room(seconds=3)
    old, new = Recorder(), Recorder()
    timer.start(room, old.on_expired, old.on_tick)
    timer.start(room, new.on_expired, new.on_tick)

    stale_fn, stale_args = spawned[0]
    stale_fn(*stale_args)
    assert old.ticks == []
    assert new.ticks == []
    assert room.time_remaining == 3


def test_failing_tick_callback_still_expires():
    spawned = []
    timer = RoundTimer(RLock(), spawn=lambda fn, *args: spawned.append((fn, args)), sleep=lambda _s: None)
    room = _room(seconds=3)
    rec = Recorder()

    def boom(_remaining):
        raise RuntimeError('emit failed')

    timer.start(room, rec.on_expired, boom)
    fn, args = spawned[0]
    fn(*args)
    assert rec.expired == 1
    assert not timer.is_running(room)
    assert room.time_remaining is None


def test_failing_expiry_callback_stops_runner():
    spawned = []
    timer = RoundTimer(RLock(), spawn=lambda fn, *args: spawned.append((fn, args)), sleep=lambda _s: None)
    room = _room(seconds=1)
    rec = Recorder()

    def boom():
        raise RuntimeError('close failed')

    timer.start(room, boom, rec.on_tick)
    fn, args = spawned[0]
    fn(*args)
    assert rec.ticks == [0]
    assert not timer.is_running(room)
    assert room.time_remaining is None
