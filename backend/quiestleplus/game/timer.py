from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from .models import Room


logger = logging.getLogger(__name__)

TickCallback = Callable[[int], None]
ExpiredCallback = Callable[[], None]


def spawn_thread(target, *args) -> None:
    threading.Thread(target=target, args=args, daemon=True).start()


@dataclass
class _TimerHandle:
    room: Room
    on_expired: ExpiredCallback
    on_tick: TickCallback
    cancelled: bool = False


class RoundTimer:
    """Per-room one-second countdown.

    Every tick runs under the store lock, so a tick is serialized with client
    mutations and ``stop`` takes effect before any pending tick can fire.
    Timers are keyed by room id, which survives code regeneration.
    """

    def __init__(
        self,
        lock,
        spawn: Callable[..., None] | None = spawn_thread,
        sleep: Callable[[float], None] = time.sleep,
        interval: float = 1.0,
    ) -> None:
        self._lock = lock
        self._spawn = spawn
        self._sleep = sleep
        self._interval = interval
        self._handles: dict[str, _TimerHandle] = {}

    def start(self, room: Room, on_expired: ExpiredCallback, on_tick: TickCallback) -> None:
        with self._lock:
            self.stop(room)
            handle = _TimerHandle(room=room, on_expired=on_expired, on_tick=on_tick)
            self._handles[room.id] = handle
            room.time_remaining = room.settings.question_time
            logger.info("timer started room=%s seconds=%s", room.code, room.time_remaining)

        if self._spawn is not None:
            self._spawn(self._run, room.id, handle)

    def stop(self, room: Room) -> None:
        with self._lock:
            handle = self._handles.pop(room.id, None)
            if handle is not None:
                handle.cancelled = True
                logger.debug("timer stopped room=%s", room.code)
            room.time_remaining = None

    def is_running(self, room: Room) -> bool:
        with self._lock:
            return room.id in self._handles

    def tick(self, room: Room) -> bool:
        """Advance the room's countdown by one second.

        Returns True while the timer keeps running.
        """
        with self._lock:
            handle = self._handles.get(room.id)
            if handle is None:
                return False
            return self._tick_locked(handle)

    def _tick_locked(self, handle: _TimerHandle) -> bool:
        room = handle.room
        if handle.cancelled or self._handles.get(room.id) is not handle:
            return False

        remaining = max(0, (room.time_remaining or 0) - 1)
        room.time_remaining = remaining
        try:
            handle.on_tick(remaining)
        except Exception:
            # A failed tick broadcast must not keep the round from expiring.
            logger.exception("timer tick callback failed room=%s", room.code)

        if remaining > 0:
            return True

        # Grab the callback before stop() drops the bookkeeping.
        on_expired = handle.on_expired
        self.stop(room)
        logger.info("timer expired room=%s", room.code)
        on_expired()
        return False

    def _run(self, room_id: str, handle: _TimerHandle) -> None:
        while True:
            self._sleep(self._interval)
            with self._lock:
                try:
                    running = self._tick_locked(handle)
                except Exception:
                    logger.exception("timer tick failed room=%s", handle.room.code)
                    if self._handles.get(room_id) is handle:
                        self.stop(handle.room)
                    running = False
            if not running:
                break
