import asyncio
import logging
import math
import uuid
from typing import Awaitable, Callable, Dict, List, Optional

from ..models.recipe import Timer

log = logging.getLogger(__name__)

CompletionCallback = Callable[[Timer], Awaitable[None]]


def format_remaining(seconds: int) -> str:
    mins, secs = divmod(max(seconds, 0), 60)
    return f"{mins}:{secs:02d}"


class TimerManager:
    """
    Registry of independent countdown timers advanced by a shared tick.
    """

    def __init__(self, on_complete: Optional[CompletionCallback] = None, interval: float = 1.0):
        self.on_complete = on_complete
        self.interval = interval
        self._timers: Dict[str, Timer] = {}
        self._task: Optional[asyncio.Task] = None

    @property
    def timers(self) -> List[Timer]:
        return list(self._timers.values())

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def get(self, timer_id: str) -> Optional[Timer]:
        return self._timers.get(timer_id)

    def create(self, name: str, duration_minutes: float) -> Timer:
        if not math.isfinite(duration_minutes) or round(duration_minutes * 60) <= 0:
            raise ValueError(f"Timer '{name}' needs a positive duration, got {duration_minutes} minutes")
        seconds = int(round(duration_minutes * 60))
        timer = Timer(id=uuid.uuid4().hex, name=name, duration_sec=seconds, remaining_sec=seconds)
        self._timers[timer.id] = timer
        log.info(f"Timer '{name}' started for {format_remaining(seconds)}")
        return timer

    def tick(self) -> List[Timer]:
        """Advance every active timer by one second; return those that just finished."""
        completed: List[Timer] = []
        for timer in self._timers.values():
            if not timer.is_active or timer.remaining_sec <= 0:
                continue
            timer.remaining_sec -= 1
            if timer.remaining_sec == 0:
                timer.is_active = False
                timer.is_complete = True
                completed.append(timer)
        return completed

    def toggle(self, timer_id: str) -> bool:
        timer = self._timers.get(timer_id)
        if timer is None or timer.is_complete:
            return False
        timer.is_active = not timer.is_active
        log.info(f"Timer '{timer.name}' {'resumed' if timer.is_active else 'paused'}")
        return True

    def remove(self, timer_id: str) -> bool:
        return self._timers.pop(timer_id, None) is not None

    def clear(self) -> None:
        self._timers.clear()

    def start(self) -> None:
        """Spawn the periodic tick task on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            for timer in self.tick():
                await self._notify(timer)

    async def _notify(self, timer: Timer) -> None:
        log.info(f"Timer '{timer.name}' finished")
        if self.on_complete is None:
            return
        try:
            await self.on_complete(timer)
        except Exception as e:
            log.error(f"Timer completion handler failed for '{timer.name}': {e}")
