import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from ..models.recipe import CookingSettings, Step, Timer
from .timer_manager import CompletionCallback, TimerManager

log = logging.getLogger(__name__)

NarrationCallback = Callable[[int, str], None]


class SessionState(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    COMPLETED = "completed"


class CookingSession:
    """
    Step-by-step cooking walkthrough.

    Owns the current step pointer, the set of completed steps and the timers.
    Every transition is synchronous and total: out of range navigation is
    ignored and reported through the boolean return value ("step changed").
    Side effects (narration, completion, exit, timer alerts) are delivered to
    the callbacks handed in by the caller; their failures are logged and never
    reach the session state.
    """

    def __init__(
        self,
        settings: Optional[CookingSettings] = None,
        narrator: Optional[NarrationCallback] = None,
        on_complete: Optional[Callable[[], None]] = None,
        on_exit: Optional[Callable[[], None]] = None,
        on_change: Optional[Callable[[], None]] = None,
        on_timer_complete: Optional[CompletionCallback] = None,
        tick_interval: float = 1.0,
        auto_advance_delay: float = 1.0,
    ):
        self.settings = settings or CookingSettings()
        self.narrator = narrator
        self.on_complete = on_complete
        self.on_exit = on_exit
        # Step changes not triggered by a caller, i.e. the deferred auto-advance
        self.on_change = on_change
        self.auto_advance_delay = auto_advance_delay
        self.timers = TimerManager(on_timer_complete, interval=tick_interval)

        self.steps: List[Step] = []
        self.current_step_index = 0
        self.completed_steps: Set[int] = set()
        self.state = SessionState.INACTIVE
        self.notes = ""
        self._pending_advance: Optional[asyncio.TimerHandle] = None

    # -- views ---------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    @property
    def current_step(self) -> Optional[Step]:
        if 0 <= self.current_step_index < len(self.steps):
            return self.steps[self.current_step_index]
        return None

    @property
    def progress(self) -> float:
        if not self.steps:
            return 0.0
        return (self.current_step_index + 1) / len(self.steps) * 100

    @property
    def is_last_step(self) -> bool:
        return self.current_step_index == len(self.steps) - 1

    def snapshot(self) -> Dict[str, Any]:
        step = self.current_step
        return {
            "state": self.state.value,
            "current_step_index": self.current_step_index,
            "total_steps": len(self.steps),
            "step": step.model_dump(mode="json") if step else None,
            "completed_steps": sorted(self.completed_steps),
            "progress": round(self.progress),
            "settings": self.settings.model_dump(),
            "timers": [t.model_dump() for t in self.timers.timers],
            "notes": self.notes,
        }

    # -- lifecycle -----------------------------------------------------------

    def start(self, steps: Sequence[Step]) -> bool:
        if not steps:
            log.warning("Refusing to start a cooking session without instructions")
            return False

        self._cancel_pending_advance()
        self.timers.stop()
        self.timers.clear()
        self.steps = list(steps)
        self.current_step_index = 0
        self.completed_steps = set()
        self.notes = ""
        self.state = SessionState.ACTIVE
        self._start_clock()
        log.info(f"Cooking session started with {len(self.steps)} steps")
        self.announce()
        return True

    def exit(self) -> None:
        """Leave the session; completed steps and timers stay inspectable."""
        self._cancel_pending_advance()
        self.timers.stop()
        self.state = SessionState.INACTIVE
        log.info("Cooking session exited")
        self._fire(self.on_exit, "exit")

    # -- navigation ----------------------------------------------------------

    def next(self) -> bool:
        self._cancel_pending_advance()
        return self._advance()

    def previous(self) -> bool:
        self._cancel_pending_advance()
        if not self.is_active or self.current_step_index <= 0:
            return False
        return self._move_to(self.current_step_index - 1)

    def go_to(self, index: int) -> bool:
        self._cancel_pending_advance()
        if not self.is_active or not 0 <= index < len(self.steps):
            return False
        return self._move_to(index)

    def mark_complete(self) -> bool:
        if not self.is_active:
            return False

        self._cancel_pending_advance()
        self.completed_steps.add(self.current_step_index)

        if self.is_last_step:
            self.state = SessionState.COMPLETED
            self.timers.stop()
            log.info("All steps completed")
            self._fire(self.on_complete, "completion")
        elif self.settings.auto_advance:
            self._schedule_advance()
        else:
            self._advance()
        return True

    def update_settings(self, partial: Dict[str, Any]) -> CookingSettings:
        self.settings = self.settings.merged(partial)
        return self.settings

    # -- timers --------------------------------------------------------------

    def start_timer(self, name: str, minutes: float) -> Timer:
        return self.timers.create(name, minutes)

    def start_step_timer(self) -> Optional[Timer]:
        """Start a countdown for the current step's estimated duration."""
        step = self.current_step
        if not self.is_active or step is None or not step.estimated_time_minutes:
            return None
        return self.timers.create(f"Step {self.current_step_index + 1}", step.estimated_time_minutes)

    def toggle_timer(self, timer_id: str) -> bool:
        return self.timers.toggle(timer_id)

    def remove_timer(self, timer_id: str) -> bool:
        return self.timers.remove(timer_id)

    # -- internals -----------------------------------------------------------

    def _advance(self) -> bool:
        if not self.is_active or self.current_step_index >= len(self.steps) - 1:
            return False
        return self._move_to(self.current_step_index + 1)

    def _move_to(self, index: int) -> bool:
        if index == self.current_step_index:
            return False
        self.current_step_index = index
        self.announce()
        return True

    def announce(self) -> None:
        step = self.current_step
        if not self.settings.voice_enabled or not self.is_active or step is None:
            return
        if self.narrator is None:
            return
        try:
            self.narrator(self.current_step_index, step.instruction)
        except Exception as e:
            log.error(f"Narration failed for step {self.current_step_index + 1}: {e}")

    def _fire(self, callback: Optional[Callable[[], None]], name: str) -> None:
        if callback is None:
            return
        try:
            callback()
        except Exception as e:
            log.error(f"Session {name} callback failed: {e}")

    def _start_clock(self) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            log.debug("No running event loop; timers advance only on explicit tick()")
            return
        self.timers.start()

    def _schedule_advance(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.warning("No running event loop; auto-advancing immediately")
            self._advance()
            return
        origin = self.current_step_index
        self._pending_advance = loop.call_later(self.auto_advance_delay, self._deferred_advance, origin)

    def _deferred_advance(self, origin: int) -> None:
        self._pending_advance = None
        if not self.is_active or self.current_step_index != origin:
            log.debug(f"Dropping stale auto-advance from step {origin + 1}")
            return
        if self._advance():
            self._fire(self.on_change, "change")

    def _cancel_pending_advance(self) -> None:
        if self._pending_advance is not None:
            self._pending_advance.cancel()
            self._pending_advance = None
