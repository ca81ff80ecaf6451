import asyncio
import base64
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from ..models.recipe import CookingSettings, Timer
from .alert_sound import AlertSound

log = logging.getLogger(__name__)

Send = Callable[[Dict[str, Any]], Awaitable[None]]


class TimerAlert:
    """
    Completion notifier: turns a finished timer into a notification message,
    with an audible alert when sound is enabled.
    """

    def __init__(self, send: Send, settings: Callable[[], CookingSettings], sound: Optional[AlertSound] = None):
        self.send = send
        self.settings = settings
        self.sound = sound or AlertSound()

    def build(self, timer: Timer) -> Dict[str, Any]:
        message: Dict[str, Any] = {
            "type": "timer_complete",
            "timer_id": timer.id,
            "name": timer.name,
            "title": f"Timer Complete: {timer.name}",
            "body": "Your cooking timer has finished!",
            "audio": None,
        }
        if self.settings().sound_enabled:
            try:
                message["audio"] = base64.b64encode(self.sound.pcm()).decode("utf-8")
            except Exception as e:
                log.error(f"Could not render alert sound for '{timer.name}': {e}")
        return message

    async def __call__(self, timer: Timer) -> None:
        # Decoding and resampling the alert asset blocks, keep it off the loop
        message = await asyncio.to_thread(self.build, timer)
        await self.send(message)
