"""
Step narration. Speech is synthesized with the OpenAI speech API when a key
is configured; otherwise, or when synthesis fails, the text is handed to the
browser for its own speech synthesis.
"""

import asyncio
import base64
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import openai

from ..core.config import get_settings

log = logging.getLogger(__name__)

Send = Callable[[Dict[str, Any]], Awaitable[None]]


class Narrator:
    def __init__(self, send: Send, client: Optional[openai.AsyncOpenAI] = None):
        self.settings = get_settings()
        self.send = send
        self.client = client
        if self.client is None and self.settings.openai_api_key:
            self.client = openai.AsyncOpenAI(api_key=self.settings.openai_api_key)
        self._current: Optional[asyncio.Task] = None

    def __call__(self, step_index: int, text: str) -> None:
        """Speak ``text``, superseding whatever is still being spoken."""
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.warning("No running event loop, narration dropped")
            return
        self._current = loop.create_task(self.speak(step_index, text))

    def cancel(self) -> None:
        if self._current is not None and not self._current.done():
            self._current.cancel()
        self._current = None

    async def synthesize(self, text: str) -> bytes:
        response = await self.client.audio.speech.create(
            model=self.settings.tts_model,
            voice=self.settings.tts_voice,
            input=text,
            response_format="pcm",
        )
        return response.content

    async def speak(self, step_index: int, text: str) -> None:
        message: Dict[str, Any] = {"type": "tts", "step_index": step_index, "tts": text}
        if self.client is not None:
            try:
                pcm = await self.synthesize(text)
                message["audio"] = base64.b64encode(pcm).decode("utf-8")
            except openai.OpenAIError as e:
                log.warning(f"Speech synthesis failed, falling back to browser speech: {e}")
        log.info(f"🔊 Narrating step {step_index + 1}: '{text[:100]}{'...' if len(text) > 100 else ''}'")
        await self.send(message)
