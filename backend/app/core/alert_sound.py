"""
Timer alert audio. Loads the custom alert asset, down-mixes it to mono,
resamples it to the output rate and yields PCM16 bytes ready for the
browser. When the asset cannot be read a short sine beep is synthesized
instead.
"""

import logging
from typing import Optional

import numpy as np
import resampy
import soundfile as sf

from .config import get_settings

log = logging.getLogger(__name__)

BEEP_FREQUENCY = 800
BEEP_SECONDS = 0.3
BEEP_GAIN = 0.3


class AlertSound:
    def __init__(self, path: Optional[str] = None) -> None:
        self.settings = get_settings()
        self.path = path or self.settings.timer_sound_path
        self._cached: Optional[bytes] = None

    @staticmethod
    def to_pcm16(audio: np.ndarray) -> bytes:
        # Clamp to [-1, 1] range and scale to int16 range
        audio_clamped = np.clip(audio, -1.0, 1.0)
        audio_int16 = (audio_clamped * 32767).astype(np.int16)
        return audio_int16.tobytes()

    def beep(self) -> bytes:
        rate = self.settings.sampling_rate_out
        t = np.arange(int(rate * BEEP_SECONDS)) / rate
        tone = BEEP_GAIN * np.sin(2 * np.pi * BEEP_FREQUENCY * t)
        return self.to_pcm16(tone.astype(np.float32))

    def load(self) -> bytes:
        audio, rate = sf.read(self.path, dtype="float32")
        if audio.ndim > 1:
            audio = audio.mean(axis=1)
        if rate != self.settings.sampling_rate_out:
            audio = resampy.resample(audio, rate, self.settings.sampling_rate_out)
        return self.to_pcm16(audio)

    def pcm(self) -> bytes:
        """Custom alert if readable, otherwise the fallback beep."""
        if self._cached is None:
            try:
                self._cached = self.load()
            except (OSError, RuntimeError) as e:
                log.warning(f"Alert sound '{self.path}' unavailable, using beep: {e}")
                self._cached = self.beep()
        return self._cached
