from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, conint


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Step(BaseModel):
    id: str
    instruction: str = ""
    estimated_time_minutes: Optional[conint(ge=0)] = None
    temperature: Optional[int] = None
    techniques: List[str] = []
    tips: List[str] = []
    warnings: Optional[List[str]] = None
    equipment: List[str] = []
    difficulty: Difficulty = Difficulty.EASY
    next_step_prep: Optional[str] = None


class Timer(BaseModel):
    id: str
    name: str
    duration_sec: conint(ge=0)
    remaining_sec: conint(ge=0)
    is_active: bool = True
    is_complete: bool = False


class CookingSettings(BaseModel):
    voice_enabled: bool = False
    show_tips: bool = True
    auto_advance: bool = False
    sound_enabled: bool = True
    compact_mode: bool = False

    def merged(self, partial: Dict[str, Any]) -> "CookingSettings":
        """Shallow merge of recognised keys; unknown keys are dropped."""
        known = {k: v for k, v in partial.items() if k in type(self).model_fields}
        return self.model_validate({**self.model_dump(), **known})


class Recipe(BaseModel):
    title: str
    instructions: List[str]
