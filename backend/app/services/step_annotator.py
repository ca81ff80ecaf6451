"""
Heuristic annotation of free-text recipe instructions.

Each instruction is turned into a ``Step`` carrying timing, temperature,
techniques, tips, warnings, equipment, a difficulty grade and a hint about
preparing for the following step. Extraction is keyword and regex based; a
pattern that does not match simply leaves its field unset.

Technique and hazard detection is an ordered table of rules. Every rule that
matches fires, in table order, and a later difficulty overwrites an earlier
one.
"""

from __future__ import annotations

import math
import re
from typing import Callable, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from ..models.recipe import Difficulty, Step

TIME_PATTERN = re.compile(
    r"(?<![\d.])(\d{1,6}(?:\.\d{1,6})?)(?![\d.])\s*(minutes?|mins?|hours?|hrs?|seconds?|secs?)\b", re.I
)
# Numerals longer than six digits are not quantities; leave the field unset.
TEMPERATURE_PATTERN = re.compile(r"(?<!\d)(\d{1,6})\s*°?\s*([fc])(?![a-z])", re.I)

COMPLEX_TECHNIQUES = ("julienne", "brunoise", "chiffonade", "emulsify", "flambé", "flambe", "confit")
MEDIUM_TECHNIQUES = ("sauté", "braise", "reduce", "whisk", "fold", "temper")

PREHEAT_HINT = "Start preheating your oven for the next step"
PREP_AHEAD_HINT = "While this cooks, prepare ingredients for the next step"


class StepPatch(BaseModel):
    """Partial step produced by a single rule."""

    techniques: List[str] = []
    tips: List[str] = []
    equipment: List[str] = []
    warnings: List[str] = []
    difficulty: Optional[Difficulty] = None


Rule = Callable[[str], Optional[StepPatch]]


def _has_any(text: str, *words: str) -> bool:
    return any(word in text for word in words)


def _saute(text: str) -> Optional[StepPatch]:
    if not _has_any(text, "sauté", "saute", "fry"):
        return None
    return StepPatch(
        techniques=["sautéing"],
        tips=[
            "Heat the pan before adding oil for even cooking",
            "Don't overcrowd - cook in batches for best results",
        ],
        equipment=["frying pan", "spatula"],
        difficulty=Difficulty.MEDIUM,
    )


def _boil(text: str) -> Optional[StepPatch]:
    if "boil" not in text:
        return None
    return StepPatch(
        techniques=["boiling"],
        tips=[
            "Salt the water generously - it should taste like seawater",
            "Wait for a vigorous rolling boil before adding ingredients",
        ],
        equipment=["large pot"],
        difficulty=Difficulty.EASY,
    )


def _simmer(text: str) -> Optional[StepPatch]:
    if "simmer" not in text:
        return None
    return StepPatch(
        techniques=["simmering"],
        tips=[
            "Keep bubbles gentle - adjust heat as needed",
            "Partially cover to prevent too much evaporation",
        ],
        difficulty=Difficulty.MEDIUM,
    )


def _knife_work(text: str) -> Optional[StepPatch]:
    if not _has_any(text, "chop", "dice", "mince"):
        return None
    fine = _has_any(text, "mince", "finely")
    return StepPatch(
        techniques=["knife skills"],
        tips=[
            "Keep fingers curled - use knuckles as a guide",
            "A sharp knife is safer and more efficient than a dull one",
        ],
        equipment=["chef's knife", "cutting board"],
        difficulty=Difficulty.MEDIUM if fine else Difficulty.EASY,
    )


def _whisk(text: str) -> Optional[StepPatch]:
    if not _has_any(text, "whisk", "beat"):
        return None
    return StepPatch(
        techniques=["whisking"],
        tips=[
            "Use a figure-8 motion for best incorporation",
            "Don't overbeat - stop when just combined",
        ],
        equipment=["whisk", "mixing bowl"],
    )


def _fold(text: str) -> Optional[StepPatch]:
    if "fold" not in text:
        return None
    return StepPatch(
        techniques=["folding"],
        tips=[
            "Use a gentle cutting and turning motion",
            "Rotate the bowl as you fold for even mixing",
        ],
        difficulty=Difficulty.MEDIUM,
    )


def _season(text: str) -> Optional[StepPatch]:
    if not _has_any(text, "season", "salt"):
        return None
    return StepPatch(
        tips=[
            "Taste as you go - you can always add more",
            "Season at multiple stages for depth of flavor",
        ]
    )


def _garlic(text: str) -> Optional[StepPatch]:
    if "garlic" not in text:
        return None
    return StepPatch(warnings=["Don't let garlic burn - it becomes bitter quickly"])


def _hot_oil(text: str) -> Optional[StepPatch]:
    if "oil" not in text or not _has_any(text, "hot", "heat"):
        return None
    return StepPatch(warnings=["Watch for oil smoking - reduce heat if needed"])


def _dairy(text: str) -> Optional[StepPatch]:
    if not _has_any(text, "cream", "milk"):
        return None
    return StepPatch(warnings=["Don't let dairy boil - it may curdle"])


def _melting_chocolate(text: str) -> Optional[StepPatch]:
    if "chocolate" not in text or "melt" not in text:
        return None
    return StepPatch(
        tips=["Use a double boiler or low microwave power"],
        warnings=["Melt slowly - chocolate burns easily"],
    )


# Applied top to bottom; order decides which difficulty survives.
RULES: Tuple[Rule, ...] = (
    _saute,
    _boil,
    _simmer,
    _knife_work,
    _whisk,
    _fold,
    _season,
    _garlic,
    _hot_oil,
    _dairy,
    _melting_chocolate,
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def extract_minutes(instruction: str) -> Optional[int]:
    """Duration of the last time phrase in the text, in whole minutes."""
    matches = TIME_PATTERN.findall(instruction)
    if not matches:
        return None
    amount, unit = matches[-1]
    value = float(amount)
    unit = unit.lower()
    if unit.startswith("h"):
        return _round_half_up(value * 60)
    if unit.startswith("s"):
        return _round_half_up(value / 60)
    return _round_half_up(value)


def extract_temperature(instruction: str) -> Optional[int]:
    match = TEMPERATURE_PATTERN.search(instruction)
    if match is None:
        return None
    return int(match.group(1))


def default_difficulty(text: str) -> Difficulty:
    if _has_any(text, *COMPLEX_TECHNIQUES):
        return Difficulty.HARD
    if _has_any(text, *MEDIUM_TECHNIQUES):
        return Difficulty.MEDIUM
    return Difficulty.EASY


def next_step_hint(
    estimated_minutes: Optional[int], index: int, all_instructions: Sequence[str]
) -> Optional[str]:
    if index >= len(all_instructions) - 1:
        return None
    following = (all_instructions[index + 1] or "").lower()
    if "preheat" in following:
        return PREHEAT_HINT
    if "add" in following and estimated_minutes is not None and estimated_minutes > 3:
        return PREP_AHEAD_HINT
    return None


def _append_unique(target: List[str], items: List[str]) -> None:
    for item in items:
        if item not in target:
            target.append(item)


def annotate(instruction: Optional[str], index: int, all_instructions: Sequence[str]) -> Step:
    """Build the annotated step for ``instruction`` at position ``index``."""
    text = instruction or ""
    lowered = text.lower()

    techniques: List[str] = []
    tips: List[str] = []
    equipment: List[str] = []
    warnings: List[str] = []
    difficulty: Optional[Difficulty] = None

    for rule in RULES:
        patch = rule(lowered)
        if patch is None:
            continue
        _append_unique(techniques, patch.techniques)
        _append_unique(equipment, patch.equipment)
        tips.extend(patch.tips)
        warnings.extend(patch.warnings)
        if patch.difficulty is not None:
            difficulty = patch.difficulty

    minutes = extract_minutes(text)
    return Step(
        id=f"step-{index}",
        instruction=text,
        estimated_time_minutes=minutes,
        temperature=extract_temperature(text),
        techniques=techniques,
        tips=tips,
        warnings=warnings or None,
        equipment=equipment,
        difficulty=difficulty or default_difficulty(lowered),
        next_step_prep=next_step_hint(minutes, index, all_instructions),
    )
