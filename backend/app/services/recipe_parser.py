"""
Turns recipe input into the ordered step collection a cooking session runs on.
"""

import re
from typing import List, Optional, Sequence

from ..models.recipe import Recipe, Step
from .step_annotator import annotate


def build_steps(instructions: Sequence[Optional[str]]) -> List[Step]:
    """Annotate every instruction, keeping order and position."""
    return [annotate(instruction, index, instructions) for index, instruction in enumerate(instructions)]


class RecipeParser:
    step_pattern = re.compile(r"^\s*\d+[.\)]\s*(.*)$", re.M)

    @classmethod
    async def parse(cls, raw: str, title: str = "Untitled") -> Recipe:
        instructions: List[str] = []
        for match in cls.step_pattern.finditer(raw):
            if match.group(1).strip():
                instructions.append(match.group(1).strip())

        if not instructions:
            # Fallback to trivial split
            instructions = [line.strip() for line in raw.splitlines() if line.strip()]

        return Recipe(title=title, instructions=instructions)
