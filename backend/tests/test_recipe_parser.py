import asyncio
from backend.app.services.recipe_parser import RecipeParser, build_steps


def test_regex_parse():
    text = "1. step one\n2) step two"

    async def run():
        return await RecipeParser.parse(text)

    recipe = asyncio.run(run())
    assert recipe.instructions == ["step one", "step two"]


def test_fallback_parse():
    text = "step one\n\nstep two"

    async def run():
        return await RecipeParser.parse(text, title="Eggs")

    recipe = asyncio.run(run())
    assert recipe.title == "Eggs"
    assert recipe.instructions == ["step one", "step two"]


def test_build_steps_preserves_order():
    steps = build_steps(["Boil water", "Add pasta", "Drain"])
    assert [s.id for s in steps] == ["step-0", "step-1", "step-2"]
    assert [s.instruction for s in steps] == ["Boil water", "Add pasta", "Drain"]


def test_build_steps_empty():
    assert build_steps([]) == []
