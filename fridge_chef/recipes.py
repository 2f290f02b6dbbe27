"""Recipe suggestions from the aggregated ingredient set."""

import asyncio
import inspect
import json
import logging
import time
from typing import Iterable, List, Protocol

from pydantic import BaseModel, TypeAdapter

from fridge_chef.config import RECIPE_COUNT, RECIPE_CUISINE
from fridge_chef.prompts import RECIPE_PROMPT
from fridge_chef.utils import strip_code_fences

logger = logging.getLogger(__name__)


class Recipe(BaseModel):
    """One suggested dish."""

    name: str
    ingredients: List[str]
    instructions: List[str]
    calories: str
    tags: List[str]


_RECIPE_LIST = TypeAdapter(List[Recipe])


class GenerationService(Protocol):
    """Sync or async: complete() may also be a coroutine function."""

    def complete(self, prompt: str) -> str: ...


def build_recipe_prompt(
    labels: Iterable[str],
    recipe_count: int = RECIPE_COUNT,
    cuisine: str = RECIPE_CUISINE,
) -> str:
    """Fill the recipe template; labels are joined in the order given."""
    return RECIPE_PROMPT.format(
        ingredients=", ".join(labels),
        recipe_count=recipe_count,
        cuisine=cuisine,
    )


def parse_recipes(text: str) -> List[Recipe]:
    """
    Parse model output into recipes.

    Raises ValueError (json.JSONDecodeError / pydantic.ValidationError) when the
    cleaned text is not a JSON array of recipe objects.
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise ValueError("Empty model output")
    return _RECIPE_LIST.validate_python(json.loads(cleaned))


class RecipePipeline:
    """
    Ingredients → prompt → generation service → typed recipes.

    Callers must not pass an empty ingredient set; no guard is applied here.
    """

    def __init__(
        self,
        generator: GenerationService,
        recipe_count: int = RECIPE_COUNT,
        cuisine: str = RECIPE_CUISINE,
    ):
        self.generator = generator
        self.recipe_count = recipe_count
        self.cuisine = cuisine

    async def _complete(self, prompt: str) -> str:
        if inspect.iscoroutinefunction(self.generator.complete):
            return await self.generator.complete(prompt)
        return await asyncio.to_thread(self.generator.complete, prompt)

    async def request_recipes(self, labels: Iterable[str]) -> List[Recipe]:
        labels = list(labels)
        start = time.time()
        logger.info("[PIPELINE] Requesting recipes for %s ingredients: %s", len(labels), labels)

        # Every failure (transport, empty reply, bad JSON, wrong shape) ends as an
        # empty list. Callers treat "nothing useful came back" and "the call failed"
        # the same way, so there is no separate error channel.
        try:
            prompt = build_recipe_prompt(labels, self.recipe_count, self.cuisine)
            raw_text = await self._complete(prompt)
            logger.debug("Recipe raw response: %s", raw_text)
            recipes = parse_recipes(raw_text)
        except Exception:
            logger.exception("Recipe generation failed, returning no recipes")
            return []

        logger.info(
            "[PIPELINE] Received %s recipes in %sms",
            len(recipes),
            round((time.time() - start) * 1000, 2),
        )
        return recipes
