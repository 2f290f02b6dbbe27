import asyncio

import pytest
from pydantic import ValidationError

from fridge_chef.recipes import Recipe, RecipePipeline, build_recipe_prompt, parse_recipes
from fridge_chef.utils import strip_code_fences

ONE_RECIPE = (
    '[{"name":"A","ingredients":["x"],"instructions":["y"],'
    '"calories":"100 kcal","tags":["t"]}]'
)


class FakeGenerator:
    def __init__(self, reply="[]", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


def _request(generator, labels):
    return asyncio.run(RecipePipeline(generator).request_recipes(labels))


def test_fenced_json_response_parses_into_one_recipe():
    generator = FakeGenerator(reply=f"```json\n{ONE_RECIPE}\n```")

    recipes = _request(generator, ["egg"])

    assert len(recipes) == 1
    assert isinstance(recipes[0], Recipe)
    assert recipes[0].name == "A"
    assert recipes[0].ingredients == ["x"]
    assert recipes[0].instructions == ["y"]
    assert recipes[0].calories == "100 kcal"
    assert recipes[0].tags == ["t"]


def test_non_json_response_returns_empty_list():
    assert _request(FakeGenerator(reply="not json at all"), ["egg"]) == []


def test_wrong_shape_returns_empty_list():
    assert _request(FakeGenerator(reply='{"name": "A"}'), ["egg"]) == []
    assert _request(FakeGenerator(reply='[{"name": "A"}]'), ["egg"]) == []


def test_empty_response_returns_empty_list():
    assert _request(FakeGenerator(reply=""), ["egg"]) == []


def test_generator_failure_returns_empty_list():
    generator = FakeGenerator(error=ConnectionError("service unreachable"))

    assert _request(generator, ["egg"]) == []
    assert len(generator.prompts) == 1


def test_prompt_contains_every_label():
    generator = FakeGenerator(reply=ONE_RECIPE)

    _request(generator, ["egg", "tomato"])

    prompt = generator.prompts[0]
    assert "egg" in prompt
    assert "tomato" in prompt
    assert "egg, tomato" in prompt


def test_prompt_is_deterministic_and_names_count_and_cuisine():
    first = build_recipe_prompt(["egg", "rice"], recipe_count=3, cuisine="Thai")
    second = build_recipe_prompt(["egg", "rice"], recipe_count=3, cuisine="Thai")

    assert first == second
    assert "exactly 3 Thai dishes" in first
    assert '"calories"' in first
    assert "JSON array" in first


def test_pipeline_passes_its_settings_to_the_prompt():
    generator = FakeGenerator(reply=ONE_RECIPE)

    asyncio.run(RecipePipeline(generator, recipe_count=5, cuisine="Italian").request_recipes(["basil"]))

    assert "exactly 5 Italian dishes" in generator.prompts[0]


@pytest.mark.parametrize(
    "raw",
    [
        ONE_RECIPE,
        f"```json\n{ONE_RECIPE}\n```",
        f"```JSON\n{ONE_RECIPE}```",
        f"```\n{ONE_RECIPE}\n```",
        f"  {ONE_RECIPE}\n```  ",
    ],
)
def test_strip_code_fences_variants(raw):
    assert strip_code_fences(raw) == ONE_RECIPE


def test_parse_recipes_rejects_malformed_input():
    with pytest.raises(ValueError):
        parse_recipes("not json at all")
    with pytest.raises(ValidationError):
        parse_recipes('[{"name": "A", "calories": 100}]')


def test_parse_recipes_accepts_empty_array():
    assert parse_recipes("[]") == []


class AsyncFakeGenerator(FakeGenerator):
    async def complete(self, prompt):
        self.prompts.append(prompt)
        return self.reply


def test_async_generator_is_awaited():
    generator = AsyncFakeGenerator(reply=ONE_RECIPE)

    recipes = _request(generator, ["egg"])

    assert [r.name for r in recipes] == ["A"]
    assert len(generator.prompts) == 1
