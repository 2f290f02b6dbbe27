"""Prompts for OpenAI models."""

RECIPE_PROMPT = """
You are a professional chef. I have the following ingredients: {ingredients}

Suggest exactly {recipe_count} {cuisine} dishes that use these ingredients as the main components
(you may add basic seasonings).

Return ONLY a JSON array in this format:

[
  {{
    "name": "Dish name",
    "ingredients": ["ingredient with quantity"],
    "instructions": ["Step 1", "Step 2"],
    "calories": "about 450 kcal",
    "tags": ["spicy", "easy", "high protein"]
  }}
]

⚠️ No introduction, no explanation, no markdown, no ``` code fences. Raw JSON only.
"""
