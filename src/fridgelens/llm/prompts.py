"""Prompt templates and response clean-up for the model backends."""

from __future__ import annotations

import re

DETECTION_PROMPT = (
    "Look at this image and list ONLY the food ingredients you can see. List them as a "
    'comma-separated list. Example: "chicken, tomatoes, lettuce, cheese". Only list the '
    "ingredients, nothing else."
)

RECIPE_PROMPT_TEMPLATE = """Create a detailed, delicious recipe using these ingredients: {ingredients}

Write the recipe in this exact format:

**[Creative Recipe Name]**

**Ingredients:**
- [List each ingredient with measurements]

**Instructions:**
1. [Detailed first step]
2. [Detailed second step]
3. [Continue with clear steps]

**Cooking Time:** [Total time]
**Difficulty:** Easy/Medium/Hard
**Servings:** [Number of servings]

Now write the complete recipe:"""

EMPHASIS_MARKER = "**"

_BOILERPLATE_PREFIX_RE = re.compile(
    r"^\s*(?:ingredients|here are the ingredients|i can see):\s*",
    re.IGNORECASE,
)


def build_recipe_prompt(ingredients: str) -> str:
    return RECIPE_PROMPT_TEMPLATE.format(ingredients=ingredients.strip())


def clean_ingredients(raw: str) -> str:
    """Strip the boilerplate models wrap around an ingredient list.

    >>> clean_ingredients("Here are the ingredients: eggs, milk.")
    'eggs, milk'
    """

    text = _BOILERPLATE_PREFIX_RE.sub("", (raw or "").strip(), count=1).strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        text = text[1:-1].strip()
    if text.endswith("."):
        text = text[:-1].rstrip()
    return text


def ensure_recipe_heading(recipe: str, ingredients: str) -> str:
    """Prepend a bold heading when the model ignored the markdown format."""

    text = (recipe or "").strip()
    if EMPHASIS_MARKER in text:
        return text
    heading = f"{EMPHASIS_MARKER}Recipe with {ingredients.strip()}{EMPHASIS_MARKER}"
    return f"{heading}\n\n{text}" if text else heading


__all__ = [
    "DETECTION_PROMPT",
    "RECIPE_PROMPT_TEMPLATE",
    "EMPHASIS_MARKER",
    "build_recipe_prompt",
    "clean_ingredients",
    "ensure_recipe_heading",
]
