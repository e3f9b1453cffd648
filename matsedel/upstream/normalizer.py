"""
Normalizer Module
=================

Cleans up text scraped or fetched from upstreams so that meals and menu
titles look the same regardless of provider.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from matsedel.core.schema import Meal

# Leading/trailing whitespace (including NBSP and BOM) and periods
_EDGE_PATTERN = re.compile(r"^[\s\ufeff.]+|[\s\ufeff.]+$")
_WHITESPACE_PATTERN = re.compile(r"[\s\ufeff]+")


def trim_title(value: str) -> str:
    """
    Remove excess whitespace and punctuation.

    Strips whitespace and periods from both ends and collapses every
    internal whitespace run into a single space.

    Args:
        value: Raw text, e.g. ``"\\n  Veg. Potatisbullar.\\n"``

    Returns:
        Polished text, e.g. ``"Veg. Potatisbullar"``
    """
    return _WHITESPACE_PATTERN.sub(" ", _EDGE_PATTERN.sub("", value))


def polish_meal_value(value: str) -> str:
    """Normalize the text of a single meal."""
    return trim_title(value)


def meal_key(value: str) -> str:
    """Comparison key under which two meals are considered the same dish."""
    return polish_meal_value(value).casefold()


def polish_meals(meals: Iterable[Meal]) -> list[Meal]:
    """
    Trim and deduplicate meals, keeping the first occurrence of each dish.

    Meals that are empty after trimming are dropped.
    """
    seen: set[str] = set()
    result: list[Meal] = []

    for meal in meals:
        value = polish_meal_value(meal.value)
        key = meal_key(value)
        if not value or key in seen:
            continue
        seen.add(key)
        result.append(meal.model_copy(update={"value": value}))

    return result
