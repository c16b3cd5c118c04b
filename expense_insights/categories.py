"""Keyword-based categorization of expense descriptions.

Categories are an ordered list of ``(name, keywords)`` pairs loaded from
``data/categories.json``.  Matching is case-insensitive substring search and
the first category with a matching keyword wins, so the declaration order in
the JSON file is significant.  A keyword must not appear under two
categories; this is checked by the test suite rather than at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd

from .defaults import load_config

OTHER_CATEGORY = 'Other'
DEFAULT_CATEGORY_BUDGET = 2000.0


@dataclass(frozen=True)
class CategoryDefinition:
    """A category and the keywords that select it."""
    name: str
    keywords: Tuple[str, ...]
    default_budget: float = DEFAULT_CATEGORY_BUDGET

    def matches(self, text_lower: str) -> bool:
        return any(keyword in text_lower for keyword in self.keywords)


@lru_cache(maxsize=8)
def load_categories(data_dir: Optional[Union[str, Path]] = None) -> Tuple[CategoryDefinition, ...]:
    """Load the ordered category definitions (without the ``Other`` fallback)."""
    raw = load_config('categories', data_dir)
    definitions = []
    for entry in raw.get('categories', []):
        name = str(entry.get('name', '')).strip()
        if not name:
            continue
        keywords = tuple(str(k).lower() for k in entry.get('keywords', []) if str(k).strip())
        definitions.append(
            CategoryDefinition(
                name=name,
                keywords=keywords,
                default_budget=float(entry.get('default_budget', DEFAULT_CATEGORY_BUDGET)),
            )
        )
    return tuple(definitions)


def classify(description: Optional[str], categories: Optional[Sequence[CategoryDefinition]] = None) -> str:
    """Return the category for a free-text description.

    Example:
        >>> classify('Uber to airport')
        'Transport'
        >>> classify('something unrecognised')
        'Other'
    """
    if not description:
        return OTHER_CATEGORY
    text = str(description).lower()
    for category in (categories if categories is not None else load_categories()):
        if category.matches(text):
            return category.name
    return OTHER_CATEGORY


def classify_series(descriptions: pd.Series, categories: Optional[Sequence[CategoryDefinition]] = None) -> pd.Series:
    """Apply :func:`classify` to every description in ``descriptions``."""
    definitions = categories if categories is not None else load_categories()
    return descriptions.fillna('').astype(str).apply(lambda text: classify(text, definitions))


def category_names(categories: Optional[Sequence[CategoryDefinition]] = None) -> List[str]:
    definitions = categories if categories is not None else load_categories()
    return [c.name for c in definitions] + [OTHER_CATEGORY]


def default_category_budget(name: str, categories: Optional[Sequence[CategoryDefinition]] = None) -> float:
    for category in (categories if categories is not None else load_categories()):
        if category.name == name:
            return category.default_budget
    return DEFAULT_CATEGORY_BUDGET
