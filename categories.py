"""Loading category definitions and applying user keyword overrides."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Mapping

from errors import ConfigError
from models import Category

LOGGER = logging.getLogger(__name__)


def load_categories(path: Path) -> list[Category]:
    """Read the built-in definitions file (``{"categories": [...]}``)."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return [Category.from_dict(item, builtin=True) for item in data["categories"]]
    except (OSError, ValueError, KeyError, TypeError) as exc:
        raise ConfigError(f"Failed to load categories from {path}: {exc}") from exc


def load_user_overrides(path: Path) -> tuple[dict[str, list[str]], list[Category]]:
    """Read optional user edits: extra keywords per id plus custom categories.

    A missing file means no overrides.
    """
    if not path.exists():
        return {}, []

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        custom_keywords = {
            str(cat_id): [str(k) for k in keywords]
            for cat_id, keywords in (data.get("customKeywords") or {}).items()
        }
        custom_categories = [
            Category.from_dict(item, builtin=False) for item in data.get("customCategories") or []
        ]
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
        raise ConfigError(f"Failed to load user categories from {path}: {exc}") from exc

    return custom_keywords, custom_categories


def merge_category_definitions(
    builtin: Iterable[Category],
    custom_keywords: Mapping[str, Iterable[str]] | None = None,
    custom_categories: Iterable[Category] = (),
) -> list[Category]:
    """Combine built-ins with user additions into the list used for matching.

    Built-ins keep their position; custom categories follow. A custom category
    reusing a built-in id is ignored. Keywords are deduplicated
    case-insensitively, first spelling wins.
    """
    custom_keywords = custom_keywords or {}
    merged: list[Category] = []
    seen_ids: set[str] = set()

    for category in [*builtin, *custom_categories]:
        if category.id in seen_ids:
            LOGGER.warning("Ignoring duplicate category id: %s", category.id)
            continue
        seen_ids.add(category.id)
        keywords = _unique_keywords([*category.keywords, *custom_keywords.get(category.id, ())])
        merged.append(
            Category(
                id=category.id,
                name=category.name,
                keywords=keywords,
                description=category.description,
                builtin=category.builtin,
            )
        )

    return merged


def load_effective_categories(definitions_path: Path, overrides_path: Path) -> list[Category]:
    builtin = load_categories(definitions_path)
    custom_keywords, custom_categories = load_user_overrides(overrides_path)
    categories = merge_category_definitions(builtin, custom_keywords, custom_categories)
    LOGGER.info(
        "Loaded %s categories (%s custom)", len(categories), len(categories) - len(builtin)
    )
    return categories


def _unique_keywords(keywords: Iterable[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    out: list[str] = []
    for keyword in keywords:
        key = keyword.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(keyword.strip())
    return tuple(out)
