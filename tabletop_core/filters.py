"""Category filtering over already-ranked results.

Categories take no part in scoring, so filtering never re-runs the engine:
it only drops rows from an ordered list and keeps the order of the rest.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .community_ranking import AggregateScore, Game


@dataclass(frozen=True)
class CategoryPreset:
    name: str
    categories: tuple[str, ...]


def _game_of(item: AggregateScore | Game) -> Game:
    if isinstance(item, AggregateScore):
        return item.game
    return item


def available_categories(items: Iterable[AggregateScore | Game]) -> list[str]:
    """Sorted unique categories across games or ranked results."""
    found: set[str] = set()
    for item in items:
        found.update(_game_of(item).categories)
    return sorted(found, key=lambda cat: (cat.lower(), cat))


def filter_by_categories(
    results: Sequence[AggregateScore],
    categories: Iterable[str],
) -> list[AggregateScore]:
    """Keep results whose game has at least one selected category.

    An empty selection keeps every result.
    """
    selected = set(categories)
    if not selected:
        return list(results)
    return [item for item in results if selected.intersection(item.game.categories)]


def apply_preset(
    results: Sequence[AggregateScore],
    preset: CategoryPreset,
) -> list[AggregateScore]:
    return filter_by_categories(results, preset.categories)
