"""
Group → sort → truncate → summarize → render pipeline.

Every report that lists API rows in sections (per gene, per tissue, per
credible set, ...) is configured from these helpers instead of repeating
the grouping logic per tool.
"""

import math
from typing import Any, Callable, Hashable, Iterable, Optional, Sequence, TypeVar

from gtex_mcp.services.formatter import more_marker

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


def group_by(items: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    """
    Group items by a derived key.

    Groups come out in the order their keys were first seen, never sorted.
    """
    groups: dict[K, list[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def count_by(records: Iterable[dict[str, Any]], field: str, missing: str = "Unknown") -> dict[Any, int]:
    """Count records per field value; empty values count under ``missing``."""
    counts: dict[Any, int] = {}
    for record in records:
        value = record.get(field) or missing
        counts[value] = counts.get(value, 0) + 1
    return counts


def numeric(value: Any, default: float = 0.0) -> float:
    """Sort-safe number: None and non-numeric values become ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(number) else number


def rank(
    items: Sequence[T],
    sort_key: Optional[Callable[[T], Any]] = None,
    descending: bool = False,
    top_n: Optional[int] = None,
) -> tuple[list[T], int]:
    """
    Sort and truncate a group.

    The sort is stable, so ties keep their upstream order.

    Returns:
        (shown items, number of items cut off)
    """
    ordered = sorted(items, key=sort_key, reverse=descending) if sort_key else list(items)
    shown = ordered if top_n is None else ordered[:top_n]
    return shown, len(ordered) - len(shown)


def render_ranked(
    items: Sequence[T],
    render_item: Callable[[int, T], str],
    sort_key: Optional[Callable[[T], Any]] = None,
    descending: bool = False,
    top_n: Optional[int] = None,
    marker_noun: str = "",
    marker_indent: str = "  ",
) -> list[str]:
    """
    Render a ranked, truncated list.

    Args:
        items: Items of one group
        render_item: Renders (1-based index, item) to one or more lines
        sort_key: Ranking key (None keeps upstream order)
        descending: Larger values first (expression, effect sizes, PIPs)
        top_n: Items to show (None shows all)
        marker_noun: Noun for the "... and N more" line
        marker_indent: Indentation of the marker line

    Returns:
        Report lines
    """
    shown, remaining = rank(items, sort_key, descending, top_n)
    lines = [render_item(index, item) for index, item in enumerate(shown, 1)]
    if remaining > 0:
        lines.append(more_marker(remaining, marker_noun, marker_indent))
    return lines


def render_grouped_report(
    records: Iterable[T],
    key: Callable[[T], K],
    header: Callable[[K, list[T]], str],
    render_item: Callable[[int, T], str],
    sort_key: Optional[Callable[[T], Any]] = None,
    descending: bool = False,
    top_n: Optional[int] = None,
    summarize: Optional[Callable[[K, list[T]], list[str]]] = None,
    marker_noun: str = "",
    marker_indent: str = "  ",
) -> list[str]:
    """
    Full pipeline: group, then per group header, ranked list and summary.

    The summary always sees the whole group, not just the shown items.
    """
    lines: list[str] = []
    for group_key, group in group_by(records, key).items():
        lines.append(header(group_key, group))
        lines.extend(
            render_ranked(
                group,
                render_item,
                sort_key=sort_key,
                descending=descending,
                top_n=top_n,
                marker_noun=marker_noun,
                marker_indent=marker_indent,
            )
        )
        if summarize is not None:
            lines.extend(summarize(group_key, group))
    return lines


def match_tissue_group(tissue_id: str, groups: Sequence[str]) -> Optional[str]:
    """
    Assign a tissue to the first requested group it matches.

    A tissue matches a group when its lowercased identifier contains the
    lowercased group name. brain, heart, muscle and skin keep their own
    branches so their matching can diverge from the generic rule.
    """
    tissue = tissue_id.lower()
    for group in groups:
        name = group.lower()
        if (
            name in tissue
            or (name == "brain" and "brain" in tissue)
            or (name == "heart" and "heart" in tissue)
            or (name == "muscle" and "muscle" in tissue)
            or (name == "skin" and "skin" in tissue)
        ):
            return group
    return None
