# solver/geometry.py
"""Coordinate parsing and the bounding-box "spread" used by Nearness rules."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from models import Item

logger = logging.getLogger(__name__)


class CoordinateParseError(ValueError):
    pass


@dataclass(frozen=True)
class Point:
    x: float
    y: float


def parse_point(text: str, separator: str = ",") -> Point:
    parts = str(text).split(separator)
    if len(parts) != 2:
        raise CoordinateParseError(f"failed to interpret {text!r} as x/y coordinate")
    try:
        x = float(parts[0].strip())
    except ValueError as e:
        raise CoordinateParseError(f"failed to parse x coordinate of {text!r}: {e}") from e
    try:
        y = float(parts[1].strip())
    except ValueError as e:
        raise CoordinateParseError(f"failed to parse y coordinate of {text!r}: {e}") from e
    return Point(x, y)


def spread(points: Sequence[Point]) -> float:
    """Width + height of the smallest axis-aligned box holding ``points``.

    Adding a point can only keep or grow the box, so the value never decreases
    as a group fills up.
    """
    if len(points) < 2:
        return 0.0
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return (max(xs) - min(xs)) + (max(ys) - min(ys))


class NearnessIndex:
    """Parsed coordinates and max spreads for one arrangement run.

    Keyed by tag name, then item ID. Items themselves are never touched.
    """

    def __init__(self, separator: str = ","):
        self.separator = separator
        self._points: Dict[str, Dict[str, Point]] = {}
        self._max_spread: Dict[str, float] = {}

    def populate(self, items: Iterable[Item], tag_names: Iterable[str]) -> None:
        items = list(items)
        for tag in tag_names:
            if tag in self._points:
                continue
            by_id: Dict[str, Point] = {}
            for item in items:
                val = item.tag(tag)
                if not val.strip():
                    continue
                try:
                    by_id[item.id] = parse_point(val, self.separator)
                except CoordinateParseError as e:
                    logger.warning("Skipping %s for nearness on %r: %s", item.id, tag, e)
            self._points[tag] = by_id

    def tags(self) -> List[str]:
        return list(self._points)

    def point(self, item: Item, tag: str) -> Optional[Point]:
        return self._points.get(tag, {}).get(item.id)

    def has_point(self, item: Item, tag: str) -> bool:
        return item.id in self._points.get(tag, {})

    def points_for(self, items: Iterable[Item], tag: str) -> List[Point]:
        by_id = self._points.get(tag, {})
        return [by_id[it.id] for it in items if it.id in by_id]

    def group_spread(self, items: Iterable[Item], tag: str) -> Tuple[float, int]:
        pts = self.points_for(items, tag)
        return spread(pts), len(pts)

    def max_spread(self, tag: str) -> float:
        cached = self._max_spread.get(tag)
        if cached is not None:
            return cached
        value = spread(list(self._points.get(tag, {}).values()))
        self._max_spread[tag] = value
        return value

    def ratio(self, group_spread: float, tag: str) -> float:
        # 0 when every point coincides: all groups are equally tight
        denom = self.max_spread(tag)
        if denom <= 0:
            return 0.0
        return group_spread / denom

    def clear(self) -> None:
        self._points.clear()
        self._max_spread.clear()
