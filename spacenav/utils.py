"""Utility helpers shared across spacenav modules.

Purpose:
- Measure and simplify extracted paths.
- Convert paths to JSON-safe payload types.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

PathPoint = tuple[float, float]


def to_serializable_path(path: Iterable[PathPoint]) -> list[dict[str, float]]:
    """Convert `(x, y)` tuples to JSON-friendly dictionary objects."""
    return [{"x": float(x), "y": float(y)} for x, y in path]


def path_length(path: Sequence[PathPoint]) -> float:
    """Total polyline length of a path."""
    total = 0.0
    for i in range(1, len(path)):
        total += math.dist(path[i - 1], path[i])
    return total


def _segment_distance(point: PathPoint, start: PathPoint, end: PathPoint) -> float:
    """Distance from `point` to the segment `start -> end`."""
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return math.dist(point, start)

    t = ((point[0] - start[0]) * dx + (point[1] - start[1]) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.dist(point, (start[0] + t * dx, start[1] + t * dy))


def simplify_path(path: Sequence[PathPoint], tolerance: float = 15.0) -> list[PathPoint]:
    """Douglas-Peucker simplification keeping both endpoints."""
    if tolerance < 0:
        raise ValueError("tolerance must be >= 0")
    if len(path) <= 2:
        return list(path)

    first = path[0]
    last = path[-1]
    max_dist = 0.0
    max_idx = 0
    for i in range(1, len(path) - 1):
        dist = _segment_distance(path[i], first, last)
        if dist > max_dist:
            max_dist = dist
            max_idx = i

    if max_dist > tolerance:
        left = simplify_path(path[: max_idx + 1], tolerance)
        right = simplify_path(path[max_idx:], tolerance)
        return left[:-1] + right
    return [first, last]
