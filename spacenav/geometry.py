"""Polygon primitives used by the grid rasterizer.

`point_in_polygon` is the hot path of rasterization and stays a plain
ray-casting loop. Tolerance lookups (which corridor is a path point in?)
are not performance sensitive and use shapely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from shapely.geometry import LineString, Point, Polygon

from spacenav.models import Corridor

PolygonPoints = Sequence[tuple[float, float]]


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned polygon bounds."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y


def point_in_polygon(x: float, y: float, polygon: PolygonPoints) -> bool:
    """Even-odd ray casting test.

    Degenerate polygons (fewer than 3 vertices) contain nothing. Points on an
    edge may be classified either way.
    """
    if not polygon or len(polygon) < 3:
        return False

    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i][0], polygon[i][1]
        xj, yj = polygon[j][0], polygon[j][1]
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def bounding_box(polygon: PolygonPoints) -> BoundingBox:
    """Return polygon bounds; an empty polygon yields a zero box."""
    if not polygon:
        return BoundingBox(0.0, 0.0, 0.0, 0.0)

    xs = [float(p[0]) for p in polygon]
    ys = [float(p[1]) for p in polygon]
    return BoundingBox(min(xs), min(ys), max(xs), max(ys))


def boxes_overlap(a: BoundingBox, b: BoundingBox) -> bool:
    """Strict box intersection; boxes sharing only an edge do not overlap."""
    return a.min_x < b.max_x and a.max_x > b.min_x and a.min_y < b.max_y and a.max_y > b.min_y


def polygons_overlap(a: PolygonPoints, b: PolygonPoints) -> bool:
    """Coarse overlap test on bounding boxes only.

    This is not a polygon intersection test. It only validates cells that
    bridge two corridors during rasterization.
    """
    return boxes_overlap(bounding_box(a), bounding_box(b))


def _outline(polygon: PolygonPoints) -> LineString | Point | None:
    coords = [(float(p[0]), float(p[1])) for p in polygon]
    if not coords:
        return None
    if len(coords) == 1:
        return Point(coords[0])
    if len(coords) == 2:
        return LineString(coords)
    return Polygon(coords).exterior


def distance_to_polygon(x: float, y: float, polygon: PolygonPoints) -> float:
    """Distance from a point to the polygon outline (0 when inside)."""
    if point_in_polygon(x, y, polygon):
        return 0.0
    outline = _outline(polygon)
    if outline is None:
        return float("inf")
    return float(outline.distance(Point(x, y)))


def corridor_at(
    x: float,
    y: float,
    corridors: Iterable[Corridor],
    tolerance: float = 10.0,
) -> Corridor | None:
    """Find the corridor containing a point, or the nearest one within tolerance."""
    candidates = list(corridors)
    for corridor in candidates:
        if point_in_polygon(x, y, corridor.polygon):
            return corridor

    best: Corridor | None = None
    best_dist = float("inf")
    for corridor in candidates:
        dist = distance_to_polygon(x, y, corridor.polygon)
        if dist < best_dist:
            best_dist = dist
            best = corridor

    if best is not None and best_dist <= float(tolerance):
        return best
    return None
