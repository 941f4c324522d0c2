"""Navigability grid generation from corridor polygons.

Purpose:
- Rasterize corridor polygons into a boolean walkable grid per floor.
- Convert between continuous space coordinates and grid cells.
- Export a floor layer (grid + clearance) as JSON for diagnostics.

Grid convention (note: inverted with respect to an occupancy grid):
- grid[row, col] == 1 => navigable
- grid[row, col] == 0 => blocked

Usage example:
    >>> grid = rasterize(corridors, width=100, height=20, resolution=10, floor=0)
    >>> grid.shape
    (2, 10)
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Sequence

import numpy as np

from spacenav.geometry import BoundingBox, bounding_box, point_in_polygon, polygons_overlap
from spacenav.models import Corridor

GridCell = tuple[int, int]  # (row, col)


def grid_shape(width: float, height: float, resolution: float) -> tuple[int, int]:
    """Return `(rows, cols)` for a space of `width x height` at `resolution`."""
    if resolution <= 0:
        raise ValueError("resolution must be > 0")
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be > 0")
    return int(math.ceil(height / resolution)), int(math.ceil(width / resolution))


def point_to_cell(x: float, y: float, resolution: float) -> GridCell:
    """Map a continuous point to the `(row, col)` cell containing it (unclamped)."""
    if resolution <= 0:
        raise ValueError("resolution must be > 0")
    return int(math.floor(y / resolution)), int(math.floor(x / resolution))


def clamp_cell(cell: GridCell, shape: tuple[int, int]) -> GridCell:
    """Clamp a cell into grid bounds."""
    rows, cols = shape
    row = max(0, min(rows - 1, cell[0]))
    col = max(0, min(cols - 1, cell[1]))
    return row, col


def cell_center(row: int, col: int, resolution: float) -> tuple[float, float]:
    """Map a grid cell to the continuous `(x, y)` of its center."""
    return float((col + 0.5) * resolution), float((row + 0.5) * resolution)


def _floor_corridors(corridors: Sequence[Corridor], floor: int | None) -> list[Corridor]:
    if floor is None:
        return list(corridors)
    return [c for c in corridors if c.floor == floor]


def _overlap_pairs(corridors: list[Corridor]) -> set[tuple[int, int]]:
    """Precompute index pairs `(i, j)`, `i < j`, of corridors that overlap."""
    pairs: set[tuple[int, int]] = set()
    for i in range(len(corridors)):
        for j in range(i + 1, len(corridors)):
            if polygons_overlap(corridors[i].polygon, corridors[j].polygon):
                pairs.add((i, j))
    return pairs


def _containing(x: float, y: float, corridors: list[Corridor], boxes: list[BoundingBox]) -> list[int]:
    """Indices of corridors containing `(x, y)`."""
    hits: list[int] = []
    for idx, corridor in enumerate(corridors):
        if not boxes[idx].contains(x, y):
            continue
        if point_in_polygon(x, y, corridor.polygon):
            hits.append(idx)
    return hits


def rasterize(
    corridors: Sequence[Corridor],
    width: float | None,
    height: float | None,
    resolution: float,
    floor: int | None = None,
) -> np.ndarray:
    """Rasterize corridor polygons into a navigability grid.

    Args:
        corridors: Corridor polygons of the whole building.
        width: Space width in source units (pixels); `None` if not configured.
        height: Space height in source units; `None` if not configured.
        resolution: Cell edge length in source units.
        floor: Only corridors on this floor are used; `None` uses every corridor.

    Returns:
        `uint8` array of shape `(ceil(height/res), ceil(width/res))` with
        1 for navigable cells. A `(0, 0)` array when dimensions are missing.

    Raises:
        ValueError: If resolution or dimensions are not positive.
    """
    if width is None or height is None:
        return np.zeros((0, 0), dtype=np.uint8)

    rows, cols = grid_shape(width, height, resolution)
    grid = np.zeros((rows, cols), dtype=np.uint8)

    selected = _floor_corridors(corridors, floor)
    if not selected:
        return grid

    boxes = [bounding_box(c.polygon) for c in selected]
    overlaps = _overlap_pairs(selected)

    for r in range(rows):
        y0 = r * resolution
        y1 = (r + 1) * resolution
        cy = (r + 0.5) * resolution
        for c in range(cols):
            x0 = c * resolution
            x1 = (c + 1) * resolution
            cx = (c + 0.5) * resolution

            if _containing(cx, cy, selected, boxes):
                grid[r, c] = 1
                continue

            # Center missed: fall back to the corners to close seams along edges.
            touched: set[int] = set()
            for px, py in ((x0, y0), (x1, y0), (x0, y1), (x1, y1)):
                touched.update(_containing(px, py, selected, boxes))

            if len(touched) == 1:
                grid[r, c] = 1
            elif len(touched) > 1:
                # Several corridors only form a junction if each pair really overlaps;
                # otherwise this cell would bridge two merely adjacent corridors.
                ordered = sorted(touched)
                connected = all(
                    (ordered[i], ordered[j]) in overlaps
                    for i in range(len(ordered))
                    for j in range(i + 1, len(ordered))
                )
                if connected:
                    grid[r, c] = 1

    return grid


def export_layer_json(
    output_path: str | Path,
    grid: np.ndarray,
    clearance: np.ndarray,
    resolution: float,
    floor: int | None = None,
) -> str:
    """Export a floor layer (grid, clearance, metadata) to a JSON file.

    Args:
        output_path: Destination JSON path.
        grid: Navigability grid.
        clearance: Clearance field with the same shape as `grid`.
        resolution: Cell edge length in source units.
        floor: Floor key of the layer (`None` for the combined layer).

    Returns:
        String path to exported JSON file.

    Raises:
        ValueError: If grid, clearance or resolution are invalid.
    """
    if not isinstance(grid, np.ndarray) or grid.ndim != 2 or grid.size == 0:
        raise ValueError("grid must be a non-empty 2D numpy array")
    if not isinstance(clearance, np.ndarray) or clearance.shape != grid.shape:
        raise ValueError("clearance must be a numpy array shaped like grid")
    if resolution <= 0:
        raise ValueError("resolution must be > 0")

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    payload = {
        "floor": floor,
        "grid": grid.astype(int).tolist(),
        "clearance": clearance.astype(float).tolist(),
        "rows": int(grid.shape[0]),
        "cols": int(grid.shape[1]),
        "resolution": float(resolution),
        "navigable_cells": int(np.count_nonzero(grid)),
    }

    with output.open("w", encoding="utf-8") as f:
        json.dump(payload, f)

    return str(output)
