"""Path extraction by gradient ascent on a solved value field.

Purpose:
- Snap a continuous start point onto the navigable grid.
- Walk to the neighbor with the highest value until the goal cell is reached.
- Report every way the walk can end as a distinct `PathStatus`.

Usage example:
    >>> result = extract_path(5, 10, field, grid, resolution=10)
    >>> result.success, result.steps
    (True, 8)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from spacenav.grid import cell_center, clamp_cell, point_to_cell
from spacenav.solver import ValueField, find_nearest_navigable_cell, navigable_neighbors

LOGGER = logging.getLogger(__name__)


class PathStatus(str, Enum):
    """How a path extraction ended."""

    REACHED = "reached"
    STEP_LIMIT = "step_limit"
    STUCK = "stuck"
    NO_PATH = "no_path"
    START_NOT_NAVIGABLE = "start_not_navigable"
    UNREACHABLE_DESTINATION = "unreachable_destination"


@dataclass(slots=True)
class PathResult:
    """Extracted path payload.

    `path` holds visited cell centers as `(x, y)`; on failure it still holds
    the partial walk for diagnostics.
    """

    success: bool
    path: list[tuple[float, float]] = field(default_factory=list)
    steps: int = 0
    status: PathStatus = PathStatus.REACHED
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "path": [{"x": x, "y": y} for x, y in self.path],
            "steps": self.steps,
            "status": self.status.value,
            "error": self.error,
        }


def _failure(status: PathStatus, message: str, path: list[tuple[float, float]] | None = None, steps: int = 0) -> PathResult:
    return PathResult(success=False, path=path or [], steps=steps, status=status, error=message)


def extract_path(
    start_x: float,
    start_y: float,
    value_field: ValueField,
    grid: np.ndarray,
    resolution: float,
    *,
    max_steps: int = 1000,
    snap_radius: int = 25,
) -> PathResult:
    """Walk from a start point up the value field to its goal.

    Args:
        start_x: Start x in source units.
        start_y: Start y in source units.
        value_field: Solved field of the destination.
        grid: Navigability grid the field was solved on.
        resolution: Cell edge length in source units.
        max_steps: Hard cap on ascent steps.
        snap_radius: Ring search radius for a blocked start cell.

    Returns:
        PathResult; `success` is True only when the goal cell was reached.

    Raises:
        ValueError: If grid and field shapes disagree or `max_steps` is invalid.
    """
    if grid.shape != value_field.values.shape:
        raise ValueError("grid and value field must have the same shape")
    if max_steps <= 0:
        raise ValueError("max_steps must be > 0")

    if not value_field.reachable:
        return _failure(
            PathStatus.UNREACHABLE_DESTINATION,
            f"Destination '{value_field.destination_id}' has no navigable cell",
        )

    rows, cols = grid.shape
    projected = point_to_cell(start_x, start_y, resolution)
    current = clamp_cell(projected, (rows, cols))
    if current != projected or int(grid[current]) != 1:
        snapped = find_nearest_navigable_cell(grid, current[0], current[1], max_radius=snap_radius)
        if snapped is None:
            return _failure(PathStatus.START_NOT_NAVIGABLE, "Start position not navigable")
        LOGGER.debug("Adjusted start from %s to %s", projected, snapped)
        current = snapped

    path = [cell_center(current[0], current[1], resolution)]
    goal = value_field.goal

    if not value_field.is_reached(*current):
        return _failure(
            PathStatus.NO_PATH,
            f"Start is not connected to destination '{value_field.destination_id}'",
            path,
        )

    values = value_field.values
    current_val = float(values[current])
    steps = 0

    while current != goal:
        if steps >= max_steps:
            LOGGER.warning("Path extraction hit the %d step cap", max_steps)
            return _failure(PathStatus.STEP_LIMIT, f"No goal within {max_steps} steps", path, steps)

        best_cell = None
        best_val = current_val
        for cell, _ in navigable_neighbors(grid, current):
            val = float(values[cell])
            if val > best_val:
                best_val = val
                best_cell = cell

        if best_cell is None:
            LOGGER.warning("Path extraction stuck at %s (value %.3f)", current, current_val)
            return _failure(PathStatus.STUCK, "No improving neighbor before the goal", path, steps)

        steps += 1
        current = best_cell
        current_val = best_val
        path.append(cell_center(current[0], current[1], resolution))

    return PathResult(success=True, path=path, steps=steps, status=PathStatus.REACHED)
