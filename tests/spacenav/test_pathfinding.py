"""Unit tests for spacenav.pathfinding."""

from __future__ import annotations

import numpy as np
import pytest

from spacenav.clearance import build_clearance
from spacenav.grid import point_to_cell, rasterize
from spacenav.models import Corridor, Destination
from spacenav.pathfinding import PathStatus, extract_path
from spacenav.solver import UNREACHED, ValueField, solve_value_field


def _field(grid: np.ndarray, x: float, y: float, **kwargs) -> ValueField:
    return solve_value_field(Destination(id="goal", x=x, y=y), grid, build_clearance(grid), 10, **kwargs)


def test_hallway_path_climbs_value_field(hallway: Corridor, exit_destination: Destination) -> None:
    """Path starts at the start cell, ends at the goal, and values strictly increase."""
    grid = rasterize([hallway], 100, 20, 10, floor=0)
    field = solve_value_field(exit_destination, grid, build_clearance(grid), 10)

    result = extract_path(5, 10, field, grid, 10)

    assert result.success
    assert result.status == PathStatus.REACHED
    assert result.error is None
    assert result.path[0] == (5.0, 15.0)
    assert result.path[-1] == (95.0, 15.0)
    assert result.steps == len(result.path) - 1 == 9

    values = [field.value_at(*point_to_cell(x, y, 10)) for x, y in result.path]
    assert all(b > a for a, b in zip(values, values[1:]))


def test_start_on_goal_cell_is_zero_step_path(open_grid: np.ndarray) -> None:
    """Starting in the goal cell succeeds immediately."""
    field = _field(open_grid, 55, 55)

    result = extract_path(52, 58, field, open_grid, 10)

    assert result.success
    assert result.steps == 0
    assert result.path == [(55.0, 55.0)]


def test_blocked_start_is_snapped() -> None:
    """A start point in a blocked cell begins at the nearest navigable cell."""
    grid = np.ones((3, 6), dtype=np.uint8)
    grid[0, :] = 0
    field = _field(grid, 55, 25)

    result = extract_path(5, 5, field, grid, 10)

    assert result.success
    assert result.path[0] == (5.0, 15.0)


def test_start_far_from_any_navigable_cell() -> None:
    """No navigable cell within the snap radius fails with START_NOT_NAVIGABLE."""
    grid = np.zeros((1, 10), dtype=np.uint8)
    grid[0, 9] = 1
    field = _field(grid, 95, 5)

    result = extract_path(5, 5, field, grid, 10, snap_radius=2)

    assert not result.success
    assert result.status == PathStatus.START_NOT_NAVIGABLE
    assert result.path == []


def test_disconnected_start_reports_no_path() -> None:
    """A start in a region without a route to the goal fails immediately."""
    grid = np.ones((2, 10), dtype=np.uint8)
    grid[:, 4] = 0
    field = _field(grid, 95, 5)

    result = extract_path(5, 5, field, grid, 10)

    assert not result.success
    assert result.status == PathStatus.NO_PATH
    assert result.steps == 0
    assert result.path == [(5.0, 5.0)]
    assert "not connected" in result.error


def test_unreachable_destination() -> None:
    """A field without a goal cell cannot be walked."""
    grid = np.zeros((3, 3), dtype=np.uint8)
    field = _field(grid, 5, 5)

    result = extract_path(5, 5, field, grid, 10)

    assert not result.success
    assert result.status == PathStatus.UNREACHABLE_DESTINATION


def test_step_limit_returns_partial_path(hallway: Corridor, exit_destination: Destination) -> None:
    """Running out of steps keeps the partial walk."""
    grid = rasterize([hallway], 100, 20, 10, floor=0)
    field = solve_value_field(exit_destination, grid, build_clearance(grid), 10)

    result = extract_path(5, 10, field, grid, 10, max_steps=2)

    assert not result.success
    assert result.status == PathStatus.STEP_LIMIT
    assert result.steps == 2
    assert len(result.path) == 3


def test_local_maximum_reports_stuck() -> None:
    """A non-goal cell with no better neighbor stops the walk."""
    grid = np.ones((1, 5), dtype=np.uint8)
    values = np.array([[-5.0, -1.0, -2.0, -3.0, 0.0]])
    field = ValueField(
        destination_id="odd",
        floor=None,
        values=values,
        goal=(0, 4),
        snapped=False,
        iterations=1,
        converged=True,
    )

    result = extract_path(5, 5, field, grid, 10)

    assert not result.success
    assert result.status == PathStatus.STUCK
    assert result.steps == 1
    assert result.path == [(5.0, 5.0), (15.0, 5.0)]


def test_result_to_dict(open_grid: np.ndarray) -> None:
    """Serialized result uses x/y dictionaries and the status value."""
    field = _field(open_grid, 25, 5)

    payload = extract_path(5, 5, field, open_grid, 10).to_dict()

    assert payload["success"] is True
    assert payload["status"] == "reached"
    assert payload["path"][0] == {"x": 5.0, "y": 5.0}
    assert payload["path"][-1] == {"x": 25.0, "y": 5.0}
    assert payload["steps"] == 2


def test_shape_mismatch_raises(open_grid: np.ndarray) -> None:
    """Grid and field must describe the same raster."""
    field = _field(open_grid, 5, 5)

    with pytest.raises(ValueError, match="same shape"):
        extract_path(5, 5, field, np.ones((2, 2), dtype=np.uint8), 10)


def test_unreached_sentinel_is_never_a_step_target() -> None:
    """Blocked neighbors holding the sentinel are ignored during ascent."""
    grid = np.ones((2, 4), dtype=np.uint8)
    grid[1, 1] = 0
    field = _field(grid, 35, 15)

    result = extract_path(5, 15, field, grid, 10)

    assert result.success
    assert field.values[1, 1] == UNREACHED
    assert (15.0, 15.0) not in result.path
