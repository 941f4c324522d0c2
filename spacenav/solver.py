"""Value iteration over navigability grids.

Each destination gets a value field: for every navigable cell, the optimal
discounted negative cost of walking to the destination. The field is the
fixed point of the Bellman optimality update

    V(s) = max_n [ -cost(s -> n) * (1 + wall_penalty(s)) + gamma * V(n) ]

with the goal cell pinned at 0. Sweeps are in-place (Gauss-Seidel) in
row-major order, so a cell may already see values its neighbors got earlier
in the same sweep. Intermediate iterations depend on that order; the
converged field does not.

Usage example:
    >>> field = solve_value_field(destination, grid, clearance, resolution=10)
    >>> field.values[field.goal]
    0.0
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from spacenav.grid import GridCell, clamp_cell, point_to_cell
from spacenav.models import Destination

LOGGER = logging.getLogger(__name__)

UNREACHED = -100000.0

# (d_row, d_col, base cost)
MOVES: tuple[tuple[int, int, float], ...] = (
    (-1, 0, 1.0),
    (-1, 1, math.sqrt(2)),
    (0, 1, 1.0),
    (1, 1, math.sqrt(2)),
    (1, 0, 1.0),
    (1, -1, math.sqrt(2)),
    (0, -1, 1.0),
    (-1, -1, math.sqrt(2)),
)


@dataclass(frozen=True, slots=True)
class ValueField:
    """Solved value field for one destination.

    `values` is read-only. `goal` is the seeded cell (after snapping) or
    `None` when no navigable cell was found near the destination.
    """

    destination_id: str
    floor: int | None
    values: np.ndarray
    goal: GridCell | None
    snapped: bool
    iterations: int
    converged: bool

    @property
    def reachable(self) -> bool:
        return self.goal is not None

    def value_at(self, row: int, col: int) -> float:
        return float(self.values[row, col])

    def is_reached(self, row: int, col: int) -> bool:
        """True if the cell has a finite route to the goal."""
        return float(self.values[row, col]) != UNREACHED


def navigable_neighbors(grid: np.ndarray, cell: GridCell) -> list[tuple[GridCell, float]]:
    """Return navigable 8-neighbors of `cell` with their base move costs.

    Diagonal moves squeezing between two blocked orthogonal cells are dropped.
    """
    r, c = cell
    rows, cols = grid.shape

    result: list[tuple[GridCell, float]] = []
    for dr, dc, cost in MOVES:
        nr, nc = r + dr, c + dc
        if nr < 0 or nr >= rows or nc < 0 or nc >= cols:
            continue
        if grid[nr, nc] == 0:
            continue

        # Prevent diagonal corner cutting through blocked cells.
        if dr != 0 and dc != 0:
            if grid[r + dr, c] == 0 and grid[r, c + dc] == 0:
                continue

        result.append(((nr, nc), cost))

    return result


def find_nearest_navigable_cell(
    grid: np.ndarray,
    row: int,
    col: int,
    max_radius: int = 25,
) -> GridCell | None:
    """Find the navigable cell nearest to `(row, col)`.

    The requested cell is clamped into the grid first. Search expands in
    square rings around it and returns the navigable cell with minimum
    Euclidean distance in the first ring that contains any candidates.
    """
    rows, cols = grid.shape
    if rows == 0 or cols == 0:
        return None

    row, col = clamp_cell((row, col), (rows, cols))
    if int(grid[row, col]) == 1:
        return row, col

    for radius in range(1, max_radius + 1):
        r0 = max(0, row - radius)
        r1 = min(rows - 1, row + radius)
        c0 = max(0, col - radius)
        c1 = min(cols - 1, col + radius)

        candidates: list[tuple[float, int, int]] = []

        # Top and bottom rows.
        for c in range(c0, c1 + 1):
            if int(grid[r0, c]) == 1:
                candidates.append(((r0 - row) ** 2 + (c - col) ** 2, r0, c))
            if r1 != r0 and int(grid[r1, c]) == 1:
                candidates.append(((r1 - row) ** 2 + (c - col) ** 2, r1, c))

        # Left and right columns excluding corners already checked.
        for r in range(r0 + 1, r1):
            if int(grid[r, c0]) == 1:
                candidates.append(((r - row) ** 2 + (c0 - col) ** 2, r, c0))
            if c1 != c0 and int(grid[r, c1]) == 1:
                candidates.append(((r - row) ** 2 + (c1 - col) ** 2, r, c1))

        if candidates:
            candidates.sort(key=lambda item: item[0])
            _, best_r, best_c = candidates[0]
            return best_r, best_c

    return None


def wall_penalty(clearance: float, safe_distance: float, penalty_factor: float) -> float:
    """Extra cost multiplier for cells closer to a wall than `safe_distance`."""
    if clearance < safe_distance:
        return (safe_distance - clearance) * penalty_factor
    return 0.0


def _transition_table(
    grid: np.ndarray,
    clearance: np.ndarray,
    step_cost: float,
    safe_distance: float,
    penalty_factor: float,
    goal_index: int,
) -> list[tuple[int, list[tuple[int, float]]]]:
    """Precompute `(cell index, [(neighbor index, move cost), ...])` in sweep order."""
    rows, cols = grid.shape
    table: list[tuple[int, list[tuple[int, float]]]] = []
    for r in range(rows):
        for c in range(cols):
            idx = r * cols + c
            if grid[r, c] == 0 or idx == goal_index:
                continue
            scale = step_cost * (1.0 + wall_penalty(float(clearance[r, c]), safe_distance, penalty_factor))
            moves = [(nr * cols + nc, base * scale) for (nr, nc), base in navigable_neighbors(grid, (r, c))]
            table.append((idx, moves))
    return table


def _seed_cell(
    destination: Destination,
    grid: np.ndarray,
    resolution: float,
    snap_radius: int,
) -> tuple[GridCell | None, bool]:
    """Project the destination onto the grid, snapping blocked cells."""
    rows, cols = grid.shape
    if rows == 0 or cols == 0:
        return None, False

    projected = point_to_cell(destination.x, destination.y, resolution)
    cell = clamp_cell(projected, (rows, cols))
    if cell == projected and int(grid[cell]) == 1:
        return cell, False

    snapped = find_nearest_navigable_cell(grid, cell[0], cell[1], max_radius=snap_radius)
    if snapped is None:
        return None, False
    LOGGER.debug("Snapped destination %s from %s to %s", destination.id, projected, snapped)
    return snapped, True


def solve_value_field(
    destination: Destination,
    grid: np.ndarray,
    clearance: np.ndarray,
    resolution: float,
    *,
    floor: int | None = None,
    discount_factor: float = 0.99,
    step_cost: float = 1.0,
    safe_distance: float = 2.0,
    penalty_factor: float = 0.25,
    epsilon: float = 0.01,
    max_iterations: int = 1000,
    snap_radius: int = 25,
) -> ValueField:
    """Solve the value field for one destination by value iteration.

    Args:
        destination: Goal point.
        grid: Navigability grid of the destination's floor.
        clearance: Clearance field of the same floor.
        resolution: Cell edge length in source units.
        floor: Floor key recorded on the result.
        discount_factor: Gamma, strictly between 0 and 1.
        step_cost: Cost of one cardinal move (diagonal moves cost `sqrt(2)` times more).
        safe_distance: Clearance below which the wall penalty applies.
        penalty_factor: Penalty per cell of missing clearance.
        epsilon: Convergence threshold on per-cell value change.
        max_iterations: Hard cap on full sweeps.
        snap_radius: Ring search radius used when the destination cell is blocked.

    Returns:
        ValueField. Unreached and blocked cells hold `UNREACHED`.

    Raises:
        ValueError: If grid shapes or numeric parameters are invalid.
    """
    if not isinstance(grid, np.ndarray) or grid.ndim != 2:
        raise ValueError("grid must be a 2D numpy array")
    if not isinstance(clearance, np.ndarray) or clearance.shape != grid.shape:
        raise ValueError("clearance must be a numpy array shaped like grid")
    if not 0.0 < discount_factor < 1.0:
        raise ValueError("discount_factor must be in (0, 1)")
    if step_cost <= 0:
        raise ValueError("step_cost must be > 0")
    if epsilon <= 0:
        raise ValueError("epsilon must be > 0")
    if max_iterations <= 0:
        raise ValueError("max_iterations must be > 0")

    rows, cols = grid.shape
    size = rows * cols
    values = [UNREACHED] * size

    goal, snapped = _seed_cell(destination, grid, resolution, snap_radius)
    if goal is None:
        LOGGER.warning("Destination %s has no navigable cell within %d cells", destination.id, snap_radius)
        return _freeze(destination.id, floor, values, rows, cols, None, False, 0, True)

    goal_index = goal[0] * cols + goal[1]
    values[goal_index] = 0.0
    reached = [False] * size
    reached[goal_index] = True

    table = _transition_table(grid, clearance, step_cost, safe_distance, penalty_factor, goal_index)
    gamma = float(discount_factor)

    iterations = 0
    converged = False
    while iterations < max_iterations:
        iterations += 1
        changed = False

        for idx, moves in table:
            best = -math.inf
            for n_idx, cost in moves:
                if not reached[n_idx]:
                    continue
                v = gamma * values[n_idx] - cost
                if v > best:
                    best = v

            if best == -math.inf:
                continue
            if not reached[idx]:
                reached[idx] = True
                values[idx] = best
                changed = True
            elif abs(best - values[idx]) > epsilon:
                values[idx] = best
                changed = True

        if not changed:
            converged = True
            break

    if converged:
        LOGGER.debug("Solved destination %s in %d iterations", destination.id, iterations)
    else:
        LOGGER.warning(
            "Value iteration for destination %s hit the %d iteration cap before converging",
            destination.id,
            max_iterations,
        )

    return _freeze(destination.id, floor, values, rows, cols, goal, snapped, iterations, converged)


def _freeze(
    destination_id: str,
    floor: int | None,
    values: list[float],
    rows: int,
    cols: int,
    goal: GridCell | None,
    snapped: bool,
    iterations: int,
    converged: bool,
) -> ValueField:
    array = np.asarray(values, dtype=np.float64).reshape(rows, cols)
    array.flags.writeable = False
    return ValueField(
        destination_id=destination_id,
        floor=floor,
        values=array,
        goal=goal,
        snapped=snapped,
        iterations=iterations,
        converged=converged,
    )
