"""Wall clearance field for navigability grids.

Each navigable cell gets its Manhattan distance (in cells) to the nearest
blocked cell; blocked cells get 0. The solver turns small clearances into a
step-cost multiplier so routes drift away from walls. Clearance never
excludes a cell from planning.
"""

from __future__ import annotations

import numpy as np


def build_clearance(grid: np.ndarray) -> np.ndarray:
    """Two-pass Manhattan distance transform.

    Cells outside the grid are not obstacles, so a grid without blocked cells
    keeps the `rows + cols` upper bound everywhere.

    Args:
        grid: 2D navigability grid (1 = navigable, 0 = blocked).

    Returns:
        float32 array with the same shape as `grid`.
    """
    if not isinstance(grid, np.ndarray) or grid.ndim != 2:
        raise ValueError("grid must be a 2D numpy array")

    rows, cols = grid.shape
    free = (grid != 0).tolist()
    upper = float(rows + cols)
    dist = [[upper if free[r][c] else 0.0 for c in range(cols)] for r in range(rows)]

    # Forward pass: top-left to bottom-right.
    for r in range(rows):
        row = dist[r]
        above = dist[r - 1] if r > 0 else None
        for c in range(cols):
            if not free[r][c]:
                continue
            best = row[c]
            if c > 0 and row[c - 1] + 1 < best:
                best = row[c - 1] + 1
            if above is not None and above[c] + 1 < best:
                best = above[c] + 1
            row[c] = best

    # Backward pass: bottom-right to top-left.
    for r in range(rows - 1, -1, -1):
        row = dist[r]
        below = dist[r + 1] if r < rows - 1 else None
        for c in range(cols - 1, -1, -1):
            if not free[r][c]:
                continue
            best = row[c]
            if c < cols - 1 and row[c + 1] + 1 < best:
                best = row[c + 1] + 1
            if below is not None and below[c] + 1 < best:
                best = below[c] + 1
            row[c] = best

    return np.asarray(dist, dtype=np.float32).reshape(rows, cols)
