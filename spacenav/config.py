"""Solver configuration loaded from defaults, environment, and `.env` files.

Env vars:
  SPACENAV_GRID_RESOLUTION=20
  SPACENAV_DISCOUNT_FACTOR=0.99
  SPACENAV_STEP_COST=1.0
  SPACENAV_SAFE_DISTANCE=2.0
  SPACENAV_PENALTY_FACTOR=0.25
  SPACENAV_EPSILON=0.01
  SPACENAV_MAX_ITERATIONS=1000
  SPACENAV_MAX_STEPS=1000
  SPACENAV_SNAP_RADIUS=25
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def load_local_env(candidates: list[Path] | None = None) -> None:
    """Load key=value pairs from local .env files if present.

    Variables already set in the process environment are never overridden.
    Priority (first existing file wins per key):
    1) spacenav/.env
    2) .env
    """
    if candidates is None:
        candidates = [Path("spacenav/.env"), Path(".env")]

    for env_path in candidates:
        if not env_path.exists():
            continue

        for raw in env_path.read_text(encoding="utf-8").splitlines():
            line = raw.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            if not key or key in os.environ:
                continue
            os.environ[key] = value.strip().strip("'").strip('"')


@dataclass(slots=True)
class NavigatorOptions:
    """Tuning knobs for rasterization, value iteration and path extraction."""

    grid_resolution: float = 20.0
    discount_factor: float = 0.99
    step_cost: float = 1.0
    safe_distance: float = 2.0
    penalty_factor: float = 0.25
    epsilon: float = 0.01
    max_iterations: int = 1000
    max_steps: int = 1000
    snap_radius: int = 25

    def validate(self) -> "NavigatorOptions":
        """Check ranges and return self.

        Raises:
            ValueError: If any option is out of range.
        """
        if self.grid_resolution <= 0:
            raise ValueError("grid_resolution must be > 0")
        if not 0.0 < self.discount_factor < 1.0:
            raise ValueError("discount_factor must be in (0, 1)")
        if self.step_cost <= 0:
            raise ValueError("step_cost must be > 0")
        if self.safe_distance < 0:
            raise ValueError("safe_distance must be >= 0")
        if self.penalty_factor < 0:
            raise ValueError("penalty_factor must be >= 0")
        if self.epsilon <= 0:
            raise ValueError("epsilon must be > 0")
        if self.max_iterations <= 0:
            raise ValueError("max_iterations must be > 0")
        if self.max_steps <= 0:
            raise ValueError("max_steps must be > 0")
        if self.snap_radius < 0:
            raise ValueError("snap_radius must be >= 0")
        return self

    @classmethod
    def from_env(cls) -> "NavigatorOptions":
        """Build options from `SPACENAV_*` environment variables."""
        defaults = cls()
        return cls(
            grid_resolution=float(os.getenv("SPACENAV_GRID_RESOLUTION", str(defaults.grid_resolution))),
            discount_factor=float(os.getenv("SPACENAV_DISCOUNT_FACTOR", str(defaults.discount_factor))),
            step_cost=float(os.getenv("SPACENAV_STEP_COST", str(defaults.step_cost))),
            safe_distance=float(os.getenv("SPACENAV_SAFE_DISTANCE", str(defaults.safe_distance))),
            penalty_factor=float(os.getenv("SPACENAV_PENALTY_FACTOR", str(defaults.penalty_factor))),
            epsilon=float(os.getenv("SPACENAV_EPSILON", str(defaults.epsilon))),
            max_iterations=int(os.getenv("SPACENAV_MAX_ITERATIONS", str(defaults.max_iterations))),
            max_steps=int(os.getenv("SPACENAV_MAX_STEPS", str(defaults.max_steps))),
            snap_radius=int(os.getenv("SPACENAV_SNAP_RADIUS", str(defaults.snap_radius))),
        ).validate()
