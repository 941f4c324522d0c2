"""Navigation facade over the rasterizer, solver, and path extractor.

`SpaceNavigator` owns one environment at a time:

- a layer store mapping floor keys to `(grid, clearance)` pairs, with the
  key `None` holding the combined layer that ignores floors;
- a value-field cache mapping destination ids to solved `ValueField`s.

`set_environment` rebuilds every layer and replaces both maps under a lock,
so readers never observe a half-built environment. Value fields are solved
once per destination (eagerly in `solve_all`, lazily in `find_path`) and
are read-only afterwards.

Usage example:
    >>> nav = SpaceNavigator(NavigatorOptions(grid_resolution=10))
    >>> nav.set_environment(corridors, destinations, {"width": 100, "height": 20})
    >>> nav.find_path(5, 10, 90, 10, "exit", floor=0).success
    True
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Iterable, Mapping

import numpy as np

from spacenav.clearance import build_clearance
from spacenav.config import NavigatorOptions
from spacenav.errors import NotConfiguredError
from spacenav.geometry import corridor_at
from spacenav.grid import GridCell, cell_center, point_to_cell, rasterize
from spacenav.models import Corridor, Destination, ImageDimensions, SpaceConfig
from spacenav.pathfinding import PathResult, extract_path
from spacenav.solver import ValueField, find_nearest_navigable_cell, solve_value_field
from spacenav.utils import path_length, simplify_path

LOGGER = logging.getLogger(__name__)

COMBINED: None = None
"""Layer key of the floor-agnostic grid."""

ProgressCallback = Callable[[float], None]

_YIELD_EVERY = 5


@dataclass(frozen=True, slots=True)
class FloorLayer:
    """Navigability grid and clearance field of one floor key."""

    floor: int | None
    grid: np.ndarray
    clearance: np.ndarray

    @property
    def navigable_cells(self) -> int:
        return int(np.count_nonzero(self.grid))


@dataclass(slots=True)
class SolveReport:
    """Outcome of a bulk `solve_all` pass."""

    solved: list[str] = field(default_factory=list)
    unreachable: list[str] = field(default_factory=list)
    non_converged: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    interrupted: bool = False
    duration_s: float = 0.0

    @property
    def success(self) -> bool:
        return not self.failed and not self.interrupted


@dataclass(frozen=True, slots=True)
class NavigatorStats:
    """Grid and cache summary."""

    grid_width: int
    grid_height: int
    resolution: float
    navigable_cell_count: int
    solved_destination_count: int
    corridor_count: int
    destination_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class RouteSummary:
    """Path result enriched for presentation layers."""

    result: PathResult
    destination: Destination
    simplified_path: list[tuple[float, float]]
    total_distance: float
    location_names: list[str]

    @property
    def success(self) -> bool:
        return self.result.success


def _coerce_dimensions(value: ImageDimensions | Mapping[str, float] | tuple[float, float] | None) -> ImageDimensions | None:
    if value is None or isinstance(value, ImageDimensions):
        return value
    if isinstance(value, Mapping):
        return ImageDimensions.model_validate(value)
    width, height = value
    return ImageDimensions(width=width, height=height)


def _freeze(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


class SpaceNavigator:
    """Continuous-space navigator backed by per-destination value iteration."""

    def __init__(self, options: NavigatorOptions | None = None) -> None:
        self.options = (options or NavigatorOptions()).validate()
        self._lock = threading.RLock()
        self._corridors: tuple[Corridor, ...] = ()
        self._destinations: dict[str, Destination] = {}
        self._dimensions: ImageDimensions | None = None
        self._layers: dict[int | None, FloorLayer] = {}
        self._value_fields: dict[str, ValueField] = {}
        self._adhoc: dict[str, Destination] = {}
        self._generation = 0

    # -- environment ------------------------------------------------------

    @property
    def is_configured(self) -> bool:
        return bool(self._layers)

    @property
    def resolution(self) -> float:
        return float(self.options.grid_resolution)

    @property
    def corridors(self) -> tuple[Corridor, ...]:
        return self._corridors

    @property
    def destinations(self) -> list[Destination]:
        return list(self._destinations.values())

    def floors(self) -> list[int]:
        """Floor numbers that have their own layer."""
        return sorted(key for key in self._layers if key is not None)

    def set_environment(
        self,
        corridors: Iterable[Corridor | Mapping[str, Any]],
        destinations: Iterable[Destination | Mapping[str, Any]],
        image_dimensions: ImageDimensions | Mapping[str, float] | tuple[float, float] | None,
    ) -> None:
        """Rebuild all floor layers and clear the value-field cache.

        Raises:
            ValueError: If the payload is invalid (duplicate destination ids,
                non-positive dimensions, malformed corridors).
        """
        space = SpaceConfig(corridors=list(corridors), destinations=list(destinations))
        dims = _coerce_dimensions(image_dimensions)

        layers: dict[int | None, FloorLayer] = {}
        if dims is not None:
            keys: list[int | None] = [COMBINED]
            keys.extend(sorted({c.floor for c in space.corridors if c.floor is not None}))
            for key in keys:
                grid = rasterize(space.corridors, dims.width, dims.height, self.resolution, floor=key)
                layers[key] = FloorLayer(floor=key, grid=_freeze(grid), clearance=_freeze(build_clearance(grid)))
        else:
            LOGGER.warning("Image dimensions are not configured; navigation grid left empty")

        with self._lock:
            self._corridors = tuple(space.corridors)
            self._destinations = {d.id: d for d in space.destinations}
            self._dimensions = dims
            self._layers = layers
            self._value_fields = {}
            self._adhoc = {}
            self._generation += 1

        if layers:
            combined = layers[COMBINED]
            LOGGER.info(
                "Navigation environment built: grid %dx%d at resolution %s, %d corridors, %d destinations",
                combined.grid.shape[1],
                combined.grid.shape[0],
                self.resolution,
                len(self._corridors),
                len(self._destinations),
            )
            for key in self.floors():
                LOGGER.info("   Floor %s grid: %d navigable cells", key, layers[key].navigable_cells)

    def configure(self, space: SpaceConfig | Mapping[str, Any]) -> None:
        """Apply a full space definition."""
        if not isinstance(space, SpaceConfig):
            space = SpaceConfig.model_validate(space)
        self.set_environment(space.corridors, space.destinations, space.image_dimensions)

    def reset(self) -> None:
        """Drop every cached value field."""
        with self._lock:
            self._value_fields = {}
            self._adhoc = {}

    # -- layer access -----------------------------------------------------

    def _require_configured(self) -> None:
        if not self._layers:
            raise NotConfiguredError()

    def _layer(self, floor: int | None) -> FloorLayer:
        self._require_configured()
        layer = self._layers.get(floor)
        if layer is not None:
            return layer
        # No corridor on this floor: nothing is walkable there.
        shape = self._layers[COMBINED].grid.shape
        blocked = _freeze(np.zeros(shape, dtype=np.uint8))
        return FloorLayer(floor=floor, grid=blocked, clearance=_freeze(np.zeros(shape, dtype=np.float32)))

    def grid(self, floor: int | None = None) -> np.ndarray:
        """Navigability grid of a floor (`None` for the combined grid)."""
        with self._lock:
            return self._layer(floor).grid

    def clearance(self, floor: int | None = None) -> np.ndarray:
        """Clearance field of a floor (`None` for the combined grid)."""
        with self._lock:
            return self._layer(floor).clearance

    def is_navigable(self, x: float, y: float, floor: int | None = None) -> bool:
        """True if the cell containing `(x, y)` is walkable."""
        with self._lock:
            grid = self._layer(floor).grid
        row, col = point_to_cell(x, y, self.resolution)
        rows, cols = grid.shape
        if row < 0 or row >= rows or col < 0 or col >= cols:
            return False
        return bool(grid[row, col] == 1)

    def nearest_navigable_point(self, x: float, y: float, floor: int | None = None) -> tuple[float, float] | None:
        """Center of the navigable cell nearest to `(x, y)`, or `None`."""
        with self._lock:
            grid = self._layer(floor).grid
        row, col = point_to_cell(x, y, self.resolution)
        cell = find_nearest_navigable_cell(grid, row, col, max_radius=self.options.snap_radius)
        if cell is None:
            return None
        return cell_center(cell[0], cell[1], self.resolution)

    def corridor_at(self, x: float, y: float, floor: int | None = None, tolerance: float = 10.0) -> Corridor | None:
        """Corridor containing `(x, y)` or the nearest one within tolerance."""
        candidates = [c for c in self._corridors if floor is None or c.floor == floor]
        return corridor_at(x, y, candidates, tolerance=tolerance)

    # -- solving ----------------------------------------------------------

    def value_field(self, destination_id: str) -> ValueField | None:
        """Cached value field of a destination, if solved."""
        with self._lock:
            return self._value_fields.get(str(destination_id))

    def _solve(self, destination: Destination) -> ValueField:
        layer = self._layer(destination.floor)
        opts = self.options
        solved = solve_value_field(
            destination,
            layer.grid,
            layer.clearance,
            self.resolution,
            floor=destination.floor,
            discount_factor=opts.discount_factor,
            step_cost=opts.step_cost,
            safe_distance=opts.safe_distance,
            penalty_factor=opts.penalty_factor,
            epsilon=opts.epsilon,
            max_iterations=opts.max_iterations,
            snap_radius=opts.snap_radius,
        )
        self._value_fields[destination.id] = solved
        return solved

    def _field_for(self, destination: Destination) -> ValueField:
        cached = self._value_fields.get(destination.id)
        if cached is not None:
            return cached
        LOGGER.info("No pre-computed value field for %s, solving now", destination.id)
        return self._solve(destination)

    def solve_all(self, progress_callback: ProgressCallback | None = None) -> SolveReport:
        """Solve the value field of every destination.

        Failures are recorded per destination and never abort the pass.
        `progress_callback` receives the completed fraction in `[0, 1]`.

        Raises:
            NotConfiguredError: If no environment is set.
        """
        with self._lock:
            self._require_configured()
            pending = list(self._destinations.values())
            generation = self._generation

        report = SolveReport()
        started = time.perf_counter()
        total = len(pending)
        LOGGER.info("Starting value iteration for %d destinations", total)

        for done, destination in enumerate(pending, start=1):
            with self._lock:
                if self._generation != generation:
                    LOGGER.warning("Environment replaced during solve_all; stopping early")
                    report.interrupted = True
                    break
                try:
                    solved = self._field_for(destination)
                except Exception as exc:
                    LOGGER.exception("Value iteration failed for destination %s", destination.id)
                    report.failed[destination.id] = str(exc)
                else:
                    if not solved.reachable:
                        report.unreachable.append(destination.id)
                    else:
                        report.solved.append(destination.id)
                        if not solved.converged:
                            report.non_converged.append(destination.id)

            if progress_callback is not None:
                progress_callback(done / total)
            if done % _YIELD_EVERY == 0:
                time.sleep(0)

        if total == 0 and progress_callback is not None:
            progress_callback(1.0)

        report.duration_s = time.perf_counter() - started
        LOGGER.info(
            "Value iteration complete in %.3fs: %d solved, %d unreachable, %d not converged, %d failed",
            report.duration_s,
            len(report.solved),
            len(report.unreachable),
            len(report.non_converged),
            len(report.failed),
        )
        return report

    # -- paths ------------------------------------------------------------

    def find_path(
        self,
        start_x: float,
        start_y: float,
        dest_x: float,
        dest_y: float,
        destination_id: str,
        floor: int | None = None,
    ) -> PathResult:
        """Extract a path from a start point to a destination.

        A known destination is solved on its own floor from its own
        coordinates. An unknown id is solved as an ad-hoc destination at
        `(dest_x, dest_y)` on `floor` and cached under that id; reusing the
        id with other coordinates or another floor re-solves it.

        Raises:
            NotConfiguredError: If no environment is set.
        """
        destination_id = str(destination_id)
        with self._lock:
            self._require_configured()
            destination = self._destinations.get(destination_id)
            if destination is None:
                destination = Destination(id=destination_id, name=destination_id, floor=floor, x=dest_x, y=dest_y)
                if self._adhoc.get(destination_id) != destination:
                    self._value_fields.pop(destination_id, None)
                    self._adhoc[destination_id] = destination
            solved = self._field_for(destination)
            grid = self._layer(solved.floor).grid

        return extract_path(
            start_x,
            start_y,
            solved,
            grid,
            self.resolution,
            max_steps=self.options.max_steps,
            snap_radius=self.options.snap_radius,
        )

    def zone_exits(self, zone: str, floor: int | None = None) -> list[Destination]:
        """Destinations belonging to a zone.

        A destination matches when its `zone` equals `zone`, or when `zone`
        is a case-insensitive substring of its zone or name. `floor=None`
        searches every floor.
        """
        needle = str(zone).lower()
        matches: list[Destination] = []
        for destination in self._destinations.values():
            if floor is not None and destination.floor != floor:
                continue
            if (
                destination.zone == zone
                or (destination.zone is not None and needle in destination.zone.lower())
                or needle in destination.name.lower()
            ):
                matches.append(destination)
        return matches

    def closest_destination(
        self,
        start_x: float,
        start_y: float,
        candidate_ids: Iterable[str] | None = None,
        floor: int | None = None,
        zone: str | None = None,
    ) -> Destination | None:
        """Pick the candidate with the least solved cost from the start point.

        Candidates default to every destination on `floor` (all destinations
        when `floor` is `None`), narrowed to `zone_exits(zone, floor)` when a
        zone is given. Candidates not connected to the start are skipped.
        """
        with self._lock:
            self._require_configured()
            if candidate_ids is None:
                candidates = [d for d in self._destinations.values() if floor is None or d.floor == floor]
            else:
                candidates = [self._destinations[str(i)] for i in candidate_ids if str(i) in self._destinations]
            if zone is not None:
                in_zone = {d.id for d in self.zone_exits(zone, floor)}
                candidates = [d for d in candidates if d.id in in_zone]

            start = point_to_cell(start_x, start_y, self.resolution)
            start_cells: dict[int | None, GridCell | None] = {}

            best: Destination | None = None
            best_value = -np.inf
            for destination in candidates:
                solved = self._field_for(destination)
                if not solved.reachable:
                    continue
                if solved.floor not in start_cells:
                    grid = self._layer(solved.floor).grid
                    start_cells[solved.floor] = find_nearest_navigable_cell(
                        grid, start[0], start[1], max_radius=self.options.snap_radius
                    )
                cell = start_cells[solved.floor]
                if cell is None or not solved.is_reached(*cell):
                    continue
                value = solved.value_at(*cell)
                if value > best_value:
                    best_value = value
                    best = destination
            return best

    def navigate(
        self,
        start_x: float,
        start_y: float,
        destination_id: str,
        floor: int | None = None,
        simplify_tolerance: float = 15.0,
    ) -> RouteSummary:
        """Find a path to a known destination and enrich it for display.

        Raises:
            ValueError: If the destination id is unknown.
            NotConfiguredError: If no environment is set.
        """
        destination = self._destinations.get(str(destination_id))
        if destination is None:
            raise ValueError(f"Unknown destination '{destination_id}'")

        result = self.find_path(start_x, start_y, destination.x, destination.y, destination.id, floor)
        simplified = simplify_path(result.path, simplify_tolerance)

        names: list[str] = []
        last_known = "Start"
        corridor_floor = destination.floor if destination.floor is not None else floor
        for x, y in simplified:
            corridor = self.corridor_at(x, y, corridor_floor, tolerance=self.resolution)
            if corridor is not None:
                last_known = corridor.label
            names.append(last_known)

        return RouteSummary(
            result=result,
            destination=destination,
            simplified_path=simplified,
            total_distance=path_length(result.path),
            location_names=names,
        )

    # -- reporting --------------------------------------------------------

    def stats(self) -> NavigatorStats:
        """Grid dimensions and cache counts; zeros before configuration."""
        with self._lock:
            combined = self._layers.get(COMBINED)
            rows, cols = combined.grid.shape if combined is not None else (0, 0)
            return NavigatorStats(
                grid_width=int(cols),
                grid_height=int(rows),
                resolution=self.resolution,
                navigable_cell_count=combined.navigable_cells if combined is not None else 0,
                solved_destination_count=len(self._value_fields),
                corridor_count=len(self._corridors),
                destination_count=len(self._destinations),
            )
