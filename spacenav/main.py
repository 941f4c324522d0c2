"""Command line entry point for spacenav.

Example:
  python -m spacenav.main data/space_definitions.json \
    --start 150 150 \
    --destination exit-1 \
    --floor 1 \
    --solve-all \
    --export-grid generated/grids/floor1.json

Exit codes: 0 route found, 1 no route, 2 configuration error.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from pydantic import ValidationError
from tqdm import tqdm

from spacenav.config import NavigatorOptions, load_local_env
from spacenav.grid import export_layer_json
from spacenav.models import SpaceConfig
from spacenav.navigator import SpaceNavigator
from spacenav.utils import to_serializable_path

LOGGER = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute a walking route over corridor polygons")
    parser.add_argument("space", type=str, help="Space definition JSON (corridors, destinations, image size)")
    parser.add_argument("--start", type=float, nargs=2, metavar=("X", "Y"), required=True)
    parser.add_argument("--destination", type=str, required=True, help="Destination id")
    parser.add_argument("--floor", type=int, default=None)
    parser.add_argument("--solve-all", action="store_true", help="Solve every destination before routing")
    parser.add_argument("--simplify", type=float, default=15.0, help="Douglas-Peucker tolerance")
    parser.add_argument("--export-grid", type=str, default=None, help="Write the floor layer as JSON")
    return parser.parse_args(argv)


def _load_space(path: str) -> SpaceConfig:
    raw = Path(path).read_text(encoding="utf-8")
    return SpaceConfig.model_validate(json.loads(raw))


def main(argv: list[str] | None = None) -> int:
    load_local_env()
    logging.basicConfig(
        level=os.getenv("SPACENAV_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = parse_args(argv)

    try:
        options = NavigatorOptions.from_env()
        space = _load_space(args.space)
    except (OSError, ValueError, ValidationError) as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return 2

    navigator = SpaceNavigator(options)
    navigator.configure(space)
    if not navigator.is_configured:
        LOGGER.error("Space definition has no image dimensions")
        return 2

    if args.solve_all:
        with tqdm(total=100, leave=False, desc="value iteration") as bar:

            def _progress(fraction: float) -> None:
                bar.n = int(round(fraction * 100))
                bar.refresh()

            report = navigator.solve_all(_progress)
        if report.unreachable:
            LOGGER.warning("Unreachable destinations: %s", ", ".join(report.unreachable))

    if args.export_grid:
        out = export_layer_json(
            args.export_grid,
            navigator.grid(args.floor),
            navigator.clearance(args.floor),
            navigator.resolution,
            floor=args.floor,
        )
        LOGGER.info("Exported grid to %s", out)

    try:
        route = navigator.navigate(args.start[0], args.start[1], args.destination, floor=args.floor, simplify_tolerance=args.simplify)
    except ValueError as exc:
        LOGGER.error("%s", exc)
        return 2

    payload = {
        **route.result.to_dict(),
        "destination": route.destination.model_dump(),
        "simplified_path": to_serializable_path(route.simplified_path),
        "total_distance": route.total_distance,
        "location_names": route.location_names,
        "stats": navigator.stats().to_dict(),
    }
    json.dump(payload, sys.stdout)
    sys.stdout.write("\n")
    return 0 if route.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
