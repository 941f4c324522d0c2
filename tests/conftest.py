"""Pytest global fixtures shared by the spacenav test suite."""

from __future__ import annotations

import numpy as np
import pytest

from spacenav.config import NavigatorOptions
from spacenav.models import Corridor, Destination
from spacenav.navigator import SpaceNavigator


@pytest.fixture()
def hallway() -> Corridor:
    """Single 100x20 rectangular corridor on floor 0."""
    return Corridor(id="hall", floor=0, polygon=[(0, 0), (100, 0), (100, 20), (0, 20)], name="Main Hall")


@pytest.fixture()
def exit_destination() -> Destination:
    """Destination near the east end of the hallway."""
    return Destination(id="exit", name="Exit", floor=0, x=90, y=10)


@pytest.fixture()
def hallway_navigator(hallway: Corridor, exit_destination: Destination) -> SpaceNavigator:
    """Navigator configured with the hallway at resolution 10."""
    navigator = SpaceNavigator(NavigatorOptions(grid_resolution=10))
    navigator.set_environment([hallway], [exit_destination], {"width": 100, "height": 20})
    return navigator


@pytest.fixture()
def open_grid() -> np.ndarray:
    """Provide a simple reusable fully navigable grid."""
    return np.ones((10, 10), dtype=np.uint8)
