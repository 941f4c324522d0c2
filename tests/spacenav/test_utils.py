"""Unit tests for spacenav.utils."""

from __future__ import annotations

import pytest

from spacenav.utils import path_length, simplify_path, to_serializable_path


def test_to_serializable_path() -> None:
    """Tuples become x/y dictionaries."""
    assert to_serializable_path([(1, 2), (3.5, 4)]) == [{"x": 1.0, "y": 2.0}, {"x": 3.5, "y": 4.0}]


def test_path_length() -> None:
    """Length is the sum of segment lengths."""
    assert path_length([]) == 0.0
    assert path_length([(0, 0)]) == 0.0
    assert path_length([(0, 0), (3, 4), (3, 10)]) == pytest.approx(11.0)


def test_simplify_drops_collinear_points() -> None:
    """Straight runs collapse to their endpoints."""
    path = [(float(x), 5.0) for x in range(0, 100, 10)]

    assert simplify_path(path) == [(0.0, 5.0), (90.0, 5.0)]


def test_simplify_keeps_corners() -> None:
    """Corners farther than the tolerance survive."""
    path = [(0.0, 0.0), (50.0, 0.0), (100.0, 0.0), (100.0, 50.0), (100.0, 100.0)]

    assert simplify_path(path, tolerance=5.0) == [(0.0, 0.0), (100.0, 0.0), (100.0, 100.0)]


def test_simplify_short_paths_unchanged() -> None:
    """Paths with two points or fewer are returned as-is."""
    assert simplify_path([(1.0, 1.0)]) == [(1.0, 1.0)]


def test_simplify_rejects_negative_tolerance() -> None:
    """Negative tolerances are invalid."""
    with pytest.raises(ValueError, match="tolerance"):
        simplify_path([(0.0, 0.0), (1.0, 1.0), (2.0, 0.0)], tolerance=-1.0)
