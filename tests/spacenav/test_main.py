"""Tests for the spacenav command line entry point."""

from __future__ import annotations

import json

import pytest

from spacenav.main import main

SPACE = {
    "corridors": [
        {"id": "hall", "name": "Main Hall", "floor": 0, "polygon": [[0, 0], [100, 0], [100, 20], [0, 20]]},
        {"id": "annex", "floor": 0, "polygon": [[200, 0], [240, 0], [240, 20], [200, 20]]},
    ],
    "destinations": [
        {"id": "exit", "name": "Exit", "floor": 0, "x": 90, "y": 10},
        {"id": "annex-door", "floor": 0, "x": 230, "y": 10},
    ],
    "imageWidth": 240,
    "imageHeight": 20,
}


@pytest.fixture()
def space_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SPACENAV_GRID_RESOLUTION", "10")
    path = tmp_path / "space.json"
    path.write_text(json.dumps(SPACE), encoding="utf-8")
    return path


def test_main_prints_route(space_file, capsys) -> None:
    """A reachable destination prints the route and exits 0."""
    code = main([str(space_file), "--start", "5", "10", "--destination", "exit", "--floor", "0", "--solve-all"])

    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["success"] is True
    assert payload["status"] == "reached"
    assert payload["destination"]["name"] == "Exit"
    assert payload["simplified_path"] == [{"x": 5.0, "y": 15.0}, {"x": 95.0, "y": 15.0}]
    assert payload["location_names"] == ["Main Hall", "Main Hall"]
    assert payload["stats"]["solved_destination_count"] == 2


def test_main_no_route_exits_1(space_file, capsys) -> None:
    """A disconnected destination exits 1 with a failure payload."""
    code = main([str(space_file), "--start", "5", "10", "--destination", "annex-door"])

    payload = json.loads(capsys.readouterr().out)
    assert code == 1
    assert payload["status"] == "no_path"


def test_main_unknown_destination_exits_2(space_file) -> None:
    """Unknown destination ids are a configuration error."""
    assert main([str(space_file), "--start", "5", "10", "--destination", "nope"]) == 2


def test_main_invalid_space_exits_2(tmp_path, monkeypatch) -> None:
    """Malformed or missing space files exit 2."""
    monkeypatch.chdir(tmp_path)
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")

    assert main([str(bad), "--start", "0", "0", "--destination", "x"]) == 2
    assert main([str(tmp_path / "missing.json"), "--start", "0", "0", "--destination", "x"]) == 2


def test_main_without_dimensions_exits_2(tmp_path, monkeypatch) -> None:
    """A space without image size cannot be navigated."""
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "space.json"
    path.write_text(json.dumps({"corridors": [], "destinations": []}), encoding="utf-8")

    assert main([str(path), "--start", "0", "0", "--destination", "x"]) == 2


def test_main_exports_grid(space_file, tmp_path) -> None:
    """--export-grid writes the floor layer."""
    out = tmp_path / "out" / "floor0.json"

    main([str(space_file), "--start", "5", "10", "--destination", "exit", "--floor", "0", "--export-grid", str(out)])

    layer = json.loads(out.read_text(encoding="utf-8"))
    assert layer["floor"] == 0
    assert layer["cols"] == 24
