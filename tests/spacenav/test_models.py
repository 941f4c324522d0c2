"""Tests for space definition models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from spacenav.models import Corridor, Destination, ImageDimensions, SpaceConfig


def test_space_config_accepts_camel_case_payload() -> None:
    """Exported documents use imageWidth/imageHeight and a `type` key."""
    space = SpaceConfig.model_validate(
        {
            "corridors": [{"id": 3, "floor": 1, "type": "hallway", "polygon": [[0, 0], [10, 0], [10, 10]]}],
            "destinations": [{"id": "d1", "x": 1, "y": 2}],
            "imageWidth": 640,
            "imageHeight": 480,
        }
    )

    corridor = space.corridors[0]
    assert corridor.id == "3"
    assert corridor.kind == "hallway"
    assert corridor.polygon[1] == (10.0, 0.0)
    assert corridor.label == "3"
    assert space.image_dimensions == ImageDimensions(width=640, height=480)


def test_space_config_without_dimensions() -> None:
    """Missing dimensions are reported as None."""
    assert SpaceConfig(image_width=100).image_dimensions is None


def test_destination_name_defaults_to_id() -> None:
    """Unnamed destinations are labelled by id."""
    assert Destination(id=12, x=0, y=0).name == "12"
    assert Destination(id="a", name="Atrium", x=0, y=0).name == "Atrium"


def test_corridor_label_prefers_name() -> None:
    """Named corridors display their name."""
    assert Corridor(id="c", name="East Wing").label == "East Wing"


def test_invalid_dimensions_rejected() -> None:
    """Dimensions must be positive."""
    with pytest.raises(ValidationError):
        ImageDimensions(width=0, height=10)


def test_models_are_frozen() -> None:
    """Validated models are immutable."""
    dest = Destination(id="a", x=0, y=0)
    with pytest.raises(ValidationError):
        dest.x = 5
