"""Space definition payload models.

Corridors and destinations arrive as JSON-like dictionaries (for example an
exported space editor document). These pydantic models validate and
normalize them before the rasterizer and solver see them.

Usage example:
    >>> space = SpaceConfig.model_validate(
    ...     {
    ...         "corridors": [{"id": "c1", "floor": 0, "polygon": [[0, 0], [100, 0], [100, 20], [0, 20]]}],
    ...         "destinations": [{"id": "exit", "name": "Exit", "floor": 0, "x": 90, "y": 10}],
    ...         "imageWidth": 100,
    ...         "imageHeight": 20,
    ...     }
    ... )
    >>> space.image_dimensions
    ImageDimensions(width=100.0, height=20.0)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Point = tuple[float, float]


class Corridor(BaseModel):
    """Navigable polygon on one floor."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    floor: int | None = None
    polygon: list[Point] = Field(default_factory=list)
    kind: str = Field(default="corridor", alias="type")
    name: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return str(value)

    @property
    def label(self) -> str:
        """Human readable corridor name, falling back to the id."""
        return self.name or self.id


class Destination(BaseModel):
    """Named point goal."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str = ""
    floor: int | None = None
    x: float
    y: float
    zone: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return str(value)

    @model_validator(mode="before")
    @classmethod
    def _default_name(cls, data: object) -> object:
        if isinstance(data, dict) and not data.get("name") and "id" in data:
            data = {**data, "name": str(data["id"])}
        return data


class ImageDimensions(BaseModel):
    """Pixel extent of the floor plan space."""

    model_config = ConfigDict(frozen=True)

    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


class SpaceConfig(BaseModel):
    """Complete environment definition handed to the navigator."""

    model_config = ConfigDict(populate_by_name=True)

    corridors: list[Corridor] = Field(default_factory=list)
    destinations: list[Destination] = Field(default_factory=list)
    image_width: float | None = Field(default=None, alias="imageWidth", gt=0)
    image_height: float | None = Field(default=None, alias="imageHeight", gt=0)

    @model_validator(mode="after")
    def _unique_destination_ids(self) -> "SpaceConfig":
        """Destination ids key the value-field cache and must be unique."""
        seen: set[str] = set()
        for dest in self.destinations:
            if dest.id in seen:
                raise ValueError(f"Duplicate destination id '{dest.id}'")
            seen.add(dest.id)
        return self

    @property
    def image_dimensions(self) -> ImageDimensions | None:
        if self.image_width is None or self.image_height is None:
            return None
        return ImageDimensions(width=self.image_width, height=self.image_height)
