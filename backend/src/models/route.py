"""Climbing route data models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Aspect(str, Enum):
    """Compass direction the climbing face points toward."""

    N = "N"
    NE = "NE"
    E = "E"
    SE = "SE"
    S = "S"
    SW = "SW"
    W = "W"
    NW = "NW"


class ClimbingRoute(BaseModel):
    """A climbing route as supplied by the external route catalog."""

    route_id: str = Field(..., description="Unique identifier for the route")
    area_id: str = Field(..., description="Identifier of the owning area")
    name: str | None = Field(None, description="Route display name")
    latitude: float | None = Field(
        None, ge=-90, le=90, description="Latitude of the route, if known"
    )
    longitude: float | None = Field(
        None, ge=-180, le=180, description="Longitude of the route, if known"
    )
    rock_type: str | None = Field(None, description="Rock type code, e.g. 'granite'")
    aspect: Aspect | None = Field(
        None, description="Compass aspect of the exposed face"
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("aspect", mode="before")
    @classmethod
    def normalize_aspect(cls, value):
        if isinstance(value, str):
            value = value.strip().upper()
            return value or None
        return value

    @property
    def has_gps(self) -> bool:
        """Whether both coordinates are present."""
        return self.latitude is not None and self.longitude is not None

    @property
    def display_name(self) -> str:
        """Get display-friendly route name."""
        return self.name or self.route_id
