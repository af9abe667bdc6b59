"""Coordinates, poses and panorama lookup results."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Coordinate(BaseModel):
    """A point on the globe in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class Pose(BaseModel):
    """A coordinate plus the viewing direction.

    The live pose is updated in place as the panorama moves; consumers
    always receive :meth:`snapshot` copies.
    """

    model_config = ConfigDict(validate_assignment=True)

    lat: float = Field(default=0.0, ge=-90.0, le=90.0)
    lng: float = Field(default=0.0, ge=-180.0, le=180.0)
    heading: float = 0.0
    pitch: float = Field(default=0.0, ge=-90.0, le=90.0)

    @field_validator("heading")
    @classmethod
    def _normalize_heading(cls, value: float) -> float:
        result = value % 360.0
        return 0.0 if result >= 360.0 else result

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)

    def snapshot(self) -> Pose:
        """Return an independent copy of this pose."""
        return self.model_copy()

    def same_position(self, other: Pose) -> bool:
        return self.lat == other.lat and self.lng == other.lng

    def same_pov(self, other: Pose) -> bool:
        return self.heading == other.heading and self.pitch == other.pitch


class PanoramaLocation(BaseModel):
    """Result of a nearest-panorama lookup."""

    model_config = ConfigDict(frozen=True)

    pano_id: str = ""
    coordinate: Coordinate
    description: str = ""
