from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0, description="Latitude in degrees.")
    longitude: float = Field(ge=-180.0, le=180.0, description="Longitude in degrees.")

    def as_text(self) -> str:
        """Deterministic display text used when no place name is available."""
        return f"{self.latitude:.5f}, {self.longitude:.5f}"


class MapBounds(BaseModel):
    """Bounding box the map fits to when both endpoints are known."""

    model_config = ConfigDict(frozen=True)

    south: float = Field(description="Minimum latitude.")
    west: float = Field(description="Minimum longitude.")
    north: float = Field(description="Maximum latitude.")
    east: float = Field(description="Maximum longitude.")

    @classmethod
    def around(cls, *coordinates: Coordinate) -> MapBounds:
        if not coordinates:
            raise ValueError("At least one coordinate is required to build bounds.")
        latitudes = [c.latitude for c in coordinates]
        longitudes = [c.longitude for c in coordinates]
        return cls(
            south=min(latitudes),
            west=min(longitudes),
            north=max(latitudes),
            east=max(longitudes),
        )
