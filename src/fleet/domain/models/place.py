from pydantic import BaseModel, ConfigDict, Field

from src.fleet.domain.models.coordinate import Coordinate


class PlaceCandidate(BaseModel):
    """A single geocoding match offered to the user for selection."""

    model_config = ConfigDict(frozen=True)

    display_name: str = Field(description="Human readable place name.")
    coordinate: Coordinate = Field(description="Resolved position of the place.")
