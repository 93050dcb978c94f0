from pydantic import BaseModel, ConfigDict, Field

from src.fleet.domain.models.coordinate import Coordinate


class RouteState(BaseModel):
    """A routed polyline together with the endpoint pair it was computed for."""

    model_config = ConfigDict(frozen=True)

    polyline: tuple[Coordinate, ...] = Field(description="Ordered from origin to destination.")
    origin_used: Coordinate
    destination_used: Coordinate

    def matches(self, origin: Coordinate | None, destination: Coordinate | None) -> bool:
        return self.origin_used == origin and self.destination_used == destination
