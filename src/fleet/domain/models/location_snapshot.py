from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.fleet.domain.models.coordinate import Coordinate, MapBounds
from src.fleet.domain.models.endpoint import EndpointState
from src.fleet.domain.models.route import RouteState


class LocationSnapshot(BaseModel):
    """Immutable view of the location pipeline handed to the view layer."""

    model_config = ConfigDict(frozen=True)

    origin: EndpointState = Field(default_factory=EndpointState)
    destination: EndpointState = Field(default_factory=EndpointState)
    route: RouteState | None = None
    bounds: MapBounds | None = None
    read_only: bool = False

    @property
    def origin_text(self) -> str:
        return self.origin.text

    @property
    def destination_text(self) -> str:
        return self.destination.text

    @property
    def origin_coordinate(self) -> Coordinate | None:
        return self.origin.coordinate

    @property
    def destination_coordinate(self) -> Coordinate | None:
        return self.destination.coordinate

    @property
    def route_polyline(self) -> tuple[Coordinate, ...]:
        if self.route is None:
            return ()
        return self.route.polyline

    @property
    def map_fit_bounds(self) -> MapBounds | None:
        return self.bounds
