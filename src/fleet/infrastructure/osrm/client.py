from __future__ import annotations

import logging

import polyline

from src.fleet.domain.exceptions import NetworkError, NoRouteFound
from src.fleet.domain.models.coordinate import Coordinate
from src.fleet.domain.repositories import RoutingRepository
from src.fleet.infrastructure.http.client import HttpClient

logger = logging.getLogger(__name__)

# OSRM answers 200 with one of these codes when the request is valid but unroutable.
_NO_ROUTE_CODES = {"NoRoute", "NoSegment"}

GEOMETRY_PRECISION = 5


def decode_geometry(encoded: str, precision: int = GEOMETRY_PRECISION) -> list[Coordinate]:
    """Decode an encoded polyline into (lat, lon) coordinates."""
    return [
        Coordinate(latitude=lat, longitude=lon)
        for lat, lon in polyline.decode(encoded, precision)
    ]


class OsrmRouteClient(RoutingRepository):
    """
    Driving routes from an OSRM server.

    Internal coordinates are (lat, lon); OSRM paths take ``lon,lat`` and the
    returned geometry decodes back to (lat, lon) pairs.
    """

    def __init__(self, http: HttpClient, profile: str = "driving") -> None:
        self._http = http
        self._profile = profile

    @staticmethod
    def format_coordinates(*coordinates: Coordinate) -> str:
        return ";".join(f"{c.longitude},{c.latitude}" for c in coordinates)

    async def route(self, origin: Coordinate, destination: Coordinate) -> list[Coordinate]:
        """
        Fetch the full-overview route geometry between two points.

        Raises ``NoRouteFound`` when OSRM returns no usable route.
        """
        path = f"route/v1/{self._profile}/{self.format_coordinates(origin, destination)}"
        try:
            data = await self._http.get_json(
                path,
                params={"overview": "full", "geometries": "polyline"},
            )
        except NetworkError as exc:
            # Unroutable pairs may also come back as a 4xx with an OSRM error body.
            if isinstance(exc.payload, dict) and exc.payload.get("code") in _NO_ROUTE_CODES:
                raise NoRouteFound(origin, destination) from exc
            raise
        if not isinstance(data, dict):
            raise NetworkError(self._http.url_for(path), "unexpected routing response shape")

        code = data.get("code")
        routes = data.get("routes") or []
        if code in _NO_ROUTE_CODES or not routes:
            logger.info(
                "OSRM returned no route",
                extra={"code": code, "message": data.get("message")},
            )
            raise NoRouteFound(origin, destination)

        geometry = routes[0].get("geometry")
        if not isinstance(geometry, str):
            raise NoRouteFound(origin, destination)
        try:
            return decode_geometry(geometry)
        except (IndexError, ValueError) as exc:
            raise NetworkError(self._http.url_for(path), f"undecodable geometry: {exc}") from exc
