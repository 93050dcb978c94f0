from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from src.fleet.domain.exceptions import NetworkError
from src.fleet.domain.models.coordinate import Coordinate
from src.fleet.domain.models.place import PlaceCandidate
from src.fleet.domain.repositories import GeocodingRepository
from src.fleet.infrastructure.http.client import HttpClient

logger = logging.getLogger(__name__)


class NominatimGeocodeClient(GeocodingRepository):
    """Forward and reverse geocoding against a Nominatim instance."""

    def __init__(
        self,
        http: HttpClient,
        *,
        country_codes: str | None = None,
        limit: int = 5,
    ) -> None:
        self._http = http
        self._country_codes = country_codes
        self._limit = limit

    async def search(self, query: str) -> list[PlaceCandidate]:
        """
        Return up to ``limit`` places matching ``query``.

        No match is an empty list. Transport failures raise ``NetworkError``.
        """
        params: dict[str, Any] = {
            "format": "json",
            "q": query,
            "addressdetails": 1,
            "limit": self._limit,
        }
        if self._country_codes:
            params["countrycodes"] = self._country_codes

        rows = await self._http.get_json("search", params=params)
        if not isinstance(rows, list):
            raise NetworkError(self._http.url_for("search"), "unexpected search response shape")

        candidates = []
        for row in rows:
            candidate = self._to_candidate(row)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    async def reverse_resolve(self, coordinate: Coordinate) -> str:
        """Best-effort place name; falls back to the coordinate text on any failure."""
        try:
            data = await self._http.get_json(
                "reverse",
                params={
                    "format": "json",
                    "lat": coordinate.latitude,
                    "lon": coordinate.longitude,
                },
            )
        except NetworkError as exc:
            logger.warning(
                "Reverse geocoding failed, using coordinate text",
                extra={"coordinate": coordinate.as_text(), "reason": exc.reason},
            )
            return coordinate.as_text()

        name = data.get("display_name") if isinstance(data, dict) else None
        if not name:
            logger.info(
                "Reverse geocoding returned no name",
                extra={"coordinate": coordinate.as_text()},
            )
            return coordinate.as_text()
        return str(name)

    @staticmethod
    def _to_candidate(row: Any) -> PlaceCandidate | None:
        try:
            return PlaceCandidate(
                display_name=row["display_name"],
                coordinate=Coordinate(
                    latitude=float(row["lat"]),
                    longitude=float(row["lon"]),
                ),
            )
        except (KeyError, TypeError, ValueError, ValidationError):
            logger.warning("Skipping malformed geocoding row", extra={"row": row})
            return None
