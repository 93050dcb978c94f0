from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

import inject

from src.fleet.application.debounce import DebounceTimer
from src.fleet.domain.exceptions import FleetClientError, InvalidModeError, NetworkError, NoRouteFound
from src.fleet.domain.models.coordinate import Coordinate, MapBounds
from src.fleet.domain.models.endpoint import EndpointKind, EndpointPhase, EndpointState
from src.fleet.domain.models.location_snapshot import LocationSnapshot
from src.fleet.domain.models.place import PlaceCandidate
from src.fleet.domain.models.route import RouteState
from src.fleet.domain.repositories import GeocodingRepository, RoutingRepository

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[LocationSnapshot], None]
CoordinatePair = tuple[Coordinate, Coordinate]


class _Endpoint:
    """Mutable working state of one endpoint; published as ``EndpointState``."""

    def __init__(self) -> None:
        self.text = ""
        self.confirmed_text = ""
        self.confirmed_coordinate: Coordinate | None = None
        self.coordinate: Coordinate | None = None
        self.resolving = False
        self.phase = EndpointPhase.EMPTY
        self.candidates: tuple[PlaceCandidate, ...] = ()
        # Bumped on every mutation so late lookups can tell they were superseded.
        self.generation = 0

    def to_state(self) -> EndpointState:
        return EndpointState(
            text=self.text,
            coordinate=self.coordinate,
            resolving=self.resolving,
            phase=self.phase,
            candidates=self.candidates,
        )


class LocationResolutionController:
    """
    Owns the origin/destination pair of a task and keeps text, coordinates
    and the driving route consistent while lookups complete out of order.

    Stale results are rejected rather than cancelled: a search result is applied
    only if its query still matches the live text, and a route only if it was
    computed for the current coordinate pair.
    """

    def __init__(
        self,
        geocoder: GeocodingRepository | None = None,
        router: RoutingRepository | None = None,
        *,
        debounce_seconds: float = 1.0,
        min_query_length: int = 3,
    ) -> None:
        self._geocoder = geocoder or inject.instance(GeocodingRepository)
        self._router = router or inject.instance(RoutingRepository)
        self._min_query_length = min_query_length
        self._endpoints = {kind: _Endpoint() for kind in EndpointKind}
        self._timers = {
            kind: DebounceTimer(debounce_seconds, self._search) for kind in EndpointKind
        }
        self._route: RouteState | None = None
        self._route_in_flight: CoordinatePair | None = None
        self._read_only = False
        self._touched = False
        self._background: set[asyncio.Task[Any]] = set()
        self._listeners: list[SnapshotListener] = []
        self._snapshot = self._build_snapshot()

    @property
    def snapshot(self) -> LocationSnapshot:
        return self._snapshot

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def touched(self) -> bool:
        """An endpoint has been edited since construction."""
        return self._touched

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register ``listener`` for every published snapshot; returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ----------------
    # User-driven mutations
    # ----------------
    def set_text(self, kind: EndpointKind, text: str) -> None:
        """Apply a keystroke-level edit and (re)start the debounce window."""
        self._ensure_editable("set_text")
        endpoint = self._endpoints[kind]
        if text == endpoint.text:
            return
        self._touched = True
        endpoint.generation += 1
        endpoint.text = text
        endpoint.resolving = False
        endpoint.candidates = ()

        previous = endpoint.coordinate
        timer = self._timers[kind]
        if text and text == endpoint.confirmed_text and endpoint.confirmed_coordinate is not None:
            # Typed back to the last confirmed place: no search needed.
            endpoint.coordinate = endpoint.confirmed_coordinate
            endpoint.phase = EndpointPhase.RESOLVED
            timer.cancel()
        elif text:
            endpoint.coordinate = None
            endpoint.phase = EndpointPhase.DEBOUNCING
            timer.schedule(kind, text, endpoint.generation)
        else:
            endpoint.coordinate = None
            endpoint.phase = EndpointPhase.EMPTY
            timer.cancel()

        if endpoint.coordinate != previous:
            self._coordinates_changed()
        else:
            self._publish()

    def select_candidate(self, kind: EndpointKind, candidate: PlaceCandidate) -> None:
        """Resolve an endpoint from a search result the user picked."""
        self._ensure_editable("select_candidate")
        self._touched = True
        self._timers[kind].cancel()
        endpoint = self._endpoints[kind]
        endpoint.generation += 1
        endpoint.text = candidate.display_name
        endpoint.confirmed_text = candidate.display_name
        endpoint.confirmed_coordinate = candidate.coordinate
        endpoint.coordinate = candidate.coordinate
        endpoint.candidates = ()
        endpoint.resolving = False
        endpoint.phase = EndpointPhase.RESOLVED
        self._coordinates_changed()

    async def use_device_location(self, kind: EndpointKind, coordinate: Coordinate) -> None:
        """Resolve an endpoint from a device fix; the name comes from reverse geocoding."""
        self._ensure_editable("use_device_location")
        self._touched = True
        self._timers[kind].cancel()
        endpoint = self._endpoints[kind]
        endpoint.generation += 1
        generation = endpoint.generation
        endpoint.coordinate = coordinate
        endpoint.text = coordinate.as_text()
        endpoint.confirmed_text = endpoint.text
        endpoint.confirmed_coordinate = coordinate
        endpoint.candidates = ()
        endpoint.resolving = True
        endpoint.phase = EndpointPhase.RESOLVING
        self._coordinates_changed()

        try:
            name = await self._geocoder.reverse_resolve(coordinate)
        except FleetClientError as exc:
            logger.warning(
                "Reverse geocoding raised, keeping coordinate text",
                extra={"endpoint": kind.value, "error": str(exc)},
            )
            name = coordinate.as_text()

        if endpoint.generation != generation:
            logger.debug("Discarding superseded reverse geocode", extra={"endpoint": kind.value})
            return
        endpoint.text = name or coordinate.as_text()
        endpoint.confirmed_text = endpoint.text
        endpoint.resolving = False
        endpoint.phase = EndpointPhase.RESOLVED
        self._publish()

    def hydrate(
        self,
        origin_text: str,
        origin: Coordinate | None,
        destination_text: str,
        destination: Coordinate | None,
    ) -> None:
        """Load server-provided endpoints verbatim and lock the controller."""
        if self._touched:
            raise InvalidModeError("hydrate", "only allowed before any edit")
        for kind, text, coordinate in (
            (EndpointKind.ORIGIN, origin_text, origin),
            (EndpointKind.DESTINATION, destination_text, destination),
        ):
            self._timers[kind].cancel()
            endpoint = self._endpoints[kind]
            endpoint.generation += 1
            endpoint.text = text
            endpoint.confirmed_text = text
            endpoint.confirmed_coordinate = coordinate
            endpoint.coordinate = coordinate
            endpoint.candidates = ()
            endpoint.resolving = False
            if coordinate is not None:
                endpoint.phase = EndpointPhase.RESOLVED
            else:
                endpoint.phase = EndpointPhase.TYPING if text else EndpointPhase.EMPTY
        self._read_only = True
        self._coordinates_changed()

    # ----------------
    # Lifecycle
    # ----------------
    async def flush(self) -> None:
        """Fire pending debounces now and wait until all lookups have settled."""
        timers = self._timers.values()
        while True:
            for timer in timers:
                timer.fire()
            if not self._background and not any(timer.busy for timer in timers):
                return
            for timer in timers:
                await timer.drain()
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def aclose(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
            await timer.drain()
        for task in list(self._background):
            task.cancel()
        await asyncio.gather(*list(self._background), return_exceptions=True)
        self._listeners.clear()

    # ----------------
    # Internals
    # ----------------
    async def _search(self, kind: EndpointKind, query: str, generation: int) -> None:
        endpoint = self._endpoints[kind]
        if not self._is_current(endpoint, query, generation):
            return
        if len(query) < self._min_query_length or query == endpoint.confirmed_text:
            endpoint.candidates = ()
            if endpoint.coordinate is not None:
                endpoint.phase = EndpointPhase.RESOLVED
            else:
                endpoint.phase = EndpointPhase.TYPING
            self._publish()
            return

        endpoint.phase = EndpointPhase.RESOLVING
        endpoint.resolving = True
        self._publish()

        try:
            candidates = await self._geocoder.search(query)
        except NetworkError as exc:
            if not self._is_current(endpoint, query, generation):
                return
            logger.warning(
                "Place search failed",
                extra={"endpoint": kind.value, "query": query, "reason": exc.reason},
            )
            endpoint.resolving = False
            endpoint.candidates = ()
            endpoint.phase = EndpointPhase.RESOLUTION_FAILED
            self._publish()
            # The failure is shown once; the endpoint then waits for more typing.
            endpoint.phase = EndpointPhase.TYPING
            self._publish()
            return

        if not self._is_current(endpoint, query, generation):
            logger.debug(
                "Discarding stale search results",
                extra={"endpoint": kind.value, "query": query},
            )
            return
        # Phase stays RESOLVING until the user picks one of the candidates.
        endpoint.resolving = False
        endpoint.candidates = tuple(candidates)
        self._publish()

    @staticmethod
    def _is_current(endpoint: _Endpoint, query: str, generation: int) -> bool:
        return endpoint.text == query and endpoint.generation == generation

    def _current_pair(self) -> tuple[Coordinate | None, Coordinate | None]:
        return (
            self._endpoints[EndpointKind.ORIGIN].coordinate,
            self._endpoints[EndpointKind.DESTINATION].coordinate,
        )

    def _coordinates_changed(self) -> None:
        origin, destination = self._current_pair()
        if self._route is not None and not self._route.matches(origin, destination):
            self._route = None
        self._publish()

        if origin is None or destination is None:
            return
        pair = (origin, destination)
        if self._route is not None or self._route_in_flight == pair:
            return
        self._route_in_flight = pair
        self._spawn(self._fetch_route(pair))

    async def _fetch_route(self, pair: CoordinatePair) -> None:
        origin, destination = pair
        points: list[Coordinate] | None = None
        try:
            points = await self._router.route(origin, destination)
        except NoRouteFound:
            logger.info("No drivable route between endpoints")
        except NetworkError as exc:
            logger.warning("Route fetch failed", extra={"reason": exc.reason})
        finally:
            if self._route_in_flight == pair:
                self._route_in_flight = None

        if self._current_pair() != pair:
            logger.debug("Discarding route for superseded endpoints")
            return
        if points is None:
            return
        self._route = RouteState(
            polyline=tuple(points),
            origin_used=origin,
            destination_used=destination,
        )
        self._publish()

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background_finished)

    def _background_finished(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background lookup failed", exc_info=task.exception())

    def _ensure_editable(self, operation: str) -> None:
        if self._read_only:
            raise InvalidModeError(operation)

    def _build_snapshot(self) -> LocationSnapshot:
        origin, destination = self._current_pair()
        bounds = None
        if origin is not None and destination is not None:
            bounds = MapBounds.around(origin, destination)
        return LocationSnapshot(
            origin=self._endpoints[EndpointKind.ORIGIN].to_state(),
            destination=self._endpoints[EndpointKind.DESTINATION].to_state(),
            route=self._route,
            bounds=bounds,
            read_only=self._read_only,
        )

    def _publish(self) -> None:
        self._snapshot = self._build_snapshot()
        for listener in list(self._listeners):
            listener(self._snapshot)
