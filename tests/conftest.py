from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any

import pytest
import requests

from src.fleet.application.location import LocationResolutionController
from src.fleet.domain.exceptions import NetworkError, NoRouteFound, TaskNotFoundError
from src.fleet.domain.models.coordinate import Coordinate
from src.fleet.domain.models.form import FormReferenceData
from src.fleet.domain.models.location_snapshot import LocationSnapshot
from src.fleet.domain.models.people import User, Vehicle
from src.fleet.domain.models.place import PlaceCandidate
from src.fleet.domain.models.task_draft import TaskDraft
from src.fleet.domain.models.task_record import TaskRecord
from src.fleet.domain.models.task_summary import TaskSummary
from src.fleet.domain.repositories import (
    GeocodingRepository,
    RoutingRepository,
    TaskServiceRepository,
)

KL = Coordinate(latitude=3.1412, longitude=101.6865)
PJ = Coordinate(latitude=3.1073, longitude=101.6067)
SHAH_ALAM = Coordinate(latitude=3.0733, longitude=101.5185)

KL_PLACE = PlaceCandidate(display_name="Kuala Lumpur, Malaysia", coordinate=KL)
PJ_PLACE = PlaceCandidate(display_name="Petaling Jaya, Selangor", coordinate=PJ)
SHAH_ALAM_PLACE = PlaceCandidate(display_name="Shah Alam, Selangor", coordinate=SHAH_ALAM)


class StubGeocoder(GeocodingRepository):
    """In-memory geocoder; searches can be held open with ``hold``."""

    def __init__(self) -> None:
        self.results: dict[str, list[PlaceCandidate]] = {}
        self.failing_queries: set[str] = set()
        self.names: dict[Coordinate, str] = {}
        self.reverse_error: Exception | None = None
        self.search_calls: list[str] = []
        self.reverse_calls: list[Coordinate] = []
        self._gates: dict[str, asyncio.Event] = {}
        self._started: dict[str, asyncio.Event] = {}

    def hold(self, query: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[query] = gate
        return gate

    def started(self, query: str) -> asyncio.Event:
        return self._started.setdefault(query, asyncio.Event())

    async def search(self, query: str) -> list[PlaceCandidate]:
        self.search_calls.append(query)
        self.started(query).set()
        gate = self._gates.get(query)
        if gate is not None:
            await gate.wait()
        if query in self.failing_queries:
            raise NetworkError("https://geocoder.test/search", "connection refused")
        return list(self.results.get(query, []))

    async def reverse_resolve(self, coordinate: Coordinate) -> str:
        self.reverse_calls.append(coordinate)
        if self.reverse_error is not None:
            raise self.reverse_error
        return self.names.get(coordinate, coordinate.as_text())


class StubRouter(RoutingRepository):
    def __init__(self) -> None:
        self.calls: list[tuple[Coordinate, Coordinate]] = []
        self.unroutable: set[tuple[Coordinate, Coordinate]] = set()
        self._gates: dict[tuple[Coordinate, Coordinate], asyncio.Event] = {}

    def hold(self, origin: Coordinate, destination: Coordinate) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[(origin, destination)] = gate
        return gate

    async def route(self, origin: Coordinate, destination: Coordinate) -> list[Coordinate]:
        pair = (origin, destination)
        self.calls.append(pair)
        gate = self._gates.get(pair)
        if gate is not None:
            await gate.wait()
        if pair in self.unroutable:
            raise NoRouteFound(origin, destination)
        midpoint = Coordinate(
            latitude=(origin.latitude + destination.latitude) / 2,
            longitude=(origin.longitude + destination.longitude) / 2,
        )
        return [origin, midpoint, destination]


class StubTaskService(TaskServiceRepository):
    """Simple in-memory task API replacement for tests."""

    def __init__(self) -> None:
        self.reference = FormReferenceData(
            drivers=[DRIVER],
            users=[DRIVER, PASSENGER_USER],
            vehicles=[VEHICLE],
        )
        self.records: dict[str, TaskRecord] = {}
        self.tasks: list[TaskSummary] = []
        self.create_calls: list[tuple[TaskDraft, LocationSnapshot]] = []
        self.create_error: Exception | None = None
        self.list_error: Exception | None = None
        self.list_calls: list[tuple[int, int]] = []
        self.push_tokens: list[tuple[int, str]] = []
        self.create_gate: asyncio.Event | None = None
        self.create_started = asyncio.Event()
        self.list_gate: asyncio.Event | None = None

    async def get_form_data(self) -> FormReferenceData:
        return self.reference

    async def get_task(self, task_id: str) -> TaskRecord:
        if task_id not in self.records:
            raise TaskNotFoundError(task_id)
        return self.records[task_id]

    async def create_task(self, draft: TaskDraft, locations: LocationSnapshot) -> str | None:
        self.create_calls.append((draft, locations))
        self.create_started.set()
        if self.create_gate is not None:
            await self.create_gate.wait()
        if self.create_error is not None:
            raise self.create_error
        return str(100 + len(self.create_calls))

    async def list_tasks(self, user_id: int, role_id: int) -> list[TaskSummary]:
        self.list_calls.append((user_id, role_id))
        if self.list_gate is not None:
            await self.list_gate.wait()
        if self.list_error is not None:
            raise self.list_error
        return list(self.tasks)

    async def update_push_token(self, user_id: int, token: str) -> None:
        self.push_tokens.append((user_id, token))


DRIVER = User(id=11, name="Kpl Ahmad", no_tentera="1122334")
PASSENGER_USER = User(id=12, name="Lt Siti", no_tentera="7788990")
VEHICLE = Vehicle(asset_id=5, variant_id=2, registration_number="ZB 1234", jenis_kenderaan="Lori 3 Tan")


class FakeSession(requests.Session):
    """requests session that serves queued responses instead of the network."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[dict[str, Any]] = []
        self.queue: list[requests.Response | Exception] = []

    def reply(self, body: Any, status: int = 200) -> None:
        self.queue.append(make_response(body, status))

    def fail(self, error: Exception) -> None:
        self.queue.append(error)

    def request(self, method, url, params=None, json=None, timeout=None, **kwargs):  # type: ignore[override]
        self.calls.append(
            {"method": method, "url": url, "params": params, "json": json, "timeout": timeout}
        )
        item = self.queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def make_response(body: Any, status: int = 200) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.encoding = "utf-8"
    response._content = body.encode() if isinstance(body, str) else json.dumps(body).encode()
    return response


@pytest.fixture
def geocoder() -> StubGeocoder:
    return StubGeocoder()


@pytest.fixture
def router() -> StubRouter:
    return StubRouter()


@pytest.fixture
def task_service() -> StubTaskService:
    return StubTaskService()


@pytest.fixture
def make_locations(
    geocoder: StubGeocoder, router: StubRouter
) -> Callable[..., LocationResolutionController]:
    def _make(debounce_seconds: float = 0.02) -> LocationResolutionController:
        return LocationResolutionController(
            geocoder, router, debounce_seconds=debounce_seconds, min_query_length=3
        )

    return _make


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()
