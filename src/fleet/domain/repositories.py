from __future__ import annotations

from typing import Protocol

from src.fleet.domain.models.coordinate import Coordinate
from src.fleet.domain.models.form import FormReferenceData
from src.fleet.domain.models.location_snapshot import LocationSnapshot
from src.fleet.domain.models.place import PlaceCandidate
from src.fleet.domain.models.task_draft import TaskDraft
from src.fleet.domain.models.task_record import TaskRecord
from src.fleet.domain.models.task_summary import TaskSummary


class GeocodingRepository(Protocol):
    """Repository contract for turning place names into coordinates and back."""

    async def search(self, query: str) -> list[PlaceCandidate]:
        """Return candidate places for ``query``; an empty list when nothing matches."""

    async def reverse_resolve(self, coordinate: Coordinate) -> str:
        """Return a display name for ``coordinate``. Never raises."""


class RoutingRepository(Protocol):
    """Repository contract for driving routes between two coordinates."""

    async def route(self, origin: Coordinate, destination: Coordinate) -> list[Coordinate]:
        """Return the routed polyline ordered from ``origin`` to ``destination``."""


class TaskServiceRepository(Protocol):
    """Repository contract for the remote task API."""

    async def get_form_data(self) -> FormReferenceData:
        """Fetch drivers, users and vehicles used by the form dropdowns."""

    async def get_task(self, task_id: str) -> TaskRecord:
        """Fetch the full record of an existing task."""

    async def create_task(self, draft: TaskDraft, locations: LocationSnapshot) -> str | None:
        """Create a task from a complete draft; returns its id when the server provides one."""

    async def list_tasks(self, user_id: int, role_id: int) -> list[TaskSummary]:
        """Fetch tasks visible to the given user."""

    async def update_push_token(self, user_id: int, token: str) -> None:
        """Register a push notification token for the given user."""
