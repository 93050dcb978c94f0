from __future__ import annotations

from pydantic import BaseModel, Field

from src.fleet.domain.models.coordinate import Coordinate
from src.fleet.domain.models.people import Passenger, User, Vehicle


class TaskLocations(BaseModel):
    start_location: str = ""
    end_location: str = ""
    start: Coordinate | None = None
    end: Coordinate | None = None


class TaskRecord(BaseModel):
    """Full task as returned by the task API detail endpoint."""

    id: str | None = None
    driver: User
    driver2: User | None = None
    vehicle: Vehicle
    task_type: str
    date: str
    time: str
    description: str = ""
    passengers: list[Passenger] = Field(default_factory=list)
    locations: TaskLocations | None = None
