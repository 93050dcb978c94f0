from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from src.fleet.domain.models.people import Passenger, User, Vehicle
from src.fleet.domain.models.task_type import TaskType


def _today() -> str:
    return date.today().isoformat()


class TaskDraft(BaseModel):
    """Editable task fields. Endpoints live in the location controller."""

    model_config = ConfigDict(validate_assignment=True)

    driver: User | None = None
    second_driver: User | None = Field(
        default=None, description="Only ever populated by hydration in the UI."
    )
    vehicle: Vehicle | None = None
    task_type: TaskType | None = None
    date: str = Field(default_factory=_today, description="ISO date (YYYY-MM-DD).")
    time: str = Field(default="08:00", description="Departure time (HH:MM).")
    description: str = ""
    passengers: list[Passenger] = Field(default_factory=list)
