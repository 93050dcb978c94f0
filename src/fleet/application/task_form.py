from __future__ import annotations

import logging
from typing import Any

import inject

from src.fleet.application.location import LocationResolutionController
from src.fleet.domain.exceptions import (
    DraftValidationError,
    InvalidModeError,
    PassengerIndexError,
    SubmissionInProgressError,
)
from src.fleet.domain.models.form import (
    FieldViolation,
    FormMode,
    FormReferenceData,
    ValidationResult,
)
from src.fleet.domain.models.people import Passenger, User
from src.fleet.domain.models.task_draft import TaskDraft
from src.fleet.domain.models.task_record import TaskRecord
from src.fleet.domain.models.task_type import TaskType
from src.fleet.domain.repositories import TaskServiceRepository

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {"driver", "second_driver", "vehicle", "task_type", "date", "time", "description"}
)


class TaskFormController:
    """
    Create-or-view task form.

    The mode is fixed when the screen is entered: a task id means View mode,
    where every mutation path raises ``InvalidModeError`` and submission is
    unavailable.
    """

    def __init__(
        self,
        task_id: str | None = None,
        *,
        task_service: TaskServiceRepository | None = None,
        locations: LocationResolutionController | None = None,
    ) -> None:
        self._task_id = task_id
        self._mode = FormMode.VIEW if task_id else FormMode.CREATE
        self._task_service = task_service or inject.instance(TaskServiceRepository)
        self._locations = locations or LocationResolutionController()
        self._draft = TaskDraft()
        self._reference = FormReferenceData()
        self._touched = False
        self._submitting = False

    @property
    def mode(self) -> FormMode:
        return self._mode

    @property
    def task_id(self) -> str | None:
        return self._task_id

    @property
    def draft(self) -> TaskDraft:
        return self._draft.model_copy(deep=True)

    @property
    def reference_data(self) -> FormReferenceData:
        return self._reference

    @property
    def locations(self) -> LocationResolutionController:
        return self._locations

    @property
    def submitting(self) -> bool:
        return self._submitting

    async def load(self) -> None:
        """Fetch dropdown data and, in View mode, the task being viewed."""
        self._reference = await self._task_service.get_form_data()
        if self._mode is FormMode.VIEW and self._task_id is not None:
            record = await self._task_service.get_task(self._task_id)
            self.hydrate(record)

    def hydrate(self, record: TaskRecord) -> None:
        """Populate the draft from a server record and switch to View mode.

        Server coordinates are trusted as-is; no geocoding happens here.
        """
        if self._touched or self._locations.touched:
            raise InvalidModeError("hydrate", "only allowed before any edit")
        try:
            task_type: TaskType | None = TaskType(record.task_type)
        except ValueError:
            logger.warning("Unknown task type on record", extra={"task_type": record.task_type})
            task_type = None

        self._draft = TaskDraft(
            driver=record.driver,
            second_driver=record.driver2,
            vehicle=record.vehicle,
            task_type=task_type,
            date=record.date,
            time=record.time,
            description=record.description,
            passengers=list(record.passengers),
        )
        locations = record.locations
        if locations is not None:
            self._locations.hydrate(
                locations.start_location,
                locations.start,
                locations.end_location,
                locations.end,
            )
        else:
            self._locations.hydrate("", None, "", None)
        if record.id is not None:
            self._task_id = record.id
        self._mode = FormMode.VIEW

    def update_field(self, name: str, value: Any) -> None:
        self._ensure_editable("update_field")
        if name not in EDITABLE_FIELDS:
            raise KeyError(f"Unknown task field '{name}'")
        # validate_assignment coerces e.g. "operasi" into TaskType.OPERASI
        setattr(self._draft, name, value)
        self._touched = True

    def add_passenger(self) -> None:
        self._ensure_editable("add_passenger")
        self._draft.passengers = [*self._draft.passengers, Passenger()]
        self._touched = True

    def update_passenger(self, index: int, user: User) -> None:
        self._ensure_editable("update_passenger")
        passengers = list(self._draft.passengers)
        if not 0 <= index < len(passengers):
            raise PassengerIndexError(index, len(passengers))
        passengers[index] = Passenger.from_user(user)
        self._draft.passengers = passengers
        self._touched = True

    def validate(self) -> ValidationResult:
        """Collect every missing required field, not just the first."""
        draft = self._draft
        snapshot = self._locations.snapshot
        violations = []
        if draft.driver is None:
            violations.append(FieldViolation(field="driver", message="Select a driver."))
        if draft.vehicle is None:
            violations.append(FieldViolation(field="vehicle", message="Select a vehicle."))
        if draft.task_type is None:
            violations.append(FieldViolation(field="task_type", message="Select a task type."))
        if snapshot.origin_coordinate is None:
            violations.append(FieldViolation(field="origin", message="Choose a start location."))
        if snapshot.destination_coordinate is None:
            violations.append(
                FieldViolation(field="destination", message="Choose an end location.")
            )
        return ValidationResult(violations=violations)

    async def submit(self) -> str | None:
        """
        Send the draft to the task API and return the new task id.

        Only one submission may be in flight; the draft is left untouched on
        failure so the user can retry.
        """
        self._ensure_editable("submit")
        if self._submitting:
            raise SubmissionInProgressError()
        result = self.validate()
        if not result.ok:
            raise DraftValidationError(result.violations)

        self._submitting = True
        try:
            task_id = await self._task_service.create_task(
                self._draft.model_copy(deep=True), self._locations.snapshot
            )
        finally:
            self._submitting = False
        logger.info("Task submitted", extra={"task_id": task_id})
        return task_id

    def _ensure_editable(self, operation: str) -> None:
        if self._mode is FormMode.VIEW:
            raise InvalidModeError(operation)
