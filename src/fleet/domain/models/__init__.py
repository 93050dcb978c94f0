from src.fleet.domain.models.coordinate import Coordinate, MapBounds
from src.fleet.domain.models.endpoint import EndpointKind, EndpointPhase, EndpointState
from src.fleet.domain.models.form import (
    FieldViolation,
    FormMode,
    FormReferenceData,
    ValidationResult,
)
from src.fleet.domain.models.location_snapshot import LocationSnapshot
from src.fleet.domain.models.people import Passenger, User, Vehicle
from src.fleet.domain.models.place import PlaceCandidate
from src.fleet.domain.models.route import RouteState
from src.fleet.domain.models.task_draft import TaskDraft
from src.fleet.domain.models.task_record import TaskLocations, TaskRecord
from src.fleet.domain.models.task_summary import TaskSummary
from src.fleet.domain.models.task_type import TaskType

__all__ = [
    "Coordinate",
    "MapBounds",
    "PlaceCandidate",
    "EndpointKind",
    "EndpointPhase",
    "EndpointState",
    "RouteState",
    "LocationSnapshot",
    "User",
    "Vehicle",
    "Passenger",
    "TaskType",
    "TaskDraft",
    "TaskRecord",
    "TaskLocations",
    "TaskSummary",
    "FormMode",
    "FieldViolation",
    "ValidationResult",
    "FormReferenceData",
]
