from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from src.fleet.domain.models.form import FieldViolation


class FleetClientError(Exception):
    """Base class for every error raised by the task client."""


class NetworkError(FleetClientError):
    """Raised on transport failure, timeout or a non-success HTTP status."""

    def __init__(self, url: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(f"Request to '{url}' failed: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code
        self.payload: Any = None


class NoRouteFound(FleetClientError):
    """Raised when the routing service returns zero routes for a pair."""

    def __init__(self, origin: object, destination: object) -> None:
        super().__init__(f"No route found between {origin} and {destination}.")
        self.origin = origin
        self.destination = destination


class RejectedByServer(FleetClientError):
    """Raised when the task API answers with a structured failure body."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TaskNotFoundError(FleetClientError):
    """Raised when a task identifier does not exist on the task API."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id '{task_id}' was not found.")
        self.task_id = task_id


class DraftValidationError(FleetClientError):
    """Raised when a draft is submitted while it still has violations."""

    def __init__(self, violations: list[FieldViolation]) -> None:
        fields = ", ".join(violation.field for violation in violations)
        super().__init__(f"Task draft is incomplete: {fields}")
        self.violations = violations


class InvalidModeError(FleetClientError):
    """Raised when a mutation is attempted on a read-only (view mode) form."""

    def __init__(self, operation: str, reason: str = "not allowed in view mode") -> None:
        super().__init__(f"Operation '{operation}' is {reason}.")
        self.operation = operation


class PassengerIndexError(FleetClientError, IndexError):
    def __init__(self, index: int, size: int) -> None:
        super().__init__(f"Passenger index {index} is out of range (size {size}).")
        self.index = index
        self.size = size


class SubmissionInProgressError(FleetClientError):
    """Raised when ``submit`` is re-entered while a submission is in flight."""

    def __init__(self) -> None:
        super().__init__("A task submission is already in progress.")
