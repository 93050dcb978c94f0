from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from src.fleet.domain.models.people import User, Vehicle


class FormMode(str, Enum):
    CREATE = "create"
    VIEW = "view"


class FieldViolation(BaseModel):
    field: str = Field(description="Name of the offending draft field.")
    message: str


class ValidationResult(BaseModel):
    violations: list[FieldViolation] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def fields(self) -> list[str]:
        return [violation.field for violation in self.violations]


class FormReferenceData(BaseModel):
    """Dropdown contents for the task form."""

    drivers: list[User] = Field(default_factory=list)
    users: list[User] = Field(default_factory=list)
    vehicles: list[Vehicle] = Field(default_factory=list)
