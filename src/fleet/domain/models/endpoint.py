from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from src.fleet.domain.models.coordinate import Coordinate
from src.fleet.domain.models.place import PlaceCandidate


class EndpointKind(str, Enum):
    ORIGIN = "origin"
    DESTINATION = "destination"


class EndpointPhase(str, Enum):
    EMPTY = "empty"
    TYPING = "typing"
    DEBOUNCING = "debouncing"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    RESOLUTION_FAILED = "resolution_failed"


class EndpointState(BaseModel):
    """Published state of one route endpoint (origin or destination)."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(default="", description="Text shown in the search box.")
    coordinate: Coordinate | None = Field(
        default=None, description="Set only after a successful resolution."
    )
    resolving: bool = Field(default=False, description="A network lookup is in flight.")
    phase: EndpointPhase = Field(default=EndpointPhase.EMPTY)
    candidates: tuple[PlaceCandidate, ...] = Field(
        default=(), description="Search results awaiting a user pick."
    )
