"""Typed errors raised by the travel request workflow.

Every failure path in the core raises one of these so the boundary layer
can map it to a client-facing status without inspecting messages.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """Single field-level validation finding."""

    field: str = Field(..., description="Dotted location of the offending field")
    message: str = Field(..., description="Human-readable explanation")
    severity: str = Field(default="error", description="error or warning")

    @property
    def is_blocking(self) -> bool:
        """Return True when the issue prevents the input from being stored."""

        return self.severity == "error"


@dataclass
class WorkflowError(Exception):
    """Base error for the travel request workflow."""

    message: str

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


@dataclass
class ValidationError(WorkflowError):
    """Input failed validation; ``issues`` lists every violated field."""

    issues: list[ValidationIssue] = field(default_factory=list)

    @classmethod
    def from_issues(cls, issues: Iterable[ValidationIssue]) -> ValidationError:
        materialized = list(issues)
        fields = ", ".join(issue.field for issue in materialized) or "input"
        return cls(message=f"Invalid data for: {fields}", issues=materialized)

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues]


@dataclass
class NotFoundError(WorkflowError):
    """A referenced entity id does not exist."""

    entity: str = ""
    entity_id: int | None = None

    @classmethod
    def for_entity(cls, entity: str, entity_id: int) -> NotFoundError:
        return cls(
            message=f"{entity} {entity_id} not found",
            entity=entity,
            entity_id=entity_id,
        )


@dataclass
class InvalidTransitionError(WorkflowError):
    """Status change not permitted from the current state."""

    current: str = ""
    target: str = ""

    @classmethod
    def between(cls, current: str, target: str) -> InvalidTransitionError:
        return cls(
            message=f"Invalid status transition: {current} -> {target}",
            current=current,
            target=target,
        )


@dataclass
class ConfigurationError(WorkflowError):
    """Invalid or unreadable workflow configuration."""

    source: str | None = None
