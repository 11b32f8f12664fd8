"""Multi-step draft of a travel request, validated one wizard step at a time."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError, ValidationIssue
from .schemas import (
    AccommodationFields,
    InputModel,
    RequestSubmission,
    TransportationFields,
    TravelerFields,
    TravelRequestInput,
    issues_from_pydantic,
    validate_submission,
)

WIZARD_STEPS: tuple[str, ...] = ("basic_info", "travelers", "expenses", "confirmation")


def _check(
    model_cls: type[InputModel],
    data: Mapping[str, object],
    *,
    prefix: str = "",
    enforce_date_order: bool = True,
) -> list[ValidationIssue]:
    try:
        model_cls.model_validate(data, context={"enforce_date_order": enforce_date_order})
    except PydanticValidationError as exc:
        return [
            issue.model_copy(update={"field": f"{prefix}{issue.field}"})
            for issue in issues_from_pydantic(exc)
        ]
    return []


@dataclass
class TravelerExpenses:
    """Legs and stays entered for one traveler in the expenses step."""

    transportation: list[dict[str, Any]] = field(default_factory=list)
    accommodation: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class RequestDraft:
    """Accumulated wizard input; each step is validated on its own."""

    basic_info: dict[str, Any] = field(default_factory=dict)
    travelers: list[dict[str, Any]] = field(default_factory=list)
    expenses: dict[int, TravelerExpenses] = field(default_factory=dict)
    enforce_date_order: bool = True

    def update_basic_info(self, **values: Any) -> list[ValidationIssue]:
        """Merge basic-info answers and return the step's remaining issues."""

        self.basic_info.update(values)
        return self.validate_step("basic_info")

    def add_traveler(self, data: Mapping[str, Any]) -> int:
        """Append a traveler and return its index within the draft."""

        self.travelers.append(dict(data))
        return len(self.travelers) - 1

    def add_transportation(self, traveler_index: int, data: Mapping[str, Any]) -> None:
        self._expenses_for(traveler_index).transportation.append(dict(data))

    def add_accommodation(self, traveler_index: int, data: Mapping[str, Any]) -> None:
        self._expenses_for(traveler_index).accommodation.append(dict(data))

    def _expenses_for(self, traveler_index: int) -> TravelerExpenses:
        if not 0 <= traveler_index < len(self.travelers):
            raise IndexError(f"No traveler at index {traveler_index}")
        return self.expenses.setdefault(traveler_index, TravelerExpenses())

    def validate_step(self, step: str) -> list[ValidationIssue]:
        """Return the blocking issues for a single step."""

        if step == "basic_info":
            return _check(TravelRequestInput, self.basic_info)
        if step == "travelers":
            if not self.travelers:
                return [ValidationIssue(field="travelers", message="Add at least one traveler")]
            issues: list[ValidationIssue] = []
            for index, traveler in enumerate(self.travelers):
                issues.extend(
                    _check(
                        TravelerFields,
                        traveler,
                        prefix=f"travelers.{index}.",
                        enforce_date_order=self.enforce_date_order,
                    )
                )
            return issues
        if step == "expenses":
            issues = []
            for index, expenses in sorted(self.expenses.items()):
                for leg_index, leg in enumerate(expenses.transportation):
                    issues.extend(
                        _check(
                            TransportationFields,
                            leg,
                            prefix=f"travelers.{index}.transportation.{leg_index}.",
                        )
                    )
                for stay_index, stay in enumerate(expenses.accommodation):
                    issues.extend(
                        _check(
                            AccommodationFields,
                            stay,
                            prefix=f"travelers.{index}.accommodation.{stay_index}.",
                        )
                    )
            return issues
        if step == "confirmation":
            issues = []
            for earlier in WIZARD_STEPS[:-1]:
                issues.extend(self.validate_step(earlier))
            return issues
        raise ValueError(f"Unknown wizard step: {step}")

    def is_step_complete(self, step: str) -> bool:
        return not self.validate_step(step)

    def next_step(self) -> str:
        """Return the first step that still has issues, or ``confirmation``."""

        for step in WIZARD_STEPS[:-1]:
            if not self.is_step_complete(step):
                return step
        return "confirmation"

    def as_payload(self) -> dict[str, Any]:
        """Merge every step into one nested submission payload."""

        travelers = []
        for index, traveler in enumerate(self.travelers):
            expenses = self.expenses.get(index, TravelerExpenses())
            travelers.append(
                {
                    **traveler,
                    "transportation": list(expenses.transportation),
                    "accommodation": list(expenses.accommodation),
                }
            )
        return {**self.basic_info, "travelers": travelers}

    def to_submission(self) -> RequestSubmission:
        """Validate the merged draft; raises ``ValidationError`` listing every issue."""

        issues = self.validate_step("confirmation")
        if issues:
            raise ValidationError.from_issues(issues)
        return validate_submission(
            self.as_payload(), enforce_date_order=self.enforce_date_order
        )
