"""Input schemas and validation helpers for travel request entities."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, date, datetime
from typing import Annotated, Any, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationInfo,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel, to_snake

from .errors import ValidationError, ValidationIssue
from .models import ArrangeType, TransportationMode

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Amount = Annotated[int, Field(ge=0, strict=True)]
ParentId = Annotated[int, Field(ge=1, strict=True)]

# Wire values accepted for ArrangeType besides the enum values themselves.
_ARRANGE_TYPE_ALIASES = {"ssa": ArrangeType.AGENCY.value}

InputT = TypeVar("InputT", bound="InputModel")


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _coerce_datetime(value: object) -> object:
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and len(value.strip()) == 10:
        try:
            parsed = date.fromisoformat(value.strip())
        except ValueError:
            return value
        return datetime(parsed.year, parsed.month, parsed.day)
    return value


def _ends_before(start: datetime, end: datetime) -> bool:
    """Compare calendar days, in UTC when both ends carry an offset."""

    if start.tzinfo is not None and end.tzinfo is not None:
        start, end = start.astimezone(UTC), end.astimezone(UTC)
    return end.date() < start.date()


class InputModel(BaseModel):
    """Base for client-supplied input; accepts camelCase or snake_case keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
        frozen=True,
    )


class UserInput(InputModel):
    """Signup payload."""

    username: NonEmptyStr = Field(..., description="Unique login name")
    password: NonEmptyStr = Field(..., description="Opaque credential")


class TravelRequestInput(InputModel):
    """Top-level request fields collected by the basic-info step."""

    department_code: NonEmptyStr = Field(..., description="Cost-bearing department")
    purpose: NonEmptyStr = Field(..., description="Business purpose")
    number_of_travelers: int = Field(..., ge=1, strict=True, description="Declared count")
    total_amount: Amount = Field(..., description="Declared total in yen")
    arrange_type: ArrangeType = Field(..., description="Booking arrangement method")
    destination: str | None = Field(default=None, description="Trip destination")
    applicant_id: str | None = Field(default=None, description="Applicant employee code")

    @field_validator("arrange_type", mode="before")
    @classmethod
    def _normalize_arrange_type(cls, value: object) -> object:
        if isinstance(value, str):
            key = value.strip().lower()
            return _ARRANGE_TYPE_ALIASES.get(key, key)
        return value

    @field_validator("destination", "applicant_id", mode="before")
    @classmethod
    def _optional_text(cls, value: object) -> object:
        return _blank_to_none(value)


class TravelerFields(InputModel):
    """Traveler fields shared by standalone and nested input."""

    name: NonEmptyStr = Field(..., description="Traveler display name")
    employee_id: NonEmptyStr = Field(..., description="Employee code")
    start_date: datetime = Field(..., description="First day of travel")
    end_date: datetime = Field(..., description="Last day of travel")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _accept_plain_dates(cls, value: object) -> object:
        return _coerce_datetime(value)

    @field_validator("end_date")
    @classmethod
    def _end_not_before_start(cls, value: datetime, info: ValidationInfo) -> datetime:
        context = info.context or {}
        if not context.get("enforce_date_order", True):
            return value
        start = info.data.get("start_date")
        if isinstance(start, datetime) and _ends_before(start, value):
            raise ValueError("end date must not precede start date")
        return value


class TransportationFields(InputModel):
    """Transportation leg fields shared by standalone and nested input."""

    departure: NonEmptyStr = Field(..., description="Departure point")
    destination: NonEmptyStr = Field(..., description="Arrival point")
    arrival_time: datetime = Field(..., description="Scheduled arrival")
    mode: TransportationMode = Field(
        ...,
        validation_alias=AliasChoices("mode", "transportationType"),
        description="Means of travel",
    )
    amount: Amount = Field(..., description="Fare in yen")
    excess_reason: str | None = Field(default=None, description="Excess justification")

    @field_validator("arrival_time", mode="before")
    @classmethod
    def _accept_plain_dates(cls, value: object) -> object:
        return _coerce_datetime(value)

    @field_validator("excess_reason", mode="before")
    @classmethod
    def _optional_text(cls, value: object) -> object:
        return _blank_to_none(value)


class AccommodationFields(InputModel):
    """Accommodation stay fields shared by standalone and nested input."""

    number_of_nights: int = Field(..., ge=0, strict=True, description="Nights booked")
    location: NonEmptyStr = Field(..., description="Prefecture or city")
    amount: Amount = Field(..., description="Lodging cost in yen")
    excess_reason: str | None = Field(default=None, description="Excess justification")
    has_pre_stay: bool = Field(default=False, description="Arrives the night before")
    pre_stay_reason: str | None = Field(default=None, description="Why a pre-stay")
    has_post_stay: bool = Field(default=False, description="Stays an extra night")
    post_stay_reason: str | None = Field(default=None, description="Why a post-stay")

    @field_validator("excess_reason", "pre_stay_reason", "post_stay_reason", mode="before")
    @classmethod
    def _optional_text(cls, value: object) -> object:
        return _blank_to_none(value)


class TravelerInput(TravelerFields):
    """Standalone traveler creation payload."""

    request_id: ParentId = Field(..., description="Parent request id")


class TransportationInput(TransportationFields):
    """Standalone transportation creation payload."""

    traveler_id: ParentId = Field(..., description="Parent traveler id")


class AccommodationInput(AccommodationFields):
    """Standalone accommodation creation payload."""

    traveler_id: ParentId = Field(..., description="Parent traveler id")


class TravelerSubmission(TravelerFields):
    """Traveler with its legs and stays, submitted as part of a request."""

    transportation: list[TransportationFields] = Field(default_factory=list)
    accommodation: list[AccommodationFields] = Field(default_factory=list)


class RequestSubmission(TravelRequestInput):
    """Complete request aggregate, stored atomically."""

    travelers: list[TravelerSubmission] = Field(default_factory=list)

    def request_fields(self) -> dict[str, Any]:
        """Return the top-level request fields without nested children."""

        return self.model_dump(exclude={"travelers"})


def _issue_location(loc: tuple[int | str, ...]) -> str:
    parts = [to_snake(part) if isinstance(part, str) else str(part) for part in loc]
    return ".".join(parts) or "input"


def issues_from_pydantic(exc: PydanticValidationError) -> list[ValidationIssue]:
    """Translate every pydantic error into a field-level issue."""

    return [
        ValidationIssue(field=_issue_location(error["loc"]), message=error["msg"])
        for error in exc.errors()
    ]


def _validate(
    model_cls: type[InputT],
    data: Mapping[str, object] | BaseModel,
    *,
    enforce_date_order: bool = True,
) -> InputT:
    payload: object = data
    if isinstance(data, BaseModel):
        payload = data.model_dump()
    if not isinstance(payload, Mapping):
        raise ValidationError.from_issues(
            [ValidationIssue(field="input", message="Input should be an object")]
        )
    try:
        return model_cls.model_validate(
            payload, context={"enforce_date_order": enforce_date_order}
        )
    except PydanticValidationError as exc:
        raise ValidationError.from_issues(issues_from_pydantic(exc)) from exc


def validate_user(data: Mapping[str, object] | BaseModel) -> UserInput:
    return _validate(UserInput, data)


def validate_request(data: Mapping[str, object] | BaseModel) -> TravelRequestInput:
    return _validate(TravelRequestInput, data)


def validate_traveler(
    data: Mapping[str, object] | BaseModel, *, enforce_date_order: bool = True
) -> TravelerInput:
    return _validate(TravelerInput, data, enforce_date_order=enforce_date_order)


def validate_transportation(
    data: Mapping[str, object] | BaseModel,
) -> TransportationInput:
    return _validate(TransportationInput, data)


def validate_accommodation(
    data: Mapping[str, object] | BaseModel,
) -> AccommodationInput:
    return _validate(AccommodationInput, data)


def validate_submission(
    data: Mapping[str, object] | BaseModel, *, enforce_date_order: bool = True
) -> RequestSubmission:
    """Validate a full request aggregate, reporting every nested violation."""

    return _validate(RequestSubmission, data, enforce_date_order=enforce_date_order)


def _warning(field: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, message=message, severity="warning")


def accommodation_advisories(
    stay: AccommodationFields, *, prefix: str = ""
) -> list[ValidationIssue]:
    """Non-blocking findings for a stay: extension flags without a reason."""

    issues: list[ValidationIssue] = []
    if stay.has_pre_stay and not stay.pre_stay_reason:
        issues.append(_warning(f"{prefix}pre_stay_reason", "pre-stay reason is expected"))
    if stay.has_post_stay and not stay.post_stay_reason:
        issues.append(
            _warning(f"{prefix}post_stay_reason", "post-stay reason is expected")
        )
    return issues


def submission_advisories(submission: RequestSubmission) -> list[ValidationIssue]:
    """Non-blocking findings for a full submission.

    Declared traveler count and total are kept as supplied; a mismatch with
    the nested data is reported here instead of rejected.
    """

    issues: list[ValidationIssue] = []
    for t_index, traveler in enumerate(submission.travelers):
        for s_index, stay in enumerate(traveler.accommodation):
            prefix = f"travelers.{t_index}.accommodation.{s_index}."
            issues.extend(accommodation_advisories(stay, prefix=prefix))

    if not submission.travelers:
        return issues

    if submission.number_of_travelers != len(submission.travelers):
        issues.append(
            _warning(
                "number_of_travelers",
                f"declared {submission.number_of_travelers} travelers but "
                f"{len(submission.travelers)} provided",
            )
        )
    computed = sum(
        item.amount
        for traveler in submission.travelers
        for item in (*traveler.transportation, *traveler.accommodation)
    )
    if submission.total_amount != computed:
        issues.append(
            _warning(
                "total_amount",
                f"declared total {submission.total_amount} differs from "
                f"itemized total {computed}",
            )
        )
    return issues
