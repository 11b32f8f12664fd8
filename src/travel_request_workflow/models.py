"""Core records for travel requests and their nested travelers, legs and stays."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Amount = Annotated[int, Field(ge=0, strict=True)]


class RequestStatus(str, Enum):
    """Approval state of a travel request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TransportationMode(str, Enum):
    """Means of travel for a transportation leg."""

    TRAIN = "train"
    AIRPLANE = "airplane"
    BUS = "bus"
    TAXI = "taxi"
    OTHER = "other"


class ArrangeType(str, Enum):
    """Who books tickets and lodging for the trip."""

    AGENCY = "agency"
    SELF = "self"


class Record(BaseModel):
    """Immutable persisted entity serialized with camelCase aliases."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: int = Field(..., ge=1, description="Identifier unique within the collection")

    def to_payload(self) -> dict[str, object]:
        """Return the JSON-ready wire representation."""

        return self.model_dump(mode="json", by_alias=True)


class User(Record):
    """Account that owns travel requests."""

    username: str = Field(..., description="Unique login name")
    password: str = Field(..., repr=False, description="Opaque credential")


class TravelRequest(Record):
    """Top-level business-trip approval request."""

    user_id: int = Field(..., description="Owning user id")
    department_code: str = Field(..., description="Cost-bearing department")
    purpose: str = Field(..., description="Business purpose of the trip")
    number_of_travelers: int = Field(..., ge=1, description="Declared traveler count")
    total_amount: Amount = Field(..., description="Declared total in yen")
    arrange_type: ArrangeType = Field(..., description="Booking arrangement method")
    destination: str | None = Field(default=None, description="Trip destination")
    applicant_id: str | None = Field(
        default=None, description="Employee code of the applicant"
    )
    status: RequestStatus = Field(
        default=RequestStatus.PENDING, description="Current approval state"
    )


class Traveler(Record):
    """One person travelling under a request."""

    request_id: int = Field(..., description="Parent request id")
    name: str = Field(..., description="Traveler display name")
    employee_id: str = Field(..., description="Employee code")
    start_date: datetime = Field(..., description="First day of travel")
    end_date: datetime = Field(..., description="Last day of travel")

    def duration_days(self) -> int:
        """Return the inclusive number of calendar days travelled."""

        return (self.end_date.date() - self.start_date.date()).days + 1


class Transportation(Record):
    """Point-to-point travel segment."""

    traveler_id: int = Field(..., description="Parent traveler id")
    departure: str = Field(..., description="Departure point")
    destination: str = Field(..., description="Arrival point")
    arrival_time: datetime = Field(..., description="Scheduled arrival")
    mode: TransportationMode = Field(..., description="Means of travel")
    amount: Amount = Field(..., description="Fare in yen")
    excess_reason: str | None = Field(
        default=None, description="Justification when the fare exceeds policy"
    )


class Accommodation(Record):
    """Lodging period for a traveler."""

    traveler_id: int = Field(..., description="Parent traveler id")
    number_of_nights: int = Field(..., ge=0, description="Nights booked")
    location: str = Field(..., description="Prefecture or city of the stay")
    amount: Amount = Field(..., description="Lodging cost in yen")
    excess_reason: str | None = Field(
        default=None, description="Justification when the cost exceeds policy"
    )
    has_pre_stay: bool = Field(default=False, description="Arrives the night before")
    pre_stay_reason: str | None = Field(default=None, description="Why a pre-stay")
    has_post_stay: bool = Field(default=False, description="Stays an extra night")
    post_stay_reason: str | None = Field(default=None, description="Why a post-stay")


class StatusChange(BaseModel):
    """Immutable audit record for a single status transition."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    request_id: int = Field(..., description="Request whose status changed")
    previous_status: RequestStatus = Field(..., description="Status before the change")
    new_status: RequestStatus = Field(..., description="Status after the change")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the change was applied",
    )


class TravelerDetail(BaseModel):
    """A traveler together with its legs and stays."""

    traveler: Traveler
    transportation: list[Transportation] = Field(default_factory=list)
    accommodation: list[Accommodation] = Field(default_factory=list)

    def total_amount(self) -> int:
        """Sum of every leg and stay for this traveler."""

        return sum(leg.amount for leg in self.transportation) + sum(
            stay.amount for stay in self.accommodation
        )


class RequestDetail(BaseModel):
    """Full aggregate view of one request."""

    request: TravelRequest
    travelers: list[TravelerDetail] = Field(default_factory=list)
    history: list[StatusChange] = Field(default_factory=list)

    def to_payload(self) -> dict[str, object]:
        return {
            **self.request.to_payload(),
            "travelers": [
                {
                    **detail.traveler.to_payload(),
                    "transportation": [leg.to_payload() for leg in detail.transportation],
                    "accommodation": [stay.to_payload() for stay in detail.accommodation],
                }
                for detail in self.travelers
            ],
            "history": [
                change.model_dump(mode="json", by_alias=True) for change in self.history
            ],
        }


class RequestSummary(BaseModel):
    """Declared figures of a request compared with its nested data."""

    request_id: int
    declared_travelers: int
    actual_travelers: int
    declared_total: int
    transportation_total: int
    accommodation_total: int

    @property
    def computed_total(self) -> int:
        return self.transportation_total + self.accommodation_total

    @property
    def is_consistent(self) -> bool:
        """True when the declared count and total match the nested data."""

        return (
            self.declared_travelers == self.actual_travelers
            and self.declared_total == self.computed_total
        )
