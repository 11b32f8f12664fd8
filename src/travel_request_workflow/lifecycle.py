"""Request lifecycle: submission of the request aggregate and status transitions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pydantic import BaseModel

from .config import WorkflowConfig
from .errors import (
    InvalidTransitionError,
    ValidationError,
    ValidationIssue,
)
from .models import (
    Accommodation,
    RequestDetail,
    RequestStatus,
    RequestSummary,
    StatusChange,
    Transportation,
    Traveler,
    TravelerDetail,
    TravelRequest,
    User,
)
from .schemas import (
    accommodation_advisories,
    submission_advisories,
    validate_accommodation,
    validate_submission,
    validate_transportation,
    validate_traveler,
    validate_user,
)
from .store import EntityStore

logger = logging.getLogger(__name__)

InputData = Mapping[str, object] | BaseModel

_ALLOWED_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.PENDING: frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED}),
    RequestStatus.APPROVED: frozenset(),
    RequestStatus.REJECTED: frozenset(),
}


def parse_status(value: object) -> RequestStatus:
    """Return the status for a wire value or raise ``ValidationError``."""

    if isinstance(value, RequestStatus):
        return value
    if isinstance(value, str):
        try:
            return RequestStatus(value.strip().lower())
        except ValueError:
            pass
    allowed = ", ".join(status.value for status in RequestStatus)
    raise ValidationError.from_issues(
        [ValidationIssue(field="status", message=f"Status must be one of: {allowed}")]
    )


@dataclass(frozen=True)
class StatusMachine:
    """Allowed status transitions for a travel request.

    With ``enforce_terminal_states`` off, any approval decision is accepted
    from any state, matching the permissive behaviour of earlier releases.
    ``pending`` is never a valid target.
    """

    enforce_terminal_states: bool = True

    def allowed_targets(self, current: RequestStatus) -> frozenset[RequestStatus]:
        if self.enforce_terminal_states:
            return _ALLOWED_TRANSITIONS[current]
        return frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED})

    def validate_transition(self, current: RequestStatus, target: RequestStatus) -> None:
        if target not in self.allowed_targets(current):
            raise InvalidTransitionError.between(current.value, target.value)


@dataclass
class LifecycleService:
    """Orchestrates request submission and approval decisions over one store."""

    store: EntityStore
    config: WorkflowConfig = field(default_factory=WorkflowConfig)
    _history: dict[int, list[StatusChange]] = field(default_factory=dict, repr=False)

    @property
    def machine(self) -> StatusMachine:
        return StatusMachine(enforce_terminal_states=self.config.enforce_terminal_states)

    # Users

    def register_user(self, data: InputData) -> User:
        """Create a user; usernames are unique."""

        user_input = validate_user(data)
        with self.store.lock:
            if self.store.get_user_by_username(user_input.username) is not None:
                raise ValidationError.from_issues(
                    [ValidationIssue(field="username", message="Username already exists")]
                )
            user = self.store.users.create(user_input.model_dump())
        logger.info("Registered user %s (%s)", user.id, user.username)
        return user

    def ensure_submitter(self) -> User:
        """Return the configured submitting identity, creating it on first use."""

        submitter = self.config.submitter
        with self.store.lock:
            existing = self.store.get_user_by_username(submitter.username)
            if existing is not None:
                return existing
            return self.register_user(submitter.model_dump())

    # Requests

    def submit_request(self, owner_user_id: int, data: InputData) -> TravelRequest:
        """Create a pending request with all nested travelers, legs and stays.

        Either everything is stored or nothing is.
        """

        submission = validate_submission(
            data, enforce_date_order=self.config.enforce_date_order
        )
        for issue in submission_advisories(submission):
            logger.warning("Submission advisory on %s: %s", issue.field, issue.message)

        with self.store.transaction() as store:
            store.users.require(owner_user_id)
            request = store.travel_requests.create(
                {
                    **submission.request_fields(),
                    "user_id": owner_user_id,
                    "status": RequestStatus.PENDING,
                }
            )
            for traveler_data in submission.travelers:
                traveler = store.travelers.create(
                    {
                        **traveler_data.model_dump(
                            exclude={"transportation", "accommodation"}
                        ),
                        "request_id": request.id,
                    }
                )
                for leg in traveler_data.transportation:
                    store.transportation.create(
                        {**leg.model_dump(), "traveler_id": traveler.id}
                    )
                for stay in traveler_data.accommodation:
                    store.accommodation.create(
                        {**stay.model_dump(), "traveler_id": traveler.id}
                    )
        logger.info(
            "Submitted travel request %s for user %s with %d travelers",
            request.id,
            owner_user_id,
            len(submission.travelers),
        )
        return request

    def submit_as_default_user(self, data: InputData) -> TravelRequest:
        return self.submit_request(self.ensure_submitter().id, data)

    def change_status(self, request_id: int, target: object) -> TravelRequest:
        """Apply an approval decision to a request.

        Raises ``ValidationError`` for an unknown status value,
        ``NotFoundError`` for an unknown request and
        ``InvalidTransitionError`` when the target is unreachable.
        """

        target_status = parse_status(target)
        with self.store.lock:
            current = self.store.travel_requests.require(request_id)
            try:
                self.machine.validate_transition(current.status, target_status)
            except InvalidTransitionError:
                logger.warning(
                    "Refused transition of request %s: %s -> %s",
                    request_id,
                    current.status.value,
                    target_status.value,
                )
                raise
            updated = self.store.update_status(request_id, target_status)
            self._history.setdefault(request_id, []).append(
                StatusChange(
                    request_id=request_id,
                    previous_status=current.status,
                    new_status=target_status,
                    timestamp=datetime.now(UTC),
                )
            )
        logger.info(
            "Request %s status %s -> %s",
            request_id,
            current.status.value,
            target_status.value,
        )
        return updated

    def get_request(self, request_id: int) -> TravelRequest:
        return self.store.travel_requests.require(request_id)

    def list_requests(self) -> list[TravelRequest]:
        return self.store.travel_requests.list_all()

    def status_history(self, request_id: int) -> list[StatusChange]:
        self.store.travel_requests.require(request_id)
        return list(self._history.get(request_id, []))

    # Children

    def add_traveler(self, data: InputData) -> Traveler:
        traveler_input = validate_traveler(
            data, enforce_date_order=self.config.enforce_date_order
        )
        with self.store.lock:
            self.store.travel_requests.require(traveler_input.request_id)
            traveler = self.store.travelers.create(traveler_input.model_dump())
        logger.info("Added traveler %s to request %s", traveler.id, traveler.request_id)
        return traveler

    def add_transportation(self, data: InputData) -> Transportation:
        leg_input = validate_transportation(data)
        with self.store.lock:
            self.store.travelers.require(leg_input.traveler_id)
            leg = self.store.transportation.create(leg_input.model_dump())
        logger.info("Added transportation %s to traveler %s", leg.id, leg.traveler_id)
        return leg

    def add_accommodation(self, data: InputData) -> Accommodation:
        stay_input = validate_accommodation(data)
        for issue in accommodation_advisories(stay_input):
            logger.warning("Accommodation advisory on %s: %s", issue.field, issue.message)
        with self.store.lock:
            self.store.travelers.require(stay_input.traveler_id)
            stay = self.store.accommodation.create(stay_input.model_dump())
        logger.info("Added accommodation %s to traveler %s", stay.id, stay.traveler_id)
        return stay

    def list_travelers(self, request_id: int) -> list[Traveler]:
        return self.store.travelers.list_by_parent(request_id)

    def list_transportation(self, traveler_id: int) -> list[Transportation]:
        return self.store.transportation.list_by_parent(traveler_id)

    def list_accommodation(self, traveler_id: int) -> list[Accommodation]:
        return self.store.accommodation.list_by_parent(traveler_id)

    # Aggregate views

    def request_detail(self, request_id: int) -> RequestDetail:
        """Return the request with its travelers, legs, stays and history."""

        with self.store.lock:
            request = self.store.travel_requests.require(request_id)
            travelers = [
                TravelerDetail(
                    traveler=traveler,
                    transportation=self.list_transportation(traveler.id),
                    accommodation=self.list_accommodation(traveler.id),
                )
                for traveler in self.list_travelers(request_id)
            ]
            history = list(self._history.get(request_id, []))
        return RequestDetail(request=request, travelers=travelers, history=history)

    def summarize(self, request_id: int) -> RequestSummary:
        """Compare the declared count and total with the stored nested data."""

        detail = self.request_detail(request_id)
        return RequestSummary(
            request_id=request_id,
            declared_travelers=detail.request.number_of_travelers,
            actual_travelers=len(detail.travelers),
            declared_total=detail.request.total_amount,
            transportation_total=sum(
                leg.amount for item in detail.travelers for leg in item.transportation
            ),
            accommodation_total=sum(
                stay.amount for item in detail.travelers for stay in item.accommodation
            ),
        )

