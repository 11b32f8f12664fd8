"""Framework-neutral API surface for the travel request endpoints.

Each method corresponds to one HTTP endpoint and returns an ``ApiResponse``
holding the status code and JSON-ready body, so any web framework can wire
it up with a one-line adapter.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, Field

from .errors import (
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    ValidationIssue,
    WorkflowError,
)
from .lifecycle import LifecycleService
from .models import Record

logger = logging.getLogger(__name__)

JsonBody = dict[str, Any] | list[dict[str, Any]]

__all__ = [
    "ApiResponse",
    "TravelRequestAPI",
    "error_response",
]


class ApiResponse(BaseModel):
    """HTTP status code and JSON body for one call."""

    status_code: int = Field(..., description="HTTP status code")
    body: Any = Field(default=None, description="JSON-serializable payload")

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


_STATUS_BY_ERROR: tuple[tuple[type[WorkflowError], int], ...] = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
)


def error_response(exc: WorkflowError) -> ApiResponse:
    """Map a workflow error onto its status code and message body."""

    status_code = next(
        (code for error_type, code in _STATUS_BY_ERROR if isinstance(exc, error_type)),
        500,
    )
    body: dict[str, Any] = {"message": exc.message}
    if isinstance(exc, ValidationError):
        body["errors"] = [issue.model_dump() for issue in exc.issues]
    return ApiResponse(status_code=status_code, body=body)


def _path_id(value: object, name: str = "id") -> int:
    """Coerce a path parameter to a positive id as routers hand it over."""

    if not isinstance(value, bool):
        try:
            parsed = int(value)  # type: ignore[call-overload]
        except (TypeError, ValueError):
            pass
        else:
            if parsed >= 1:
                return parsed
    raise ValidationError.from_issues(
        [ValidationIssue(field=name, message="Must be a positive integer id")]
    )


def _json_object(body: object) -> Mapping[str, Any]:
    if not isinstance(body, Mapping):
        raise ValidationError.from_issues(
            [ValidationIssue(field="input", message="Expected a JSON object")]
        )
    return body


def _payload(records: Record | list[Record]) -> JsonBody:
    if isinstance(records, list):
        return [record.to_payload() for record in records]
    return records.to_payload()


class TravelRequestAPI:
    """Endpoint handlers bound to one lifecycle service."""

    def __init__(self, service: LifecycleService):
        self.service = service

    def _call(self, action: Callable[[], Any], *, success: int = 200) -> ApiResponse:
        try:
            result = action()
        except WorkflowError as exc:
            response = error_response(exc)
            logger.info("Request failed with %s: %s", response.status_code, exc.message)
            return response
        return ApiResponse(status_code=success, body=result)

    # GET /api/travel-requests
    def list_requests(self) -> ApiResponse:
        return self._call(lambda: _payload(self.service.list_requests()))

    # GET /api/travel-requests/:id
    def get_request(self, request_id: int | str) -> ApiResponse:
        return self._call(
            lambda: _payload(self.service.get_request(_path_id(request_id)))
        )

    # GET /api/travel-requests/:id/detail
    def get_request_detail(self, request_id: int | str) -> ApiResponse:
        return self._call(
            lambda: self.service.request_detail(_path_id(request_id)).to_payload()
        )

    # POST /api/travel-requests
    def create_request(self, body: Mapping[str, Any]) -> ApiResponse:
        return self._call(
            lambda: _payload(self.service.submit_as_default_user(body)), success=201
        )

    # PATCH /api/travel-requests/:id/status
    def update_status(self, request_id: int | str, body: object) -> ApiResponse:
        def action() -> JsonBody:
            status = _json_object(body).get("status")
            return _payload(self.service.change_status(_path_id(request_id), status))

        return self._call(action)

    # GET /api/travel-requests/:requestId/travelers
    def list_travelers(self, request_id: int | str) -> ApiResponse:
        return self._call(
            lambda: _payload(
                self.service.list_travelers(_path_id(request_id, "requestId"))
            )
        )

    # POST /api/travelers
    def create_traveler(self, body: Mapping[str, Any]) -> ApiResponse:
        return self._call(lambda: _payload(self.service.add_traveler(body)), success=201)

    # GET /api/travelers/:travelerId/transportation
    def list_transportation(self, traveler_id: int | str) -> ApiResponse:
        return self._call(
            lambda: _payload(
                self.service.list_transportation(_path_id(traveler_id, "travelerId"))
            )
        )

    # POST /api/transportation
    def create_transportation(self, body: Mapping[str, Any]) -> ApiResponse:
        return self._call(
            lambda: _payload(self.service.add_transportation(body)), success=201
        )

    # GET /api/travelers/:travelerId/accommodation
    def list_accommodation(self, traveler_id: int | str) -> ApiResponse:
        return self._call(
            lambda: _payload(
                self.service.list_accommodation(_path_id(traveler_id, "travelerId"))
            )
        )

    # POST /api/accommodation
    def create_accommodation(self, body: Mapping[str, Any]) -> ApiResponse:
        return self._call(
            lambda: _payload(self.service.add_accommodation(body)), success=201
        )
