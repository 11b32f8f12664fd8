"""Tests for the endpoint handlers and error-to-status mapping."""

from __future__ import annotations

import pytest

from travel_request_workflow.api import ApiResponse, TravelRequestAPI, error_response
from travel_request_workflow.errors import (
    ConfigurationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    ValidationIssue,
)
from travel_request_workflow.lifecycle import LifecycleService

REQUEST_BODY = {
    "departmentCode": "DEPT1",
    "purpose": "client visit",
    "numberOfTravelers": 1,
    "totalAmount": 50000,
    "arrangeType": "self",
}


@pytest.fixture
def api(service: LifecycleService) -> TravelRequestAPI:
    return TravelRequestAPI(service)


def _create_traveler(api: TravelRequestAPI, request_id: int) -> ApiResponse:
    return api.create_traveler(
        {
            "requestId": request_id,
            "name": "山田太郎",
            "employeeId": "E001",
            "startDate": "2025-01-15",
            "endDate": "2025-01-16",
        }
    )


class TestTravelRequestEndpoints:
    """Request list, create, get and status update."""

    def test_scenario_create_approve_list(self, api: TravelRequestAPI) -> None:
        created = api.create_request(REQUEST_BODY)
        assert created.status_code == 201
        assert created.body["id"] == 1
        assert created.body["status"] == "pending"

        updated = api.update_status(1, {"status": "approved"})
        assert updated.status_code == 200
        assert updated.body["status"] == "approved"

        listed = api.list_requests()
        assert listed.status_code == 200
        assert len(listed.body) == 1
        assert listed.body[0]["status"] == "approved"

    def test_empty_list(self, api: TravelRequestAPI) -> None:
        response = api.list_requests()

        assert response.status_code == 200
        assert response.body == []

    def test_get_request(self, api: TravelRequestAPI) -> None:
        api.create_request(REQUEST_BODY)

        response = api.get_request(1)

        assert response.ok
        assert response.body["departmentCode"] == "DEPT1"
        assert response.body["userId"] == 1

    def test_get_missing_request(self, api: TravelRequestAPI) -> None:
        response = api.get_request(8)

        assert response.status_code == 404
        assert response.body == {"message": "TravelRequest 8 not found"}

    def test_create_with_invalid_body(self, api: TravelRequestAPI) -> None:
        response = api.create_request({**REQUEST_BODY, "numberOfTravelers": 0})

        assert response.status_code == 400
        assert [error["field"] for error in response.body["errors"]] == [
            "number_of_travelers"
        ]
        assert api.list_requests().body == []

    @pytest.mark.parametrize("body", [{}, {"status": "archived"}, {"status": None}])
    def test_update_with_invalid_status(self, api: TravelRequestAPI, body: dict) -> None:
        api.create_request(REQUEST_BODY)

        assert api.update_status(1, body).status_code == 400

    def test_update_unknown_request(self, api: TravelRequestAPI) -> None:
        assert api.update_status(99, {"status": "approved"}).status_code == 404

    def test_update_terminal_request_conflicts(self, api: TravelRequestAPI) -> None:
        api.create_request(REQUEST_BODY)
        api.update_status(1, {"status": "rejected"})

        response = api.update_status(1, {"status": "approved"})

        assert response.status_code == 409
        assert api.get_request(1).body["status"] == "rejected"

    def test_back_to_pending_conflicts(self, api: TravelRequestAPI) -> None:
        api.create_request(REQUEST_BODY)

        assert api.update_status(1, {"status": "pending"}).status_code == 409

    @pytest.mark.parametrize("body", [["approved"], "approved", None])
    def test_update_with_non_object_body(self, api: TravelRequestAPI, body: object) -> None:
        api.create_request(REQUEST_BODY)

        response = api.update_status(1, body)

        assert response.status_code == 400
        assert [error["field"] for error in response.body["errors"]] == ["input"]
        assert api.get_request(1).body["status"] == "pending"

    def test_string_path_ids_are_coerced(self, api: TravelRequestAPI) -> None:
        """Routers hand path parameters over as strings."""
        api.create_request(REQUEST_BODY)

        assert api.get_request("1").body["id"] == 1
        assert api.get_request_detail("1").ok
        assert api.update_status("1", {"status": "approved"}).body["status"] == "approved"
        assert api.list_travelers("1").body == []

    @pytest.mark.parametrize("raw_id", ["abc", "1.5", "0", "-2", None, True])
    def test_malformed_path_id_is_bad_request(
        self, api: TravelRequestAPI, raw_id: object
    ) -> None:
        api.create_request(REQUEST_BODY)

        response = api.get_request(raw_id)  # type: ignore[arg-type]

        assert response.status_code == 400
        assert [error["field"] for error in response.body["errors"]] == ["id"]
        assert api.list_transportation("x").status_code == 400

    def test_detail_includes_children_and_history(self, api: TravelRequestAPI) -> None:
        api.create_request(
            {
                **REQUEST_BODY,
                "travelers": [
                    {
                        "name": "山田太郎",
                        "employeeId": "E001",
                        "startDate": "2025-01-15",
                        "endDate": "2025-01-16",
                        "transportation": [
                            {
                                "departure": "東京",
                                "destination": "大阪",
                                "arrivalTime": "2025-01-15T10:30:00",
                                "transportationType": "train",
                                "amount": 14000,
                            }
                        ],
                    }
                ],
            }
        )
        api.update_status(1, {"status": "approved"})

        response = api.get_request_detail(1)

        assert response.ok
        traveler = response.body["travelers"][0]
        assert traveler["employeeId"] == "E001"
        assert traveler["transportation"][0]["mode"] == "train"
        assert traveler["accommodation"] == []
        assert response.body["history"][0]["newStatus"] == "approved"


class TestChildEndpoints:
    """Travelers, transportation and accommodation."""

    def test_traveler_lifecycle(self, api: TravelRequestAPI) -> None:
        api.create_request(REQUEST_BODY)

        created = _create_traveler(api, 1)
        listed = api.list_travelers(1)

        assert created.status_code == 201
        assert created.body["requestId"] == 1
        assert listed.body == [created.body]

    def test_traveler_for_unknown_request(self, api: TravelRequestAPI) -> None:
        assert _create_traveler(api, 3).status_code == 404

    def test_transportation_and_accommodation(self, api: TravelRequestAPI) -> None:
        api.create_request(REQUEST_BODY)
        traveler_id = _create_traveler(api, 1).body["id"]

        leg = api.create_transportation(
            {
                "travelerId": traveler_id,
                "departure": "東京",
                "destination": "大阪",
                "arrivalTime": "2025-01-15T10:30:00",
                "mode": "bus",
                "amount": 4000,
            }
        )
        stay = api.create_accommodation(
            {
                "travelerId": traveler_id,
                "numberOfNights": 1,
                "location": "大阪府",
                "amount": 9000,
                "hasPreStay": True,
                "preStayReason": "early start",
            }
        )

        assert leg.status_code == 201
        assert stay.status_code == 201
        assert api.list_transportation(traveler_id).body == [leg.body]
        assert api.list_accommodation(traveler_id).body == [stay.body]
        assert stay.body["preStayReason"] == "early start"

    def test_invalid_child_bodies(self, api: TravelRequestAPI) -> None:
        response = api.create_transportation({"travelerId": 1})

        assert response.status_code == 400
        assert {error["field"] for error in response.body["errors"]} == {
            "departure",
            "destination",
            "arrival_time",
            "mode",
            "amount",
        }

    def test_lists_for_unknown_parents_are_empty(self, api: TravelRequestAPI) -> None:
        assert api.list_travelers(5).body == []
        assert api.list_transportation(5).body == []
        assert api.list_accommodation(5).body == []


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (ValidationError.from_issues([ValidationIssue(field="x", message="bad")]), 400),
        (NotFoundError.for_entity("Traveler", 1), 404),
        (InvalidTransitionError.between("approved", "rejected"), 409),
        (ConfigurationError(message="broken"), 500),
    ],
)
def test_error_response_status(error: Exception, status_code: int) -> None:
    response = error_response(error)  # type: ignore[arg-type]

    assert response.status_code == status_code
    assert response.body["message"] == str(error)
