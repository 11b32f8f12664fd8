"""Tests for input validation schemas."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from travel_request_workflow.errors import ValidationError
from travel_request_workflow.models import ArrangeType, TransportationMode
from travel_request_workflow.schemas import (
    AccommodationFields,
    accommodation_advisories,
    submission_advisories,
    validate_accommodation,
    validate_request,
    validate_submission,
    validate_transportation,
    validate_traveler,
    validate_user,
)


def _request_body(**overrides: object) -> dict[str, object]:
    body: dict[str, object] = {
        "departmentCode": "DEPT1",
        "purpose": "client visit",
        "numberOfTravelers": 1,
        "totalAmount": 50000,
        "arrangeType": "self",
    }
    body.update(overrides)
    return body


def _traveler_body(**overrides: object) -> dict[str, object]:
    body: dict[str, object] = {
        "name": "山田太郎",
        "employeeId": "E001",
        "startDate": "2025-01-15",
        "endDate": "2025-01-17",
    }
    body.update(overrides)
    return body


class TestRequestValidation:
    """Top-level request field rules."""

    def test_valid_request_is_normalized(self) -> None:
        result = validate_request(_request_body(purpose="  client visit  "))

        assert result.department_code == "DEPT1"
        assert result.purpose == "client visit"
        assert result.arrange_type == ArrangeType.SELF

    def test_accepts_snake_case_keys(self) -> None:
        result = validate_request(
            {
                "department_code": "DEPT2",
                "purpose": "audit",
                "number_of_travelers": 2,
                "total_amount": 0,
                "arrange_type": "agency",
            }
        )

        assert result.number_of_travelers == 2
        assert result.total_amount == 0

    def test_ssa_is_agency_arranged(self) -> None:
        result = validate_request(_request_body(arrangeType="ssa"))

        assert result.arrange_type == ArrangeType.AGENCY

    def test_reports_every_violated_field(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_request(
                {
                    "departmentCode": "",
                    "purpose": "   ",
                    "numberOfTravelers": 0,
                    "totalAmount": -5,
                    "arrangeType": "courier",
                }
            )

        assert set(excinfo.value.fields) == {
            "department_code",
            "purpose",
            "number_of_travelers",
            "total_amount",
            "arrange_type",
        }

    def test_missing_fields_are_listed(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_request({})

        assert set(excinfo.value.fields) == {
            "department_code",
            "purpose",
            "number_of_travelers",
            "total_amount",
            "arrange_type",
        }

    @pytest.mark.parametrize("amount", [1.5, "100", True])
    def test_amount_must_be_integer(self, amount: object) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_request(_request_body(totalAmount=amount))

        assert excinfo.value.fields == ["total_amount"]

    def test_blank_optional_text_becomes_none(self) -> None:
        result = validate_request(_request_body(destination="  "))

        assert result.destination is None

    def test_non_mapping_input_is_rejected(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_request(["not", "a", "mapping"])  # type: ignore[arg-type]

        assert excinfo.value.fields == ["input"]


class TestTravelerValidation:
    """Traveler field rules."""

    def test_plain_dates_become_datetimes(self) -> None:
        result = validate_traveler(_traveler_body(requestId=1))

        assert result.start_date == datetime(2025, 1, 15)
        assert result.end_date == datetime(2025, 1, 17)

    def test_date_objects_are_accepted(self) -> None:
        result = validate_traveler(
            _traveler_body(
                requestId=1, startDate=date(2025, 2, 1), endDate=date(2025, 2, 1)
            )
        )

        assert result.start_date == result.end_date

    def test_end_before_start_is_rejected(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_traveler(
                _traveler_body(requestId=1, startDate="2025-01-17", endDate="2025-01-15")
            )

        assert excinfo.value.fields == ["end_date"]

    def test_end_before_start_allowed_when_not_enforced(self) -> None:
        result = validate_traveler(
            _traveler_body(requestId=1, startDate="2025-01-17", endDate="2025-01-15"),
            enforce_date_order=False,
        )

        assert result.end_date < result.start_date

    def test_date_order_compares_offsets_in_utc(self) -> None:
        """End eight hours after start is valid even when its local day is earlier."""
        result = validate_traveler(
            _traveler_body(
                requestId=1,
                startDate="2025-01-02T00:00:00+09:00",
                endDate="2025-01-01T20:00:00Z",
            )
        )

        assert result.end_date > result.start_date

    def test_date_order_with_offsets_still_rejects_earlier_day(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_traveler(
                _traveler_body(
                    requestId=1,
                    startDate="2025-01-02T10:00:00Z",
                    endDate="2025-01-02T08:00:00+09:00",
                )
            )

        assert excinfo.value.fields == ["end_date"]

    def test_invalid_date_and_missing_parent(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_traveler(_traveler_body(startDate="not-a-date", name=""))

        assert set(excinfo.value.fields) == {"start_date", "name", "request_id"}


class TestTransportationValidation:
    """Transportation leg rules."""

    def test_accepts_original_field_name_for_mode(self) -> None:
        result = validate_transportation(
            {
                "travelerId": 1,
                "departure": "東京",
                "destination": "大阪",
                "arrivalTime": "2025-01-15T10:30:00",
                "transportationType": "train",
                "amount": 14000,
                "excessReason": "",
            }
        )

        assert result.mode == TransportationMode.TRAIN
        assert result.excess_reason is None

    def test_rejects_unknown_mode_and_negative_amount(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_transportation(
                {
                    "travelerId": 1,
                    "departure": "東京",
                    "destination": "",
                    "arrivalTime": "2025-01-15T10:30:00",
                    "mode": "ship",
                    "amount": -1,
                }
            )

        assert set(excinfo.value.fields) == {"destination", "mode", "amount"}


class TestAccommodationValidation:
    """Accommodation stay rules and advisories."""

    def test_zero_nights_is_valid(self) -> None:
        result = validate_accommodation(
            {"travelerId": 1, "numberOfNights": 0, "location": "東京都", "amount": 0}
        )

        assert result.number_of_nights == 0
        assert result.has_pre_stay is False

    def test_negative_nights_rejected(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_accommodation(
                {"travelerId": 1, "numberOfNights": -1, "location": "東京都", "amount": 0}
            )

        assert excinfo.value.fields == ["number_of_nights"]

    def test_pre_stay_without_reason_is_advisory_only(self) -> None:
        stay = validate_accommodation(
            {
                "travelerId": 1,
                "numberOfNights": 2,
                "location": "北海道",
                "amount": 20000,
                "hasPreStay": True,
                "hasPostStay": True,
                "postStayReason": "weekend meeting",
            }
        )

        issues = accommodation_advisories(stay)

        assert [issue.field for issue in issues] == ["pre_stay_reason"]
        assert all(not issue.is_blocking for issue in issues)


def test_validate_user_requires_credentials() -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate_user({"username": "", "password": ""})

    assert set(excinfo.value.fields) == {"username", "password"}


class TestSubmissionValidation:
    """Nested submission rules."""

    def test_nested_errors_carry_their_location(self) -> None:
        body = _request_body(
            travelers=[
                _traveler_body(),
                _traveler_body(
                    startDate="2025-01-20",
                    endDate="2025-01-18",
                    transportation=[
                        {
                            "departure": "東京",
                            "destination": "福岡",
                            "arrivalTime": "2025-01-20T09:00:00",
                            "mode": "airplane",
                            "amount": -100,
                        }
                    ],
                ),
            ]
        )

        with pytest.raises(ValidationError) as excinfo:
            validate_submission(body)

        assert set(excinfo.value.fields) == {
            "travelers.1.end_date",
            "travelers.1.transportation.0.amount",
        }

    def test_request_fields_exclude_children(self) -> None:
        submission = validate_submission(_request_body(travelers=[_traveler_body()]))

        fields = submission.request_fields()

        assert "travelers" not in fields
        assert fields["department_code"] == "DEPT1"
        assert len(submission.travelers) == 1

    def test_declared_figures_mismatch_is_advisory(self) -> None:
        submission = validate_submission(
            _request_body(
                numberOfTravelers=2,
                totalAmount=50000,
                travelers=[
                    _traveler_body(
                        accommodation=[
                            {
                                "numberOfNights": 1,
                                "location": "大阪府",
                                "amount": 9000,
                                "hasPostStay": True,
                            }
                        ]
                    )
                ],
            )
        )

        fields = [issue.field for issue in submission_advisories(submission)]

        assert fields == [
            "travelers.0.accommodation.0.post_stay_reason",
            "number_of_travelers",
            "total_amount",
        ]

    def test_no_advisories_without_travelers(self) -> None:
        submission = validate_submission(_request_body())

        assert submission_advisories(submission) == []


def test_accommodation_fields_model_has_no_parent() -> None:
    stay = AccommodationFields(number_of_nights=1, location="福岡県", amount=8000)

    assert not hasattr(stay, "traveler_id")
