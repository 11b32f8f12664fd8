"""CSV and Excel exports of the travel request list."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Iterator
from datetime import UTC, datetime

from .config import WorkflowConfig
from .models import RequestDetail, TravelRequest

ExportRow = dict[str, object]


class ExportService:
    """Render travel requests as the list view shown to approvers."""

    schema = [
        "id",
        "department_code",
        "purpose",
        "number_of_travelers",
        "total_amount",
        "arrange_type",
        "status",
    ]
    traveler_schema = [
        "request_id",
        "name",
        "employee_id",
        "start_date",
        "end_date",
        "duration_days",
        "transportation_modes",
        "expense_total",
    ]

    def __init__(self, config: WorkflowConfig | None = None) -> None:
        self.config = config or WorkflowConfig()

    def _build_filename(self, ext: str, now: datetime) -> str:
        return f"travel_requests_{now.date().isoformat()}.{ext}"

    def _iter_rows(self, requests: Iterable[TravelRequest]) -> Iterator[ExportRow]:
        labels = self.config.labels
        for request in requests:
            yield {
                "id": request.id,
                "department_code": request.department_code,
                "purpose": request.purpose,
                "number_of_travelers": request.number_of_travelers,
                "total_amount": request.total_amount,
                "arrange_type": labels.label("arrange_type", request.arrange_type.value),
                "status": labels.label("status", request.status.value),
            }

    def _iter_traveler_rows(
        self, details: Iterable[RequestDetail]
    ) -> Iterator[ExportRow]:
        labels = self.config.labels
        for detail in details:
            for item in detail.travelers:
                traveler = item.traveler
                modes = dict.fromkeys(
                    labels.label("transportation_mode", leg.mode.value)
                    for leg in item.transportation
                )
                yield {
                    "request_id": traveler.request_id,
                    "name": traveler.name,
                    "employee_id": traveler.employee_id,
                    "start_date": traveler.start_date.date(),
                    "end_date": traveler.end_date.date(),
                    "duration_days": traveler.duration_days(),
                    "transportation_modes": "、".join(modes),
                    "expense_total": item.total_amount(),
                }

    def to_csv(
        self, requests: Iterable[TravelRequest], *, now: datetime | None = None
    ) -> tuple[str, str]:
        """Return filename and UTF-8 CSV content."""

        current_time = now or datetime.now(UTC)
        output = io.StringIO(newline="")
        writer = csv.DictWriter(output, fieldnames=self.schema)
        writer.writeheader()
        writer.writerows(self._iter_rows(requests))
        return self._build_filename("csv", current_time), output.getvalue()

    def to_excel(
        self,
        requests: Iterable[TravelRequest],
        *,
        details: Iterable[RequestDetail] | None = None,
        now: datetime | None = None,
    ) -> tuple[str, bytes]:
        """Return filename and Excel binary content.

        When ``details`` is given, a second ``Travelers`` sheet lists every
        traveler with trip length, transportation modes and expense total.
        """

        from openpyxl import Workbook  # type: ignore[import-untyped]

        current_time = now or datetime.now(UTC)
        wb = Workbook()
        ws = wb.active
        ws.title = "Travel Requests"
        ws.append(self.schema)
        for row in self._iter_rows(requests):
            ws.append([row[column] for column in self.schema])

        amount_column = self.schema.index("total_amount") + 1
        for column in ws.iter_cols(
            min_col=amount_column, max_col=amount_column, min_row=2
        ):
            for amount_cell in column:
                amount_cell.number_format = self.config.currency_format
        ws.column_dimensions["A"].width = 8
        ws.column_dimensions["B"].width = 18
        ws.column_dimensions["C"].width = 40
        ws.column_dimensions["D"].width = 12
        ws.column_dimensions["E"].width = 14
        ws.column_dimensions["F"].width = 18
        ws.column_dimensions["G"].width = 12

        if details is not None:
            travelers_ws = wb.create_sheet("Travelers")
            travelers_ws.append(self.traveler_schema)
            for row in self._iter_traveler_rows(details):
                travelers_ws.append([row[column] for column in self.traveler_schema])
            for row_cells in travelers_ws.iter_rows(min_row=2):
                row_cells[3].number_format = "yyyy-mm-dd"
                row_cells[4].number_format = "yyyy-mm-dd"
                row_cells[7].number_format = self.config.currency_format
            travelers_ws.column_dimensions["B"].width = 20
            travelers_ws.column_dimensions["D"].width = 12
            travelers_ws.column_dimensions["E"].width = 12
            travelers_ws.column_dimensions["G"].width = 24
            travelers_ws.column_dimensions["H"].width = 14

        buffer = io.BytesIO()
        wb.save(buffer)
        return self._build_filename("xlsx", current_time), buffer.getvalue()
