"""Command-line interface for bulk-submitting travel requests and exporting them."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import cast

from .config import WorkflowConfig
from .errors import ValidationError, WorkflowError
from .export import ExportService
from .lifecycle import LifecycleService
from .store import EntityStore


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="travel-requests",
        description=(
            "Submit travel requests from a JSON file, apply approval decisions, "
            "and write the request list as CSV or Excel."
        ),
    )
    parser.add_argument("input_json", type=Path, help="Path to the requests JSON input.")
    parser.add_argument("output", type=Path, help="Path to write the request list.")
    parser.add_argument(
        "--format",
        choices=("csv", "xlsx"),
        default=None,
        help="Output format; inferred from the output suffix when omitted.",
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="Path to a workflow.yaml file."
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log lifecycle events to stderr."
    )
    return parser


def _load_input(path: Path) -> dict[str, object]:
    try:
        raw_data = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        msg = f"Input file not found: {path}"
        raise FileNotFoundError(msg) from exc
    except OSError as exc:
        msg = f"Unable to read input file: {path}"
        raise OSError(msg) from exc

    try:
        payload = json.loads(raw_data)
    except json.JSONDecodeError as exc:
        msg = f"Invalid JSON in input file: {path}"
        raise ValueError(msg) from exc

    if isinstance(payload, list):
        payload = {"requests": payload}
    if not isinstance(payload, dict) or not isinstance(payload.get("requests"), list):
        raise ValueError(f"Input file must contain a 'requests' list: {path}")
    return payload


def _run(payload: dict[str, object], service: LifecycleService) -> None:
    requests = cast(list[dict[str, object]], payload["requests"])
    submitted = [service.submit_as_default_user(item) for item in requests]
    decisions = payload.get("decisions") or {}
    if not isinstance(decisions, dict):
        raise ValueError("'decisions' must map request ids to statuses")
    for raw_id, status in decisions.items():
        service.change_status(int(raw_id), status)
    logging.getLogger(__name__).info("Submitted %d travel requests", len(submitted))


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = WorkflowConfig.load(args.config)
        payload = _load_input(args.input_json)
        service = LifecycleService(EntityStore(), config)
        _run(payload, service)
        exporter = ExportService(config)
        output_format = args.format or (
            "xlsx" if args.output.suffix.lower() == ".xlsx" else "csv"
        )
        requests = service.list_requests()
        if output_format == "xlsx":
            details = [service.request_detail(request.id) for request in requests]
            _, content = exporter.to_excel(requests, details=details)
            args.output.write_bytes(content)
        else:
            _, text = exporter.to_csv(requests)
            args.output.write_text(text, encoding="utf-8")
    except ValidationError as exc:
        print("Error: travel request validation failed.", file=sys.stderr)
        for issue in exc.issues:
            print(f"  {issue.field}: {issue.message}", file=sys.stderr)
        return 1
    except WorkflowError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Request list written to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
