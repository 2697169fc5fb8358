from __future__ import annotations

import argparse
import json
import logging
import sys
from decimal import Decimal
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from dotenv import load_dotenv
from pydantic import ValidationError

from tabrecon.adapters.schema import ItemsQueryRequest, ReconcileRequest
from tabrecon.app import (
    get_dataset,
    get_reconciliation,
    import_dataset,
    list_reconciliation_items,
    run_reconciliation_request,
)
from tabrecon.config import configure_logging, get_reconciliation_defaults

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from tabrecon.domain.model import Dataset, Reconciliation
    from tabrecon.domain.reconciliation import ItemPage, ReconciliationItem

log = logging.getLogger(__name__)

PREVIEW_ROWS = 5


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile tabular datasets")
    subparsers = parser.add_subparsers(dest="command", required=True)

    dataset = subparsers.add_parser("dataset", help="Dataset commands")
    dataset_sub = dataset.add_subparsers(dest="dataset_command", required=True)
    dataset_import = dataset_sub.add_parser("import", help="Import a CSV or XLSX file")
    dataset_import.add_argument("path", type=str, help="Path to the .csv or .xlsx file")
    dataset_import.add_argument(
        "--name",
        type=str,
        help="Dataset name (defaults to the file name without extension)",
    )
    dataset_show = dataset_sub.add_parser("show", help="Show a stored dataset")
    dataset_show.add_argument("dataset_id", type=str, help="Dataset id")
    dataset_show.add_argument(
        "--rows",
        type=int,
        default=PREVIEW_ROWS,
        help="Number of preview rows to print",
    )

    reconcile = subparsers.add_parser("reconcile", help="Reconcile two stored datasets")
    reconcile.add_argument("--dataset-a", type=str, required=True, help="Dataset A id")
    reconcile.add_argument("--dataset-b", type=str, required=True, help="Dataset B id")
    reconcile.add_argument(
        "--key",
        dest="keys",
        action="append",
        required=True,
        help="Key field (repeat for composite keys)",
    )
    reconcile.add_argument(
        "--compare",
        dest="compare",
        action="append",
        help="Field to compare on matched records (repeatable, defaults to amount)",
    )
    reconcile.add_argument(
        "--tolerance",
        type=str,
        default=None,
        help="Absolute tolerance for amount fields (defaults to config)",
    )
    reconcile.add_argument(
        "--strategy",
        dest="strategies",
        action="append",
        default=[],
        metavar="FIELD=MODE",
        help="Comparison strategy per field: exact or numeric-tolerance",
    )
    reconcile.add_argument(
        "--no-infer-amounts",
        dest="infer_amounts",
        action="store_false",
        help='Do not treat fields named like "amount" as numeric',
    )

    summary = subparsers.add_parser("summary", help="Show the summary of a reconciliation")
    summary.add_argument("reconciliation_id", type=str, help="Reconciliation id")

    items = subparsers.add_parser("items", help="List reconciliation items")
    items.add_argument("reconciliation_id", type=str, help="Reconciliation id")
    items.add_argument(
        "--status",
        type=str,
        default="all",
        help="all, match, mismatch, missing_in_a or missing_in_b",
    )
    items.add_argument("--q", type=str, default="", help="Case-insensitive key substring")
    items.add_argument("--page", type=int, default=1, help="1-based page number")
    items.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Items per page, clamped to 5..100 (defaults to config)",
    )

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _parse_strategies(values: Sequence[str]) -> dict[str, str]:
    strategies: dict[str, str] = {}
    for value in values:
        name, separator, mode = value.partition("=")
        if not separator or not name.strip() or not mode.strip():
            raise ValueError(f"Invalid --strategy {value!r}, expected FIELD=MODE")
        strategies[name.strip()] = mode.strip()
    return strategies


def _json_default(value: object) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, UUID):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _emit(payload: dict[str, Any]) -> None:
    sys.stdout.write(json.dumps(payload, default=_json_default, indent=2, ensure_ascii=False))
    sys.stdout.write("\n")


def _dataset_payload(dataset: Dataset, *, preview_rows: int = PREVIEW_ROWS) -> dict[str, Any]:
    return {
        "id": dataset.id,
        "name": dataset.name,
        "originalFilename": dataset.original_filename,
        "fileType": dataset.file_type.value,
        "headers": list(dataset.headers),
        "rowCount": dataset.row_count,
        "preview": [dict(row) for row in dataset.preview(max(0, preview_rows))],
        "createdAt": dataset.created_at.isoformat(),
    }


def _reconciliation_payload(run: Reconciliation) -> dict[str, Any]:
    config = run.config
    summary = run.summary
    return {
        "id": run.id,
        "datasetAId": run.dataset_a_id,
        "datasetBId": run.dataset_b_id,
        "config": {
            "keyFields": list(config.key_fields),
            "compareFields": list(config.compare_fields),
            "amountTolerance": config.amount_tolerance,
            "fieldStrategies": {
                name: strategy.value for name, strategy in config.field_strategies.items()
            },
        },
        "summary": {
            "matches": summary.matches,
            "mismatches": summary.mismatches,
            "missingInA": summary.missing_in_a,
            "missingInB": summary.missing_in_b,
            "totalA": summary.total_a,
            "totalB": summary.total_b,
            "unkeyableA": summary.unkeyable_a,
            "unkeyableB": summary.unkeyable_b,
        },
        "createdAt": run.created_at.isoformat(),
    }


def _item_payload(item: ReconciliationItem) -> dict[str, Any]:
    return {
        "status": item.status.value,
        "key": item.key,
        "recordA": dict(item.record_a) if item.record_a is not None else None,
        "recordB": dict(item.record_b) if item.record_b is not None else None,
        "reasons": list(item.reasons),
        "diffs": [
            {"field": diff.field, "a": diff.value_a, "b": diff.value_b} for diff in item.diffs
        ],
    }


def _page_payload(page: ItemPage) -> dict[str, Any]:
    return {
        "total": page.total,
        "page": page.page,
        "pageSize": page.page_size,
        "pages": page.pages,
        "items": [_item_payload(item) for item in page.items],
    }


def _run_command(args: argparse.Namespace) -> dict[str, Any]:
    defaults = get_reconciliation_defaults()

    if args.command == "dataset" and args.dataset_command == "import":
        return _dataset_payload(import_dataset(args.path, name=args.name))
    if args.command == "dataset" and args.dataset_command == "show":
        dataset = get_dataset(_parse_uuid(args.dataset_id))
        return _dataset_payload(dataset, preview_rows=args.rows)
    if args.command == "reconcile":
        payload: dict[str, Any] = {
            "datasetAId": args.dataset_a,
            "datasetBId": args.dataset_b,
            "keyFields": args.keys,
            "amountTolerance": (
                args.tolerance if args.tolerance is not None else defaults.amount_tolerance
            ),
            "fieldStrategies": _parse_strategies(args.strategies),
            "inferAmountFields": args.infer_amounts,
        }
        if args.compare:
            payload["compareFields"] = args.compare
        run = run_reconciliation_request(ReconcileRequest.model_validate(payload))
        return _reconciliation_payload(run)
    if args.command == "summary":
        return _reconciliation_payload(get_reconciliation(_parse_uuid(args.reconciliation_id)))
    if args.command == "items":
        request = ItemsQueryRequest.model_validate(
            {
                "status": args.status,
                "q": args.q,
                "page": args.page,
                "pageSize": args.page_size or defaults.page_size,
            }
        )
        page = list_reconciliation_items(
            _parse_uuid(args.reconciliation_id), request.to_query()
        )
        return _page_payload(page)
    raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        result = _run_command(parsed_args)
    except (ValueError, ValidationError, LookupError):
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)

    _emit(result)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()
