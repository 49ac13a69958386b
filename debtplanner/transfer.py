"""Debt-list JSON import/export and payoff schedule CSV export."""

from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path
from typing import List, Optional

from .amounts import format_money
from .simulation import Report


logger = logging.getLogger(__name__)

DEBT_FIELDS = ("id", "name", "balance", "rate", "minPay")
CSV_HEADER = ["month", "total balance", "total paid this month"]
BOM = "\ufeff"


class ImportFormatError(ValueError):
    pass


_EXPECTED_FORMAT = (
    "Expected a JSON array of debts like "
    '[{"id": 1, "name": "Card", "balance": 1000, "rate": 18, "minPay": ""}], '
    "as produced by the debt list export."
)


def _next_id(entries: List[dict]) -> int:
    numeric_ids = [
        entry["id"]
        for entry in entries
        if isinstance(entry.get("id"), int) and not isinstance(entry.get("id"), bool)
    ]
    return max(numeric_ids, default=0) + 1


def import_debts_json(text) -> List[dict]:
    """Parse an exported debt list.

    Entries missing an ``id`` get a fresh integer id above every existing one;
    a missing ``name`` becomes ``"Debt <n>"`` and missing amounts become blank.
    """

    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as exc:
        logger.warning("Rejected debt import: unparsable JSON (%s)", exc)
        raise ImportFormatError(f"Could not read the file as JSON. {_EXPECTED_FORMAT}") from exc

    if not isinstance(payload, list):
        logger.warning("Rejected debt import: top-level %s", type(payload).__name__)
        raise ImportFormatError(f"The file does not contain a list of debts. {_EXPECTED_FORMAT}")

    debts: List[dict] = []
    for index, item in enumerate(payload, start=1):
        if not isinstance(item, dict):
            raise ImportFormatError(f"Debt #{index} is not an object. {_EXPECTED_FORMAT}")
        debts.append(
            {
                "id": item.get("id"),
                "name": item.get("name") or f"Debt {index}",
                "balance": item.get("balance", ""),
                "rate": item.get("rate", ""),
                "minPay": item.get("minPay", ""),
            }
        )

    next_id = _next_id(debts)
    for debt in debts:
        if debt["id"] is None or debt["id"] == "":
            debt["id"] = next_id
            next_id += 1

    logger.info("Imported %d debts", len(debts))
    return debts


def export_debts_json(debts) -> str:
    return json.dumps(
        [{field: debt.get(field, "") for field in DEBT_FIELDS} for debt in debts],
        ensure_ascii=False,
        indent=2,
    )


def schedule_rows(report: Report) -> List[List[str]]:
    header = list(CSV_HEADER)
    for column in report.original_columns:
        header.extend([f"{column.name} (paid)", f"{column.name} (balance)"])

    rows = [header]
    for row in report.rows:
        line = [str(row.month), format_money(row.total_balance), format_money(row.total_paid)]
        for column in report.original_columns:
            state = row.debts[column.id]
            line.extend([format_money(state.paid), format_money(state.balance)])
        rows.append(line)
    return rows


def export_schedule_csv(report: Report) -> str:
    """Render the schedule as CSV text, starting with a byte-order mark."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(schedule_rows(report))
    return BOM + buffer.getvalue()


def write_schedule_csv(report: Report, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    # utf-8-sig writes the BOM itself.
    with output_path.open("w", newline="", encoding="utf-8-sig") as fh:
        writer = csv.writer(fh, lineterminator="\n")
        writer.writerows(schedule_rows(report))
    return output_path


def schedule_filename(user_name: Optional[str] = None) -> str:
    return f"debt_plan_{user_name or 'export'}.csv"
