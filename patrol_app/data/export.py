"""Rendering of patrol sets for bulk download."""

import csv
import io
from datetime import datetime
from typing import Any, Optional

from ..errors import ValidationError
from ..utils.time import format_instant

EXPORT_FORMATS = ("json", "csv")

CSV_COLUMNS = (
    "id", "rangerId", "route", "status", "patrolDate", "startTime",
    "estimatedDuration", "endTime", "actualDuration", "priority",
    "objectives", "equipment", "attendees", "notes", "findings",
    "createdAt", "updatedAt",
)


def render_json(records: list[dict[str, Any]], ranger_id: Optional[str],
                exported_at: datetime) -> dict[str, Any]:
    """JSON-ready export envelope."""
    return {
        "rangerId": ranger_id,
        "exportedAt": format_instant(exported_at),
        "count": len(records),
        "patrols": records,
    }


def render_csv(records: list[dict[str, Any]]) -> str:
    """CSV text with a header row. List fields are joined with "; "."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    for record in records:
        row = {}
        for column in CSV_COLUMNS:
            value = record.get(column)
            if isinstance(value, list):
                value = "; ".join(value)
            row[column] = "" if value is None else value
        writer.writerow(row)
    return buffer.getvalue()


def validate_export_format(fmt: Any) -> str:
    """
    Check an export format name.

    Raises:
        ValidationError: If the format is not supported
    """
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(
            f"Unsupported export format: {fmt}. Must be one of {', '.join(EXPORT_FORMATS)}",
            field="format",
            value=fmt
        )
    return fmt


def render_export(records: list[dict[str, Any]], fmt: str, ranger_id: Optional[str],
                  exported_at: datetime):
    """
    Render an export in the requested format.

    Raises:
        ValidationError: If the format is not supported
    """
    if validate_export_format(fmt) == "csv":
        return render_csv(records)
    return render_json(records, ranger_id, exported_at)
