"""
LeadEngine exporter - derives CSV/JSON/Excel from CreatorLead records.
"""

import csv
import json
from datetime import date
from pathlib import Path
from typing import TextIO

from .models import CreatorLead, Source

# CSV column order (header label -> CreatorLead attribute)
CSV_COLUMNS = {
    "Name": "name",
    "Username": "username",
    "Profile URL": "profile_url",
    "Followers": "followers",
    "Bio": "bio",
    "Email": "email",
    "Phone": "phone",
    "Category": "category",
    "City": "city",
}

EXPORT_FORMATS = ("csv", "json", "xlsx")


def default_filename(extension: str = "csv", today: date | None = None) -> str:
    """creator_leads_YYYY-MM-DD.<ext>"""
    today = today or date.today()
    return f"creator_leads_{today.isoformat()}.{extension}"


def lead_to_row(lead: CreatorLead) -> dict[str, str]:
    """Convert a lead to a flat row keyed by header label."""
    return {header: getattr(lead, attr) for header, attr in CSV_COLUMNS.items()}


def export_csv(leads: list[CreatorLead], output: Path | TextIO) -> int:
    """Export leads to CSV. Returns number of rows written."""
    rows = [lead_to_row(lead) for lead in leads]

    if isinstance(output, Path):
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=list(CSV_COLUMNS), quoting=csv.QUOTE_ALL)
            writer.writeheader()
            writer.writerows(rows)
    else:
        writer = csv.DictWriter(output, fieldnames=list(CSV_COLUMNS), quoting=csv.QUOTE_ALL)
        writer.writeheader()
        writer.writerows(rows)

    return len(rows)


def export_excel(leads: list[CreatorLead], output: Path) -> int:
    """Export leads to Excel with auto-fitted column widths."""
    from openpyxl import Workbook
    from openpyxl.styles import Font
    from openpyxl.utils import get_column_letter

    rows = [lead_to_row(lead) for lead in leads]
    headers = list(CSV_COLUMNS)
    output.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws = wb.active
    ws.title = "Leads"

    for col_idx, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = Font(bold=True)

    for row_idx, row_data in enumerate(rows, 2):
        for col_idx, header in enumerate(headers, 1):
            ws.cell(row=row_idx, column=col_idx, value=row_data.get(header, ""))

    for col_idx, header in enumerate(headers, 1):
        # Cap cell length consideration so bios don't produce huge columns
        max_length = len(header)
        for row_data in rows:
            max_length = max(max_length, min(len(str(row_data.get(header, ""))), 50))
        ws.column_dimensions[get_column_letter(col_idx)].width = max_length + 2

    ws.freeze_panes = "A2"
    wb.save(output)
    return len(rows)


def export_json(
    leads: list[CreatorLead], output: Path, sources: list[Source] | None = None
) -> int:
    """Export leads (and optionally sources) to JSON using camelCase keys."""
    output.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "leads": [lead.model_dump(mode="json", by_alias=True) for lead in leads],
        "sources": [s.model_dump(mode="json") for s in sources or []],
    }
    with open(output, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return len(leads)


def export_leads(
    leads: list[CreatorLead],
    output: Path,
    output_format: str = "csv",
    sources: list[Source] | None = None,
) -> int:
    """Dispatch to the exporter for `output_format`."""
    if output_format == "csv":
        return export_csv(leads, output)
    if output_format == "json":
        return export_json(leads, output, sources)
    if output_format == "xlsx":
        return export_excel(leads, output)
    raise ValueError(f"Unknown export format: {output_format}")
