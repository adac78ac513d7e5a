# core/export.py
from datetime import date
from io import BytesIO
from typing import Any, Dict, List

import pandas as pd

from core.models import PAYMENT_FIELDS, PRODUCT_FIELDS, USER_FIELDS

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# snapshot key -> (sheet name, columns)
SHEETS = {
    "users": ("Users", USER_FIELDS),
    "products": ("Products", PRODUCT_FIELDS),
    "payments": ("Payments", PAYMENT_FIELDS),
}


def export_filename(day: date) -> str:
    return f"wifi_dashboard_export_{day.isoformat()}.xlsx"


# =====================================================
# EXPORT: one sheet per entity kind
# =====================================================
def export_workbook(snapshot: Dict[str, List[Dict[str, Any]]]) -> bytes:
    """
    Serializes the three collections into one workbook.
    Column headers are the record field names.
    """
    bio = BytesIO()

    with pd.ExcelWriter(bio, engine="xlsxwriter") as writer:
        for key, (sheet, columns) in SHEETS.items():
            df = pd.DataFrame(snapshot.get(key) or [], columns=columns)
            df.to_excel(writer, index=False, sheet_name=sheet)

            worksheet = writer.sheets[sheet]
            worksheet.set_column(0, len(columns) - 1, 18)
            worksheet.freeze_panes(1, 0)

    bio.seek(0)
    return bio.getvalue()


# =====================================================
# IMPORT: read an export back
# =====================================================
# empty cells that read back as None rather than ""
NULLABLE = {"planId", "speed", "price", "amount"}


def _clean(value: Any, column: str) -> Any:
    if pd.isna(value):
        return None if column in NULLABLE else ""
    # numpy scalars -> python
    if hasattr(value, "item"):
        return value.item()
    return value


def import_workbook(data: bytes) -> Dict[str, List[Dict[str, Any]]]:
    sheets = pd.read_excel(BytesIO(data), sheet_name=None, dtype=object)

    snapshot = {}
    for key, (sheet, columns) in SHEETS.items():
        if sheet not in sheets:
            raise ValueError(f"Missing sheet in workbook: {sheet}")

        df = sheets[sheet]
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise ValueError(f"Missing columns in sheet {sheet}: {missing}")

        snapshot[key] = [
            {c: _clean(row[c], c) for c in columns}
            for row in df.to_dict(orient="records")
        ]

    return snapshot
