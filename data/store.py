# data/store.py
"""
Tabular store behind the shim.

Two variants share the same interface:

- WorkbookStore: the spreadsheet itself (.xlsx through openpyxl). Every read
  and every write scans the whole sheet, so a mutation costs O(rows). That is
  fine for a small ISP customer base and is not hidden behind any index.
- MemoryStore: the mock backend. An explicit object created at process start
  and handed to the shim; it is only reset by building a new one.
"""

import copy
import logging
import zipfile
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from backend.errors import NotFoundError, TransportError
from core.models import PAYMENT_FIELDS, PRODUCT_FIELDS, USER_FIELDS

logger = logging.getLogger(__name__)

USERS = "Users"
PRODUCTS = "Products"
PAYMENTS = "Payments"

TABLES = {
    USERS: USER_FIELDS,
    PRODUCTS: PRODUCT_FIELDS,
    PAYMENTS: PAYMENT_FIELDS,
}

DB_PATH = Path("data/wifinet.xlsx")


def _check_table(table: str) -> List[str]:
    if table not in TABLES:
        raise ValueError(f"Unknown table: {table}")
    return TABLES[table]


def _cell_to_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def _value_to_cell(value: Any) -> Any:
    if value is None or value == "":
        return None
    return value


# ======================================================
# WORKBOOK (SPREADSHEET) STORE
# ======================================================

class WorkbookStore:

    def __init__(self, path=DB_PATH):
        self.path = Path(path)
        if not self.path.exists():
            self._create()

    def _create(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        wb = Workbook()
        wb.remove(wb.active)
        for table, headers in TABLES.items():
            ws = wb.create_sheet(table)
            ws.append(headers)
        wb.save(self.path)
        logger.info("Created workbook store at %s", self.path)

    def _open(self):
        try:
            return load_workbook(self.path)
        except (OSError, KeyError, ValueError, zipfile.BadZipFile, InvalidFileException) as e:
            raise TransportError(f"Store unreachable: {e}") from e

    def _save(self, wb) -> None:
        try:
            wb.save(self.path)
        except OSError as e:
            raise TransportError(f"Store write failed: {e}") from e

    @staticmethod
    def _sheet(wb, table: str):
        if table not in wb.sheetnames:
            raise TransportError(f"Sheet '{table}' missing from workbook")
        return wb[table]

    @staticmethod
    def _headers(ws) -> List[str]:
        return [c.value for c in ws[1] if c.value is not None]

    # -------------------------
    # READ (full scan)
    # -------------------------
    def read_all(self, table: str) -> List[Dict[str, Any]]:
        _check_table(table)
        wb = self._open()
        ws = self._sheet(wb, table)
        headers = self._headers(ws)

        rows = []
        for values in ws.iter_rows(min_row=2, values_only=True):
            if all(v is None for v in values):
                continue
            rows.append({
                h: _cell_to_value(values[i] if i < len(values) else None)
                for i, h in enumerate(headers)
            })
        return rows

    # -------------------------
    # WRITE
    # -------------------------
    def append(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        _check_table(table)
        wb = self._open()
        ws = self._sheet(wb, table)
        headers = self._headers(ws)

        ws.append([_value_to_cell(row.get(h)) for h in headers])
        self._save(wb)
        logger.debug("Appended row %s to %s", row.get("id"), table)
        return row

    def _find_row(self, ws, headers: List[str], record_id: str) -> int:
        id_col = headers.index("id") + 1
        # rows start at 2: row 1 holds the headers
        for row_idx in range(2, ws.max_row + 1):
            if str(ws.cell(row=row_idx, column=id_col).value) == str(record_id):
                return row_idx
        return -1

    def update(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        _check_table(table)
        wb = self._open()
        ws = self._sheet(wb, table)
        headers = self._headers(ws)

        row_idx = self._find_row(ws, headers, row.get("id"))
        if row_idx == -1:
            raise NotFoundError(f"Row with ID {row.get('id')} not found.")

        for col_idx, h in enumerate(headers, start=1):
            ws.cell(row=row_idx, column=col_idx).value = _value_to_cell(row.get(h))

        self._save(wb)
        logger.debug("Updated row %s in %s", row.get("id"), table)
        return row

    def delete(self, table: str, record_id: str) -> Dict[str, str]:
        _check_table(table)
        wb = self._open()
        ws = self._sheet(wb, table)
        headers = self._headers(ws)

        row_idx = self._find_row(ws, headers, record_id)
        if row_idx == -1:
            raise NotFoundError(f"Row with ID {record_id} not found for deletion.")

        ws.delete_rows(row_idx)
        self._save(wb)
        logger.debug("Deleted row %s from %s", record_id, table)
        return {"id": record_id}


# ======================================================
# IN-MEMORY (MOCK) STORE
# ======================================================

class MemoryStore:

    def __init__(self, seed: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        seed = seed or {}
        self._tables = {
            table: [copy.deepcopy(r) for r in seed.get(table, [])]
            for table in TABLES
        }

    @classmethod
    def with_sample_data(cls) -> "MemoryStore":
        return cls(SAMPLE_DATA)

    def read_all(self, table: str) -> List[Dict[str, Any]]:
        _check_table(table)
        return [copy.deepcopy(r) for r in self._tables[table]]

    def append(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        _check_table(table)
        self._tables[table].append(copy.deepcopy(row))
        return row

    def _index(self, table: str, record_id: str) -> int:
        for i, r in enumerate(self._tables[table]):
            if str(r.get("id")) == str(record_id):
                return i
        return -1

    def update(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        _check_table(table)
        idx = self._index(table, row.get("id"))
        if idx == -1:
            raise NotFoundError(f"Row with ID {row.get('id')} not found.")
        self._tables[table][idx] = copy.deepcopy(row)
        return row

    def delete(self, table: str, record_id: str) -> Dict[str, str]:
        _check_table(table)
        idx = self._index(table, record_id)
        if idx == -1:
            raise NotFoundError(f"Row with ID {record_id} not found for deletion.")
        del self._tables[table][idx]
        return {"id": record_id}


# ======================================================
# FACTORY
# ======================================================

def open_store(settings):
    """
    Builds the store selected in settings.backend ("workbook" | "memory").
    The "http" backend has no local store: the shim runs remotely.
    """
    if settings.backend == "memory":
        logger.info("Using in-memory store with sample data")
        return MemoryStore.with_sample_data()

    if settings.backend == "workbook":
        logger.info("Using workbook store %s", settings.workbook_path)
        return WorkbookStore(settings.workbook_path)

    raise ValueError(f"Backend '{settings.backend}' has no local store")


SAMPLE_DATA = {
    PRODUCTS: [
        {"id": "p1", "name": "Basic", "speed": 25, "price": 999,
         "description": "Browsing, email and social media for one or two devices."},
        {"id": "p2", "name": "Family", "speed": 50, "price": 1499,
         "description": "HD streaming and video calls for the whole household."},
        {"id": "p3", "name": "Gamer", "speed": 100, "price": 1999,
         "description": "Low-latency fiber for gaming and large downloads."},
    ],
    USERS: [
        {"id": "u1", "name": "Juan Dela Cruz", "email": "juan@example.com",
         "address": "123 Rizal St., Quezon City", "planId": "p1",
         "status": "active", "joinDate": "2023-01-15"},
        {"id": "u2", "name": "Maria Clara", "email": "maria@example.com",
         "address": "45 Mabini Ave., Manila", "planId": "p2",
         "status": "active", "joinDate": "2023-03-02"},
        {"id": "u3", "name": "Jose Rizal", "email": "jose@example.com",
         "address": "", "planId": "p3",
         "status": "inactive", "joinDate": "2022-11-20"},
        {"id": "u4", "name": "Andres Bonifacio", "email": "andres@example.com",
         "address": "", "planId": None,
         "status": "pending", "joinDate": "2024-02-28"},
    ],
    PAYMENTS: [
        {"id": "pay1", "userId": "u1", "amount": 999, "date": "2024-05-15", "method": "Cash"},
        {"id": "pay2", "userId": "u2", "amount": 1499, "date": "2024-05-02", "method": "GCash"},
    ],
}
