# lead_intake/services/row_store.py
from __future__ import annotations

import asyncio
import threading
from typing import Any, Dict, List, Optional, Sequence

import gspread
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials

from lead_intake.core.config import Settings
from lead_intake.core.exceptions import ConfigurationError, DependencyError
from lead_intake.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

Row = List[Any]


class RowStore:
    """
    Append-only tabular store addressed by A1 ranges ("Leads!A:M").

    Subclasses implement the blocking ``_get_rows``/``_append_row``; the async
    wrappers run them in a worker thread, bound them with ``timeout`` and
    turn any backend failure into DependencyError.
    """

    backend = "abstract"

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    def _get_rows(self, range_name: str) -> List[Row]:
        raise NotImplementedError

    def _append_row(self, range_name: str, row: Sequence[Any]) -> None:
        raise NotImplementedError

    def _backend_errors(self) -> tuple:
        return (OSError,)

    async def _call(self, op: str, range_name: str, fn, *args):
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn, range_name, *args), self.timeout)
        except asyncio.TimeoutError as e:
            logger.error("row_store.timeout", op=op, range=range_name, timeout=self.timeout)
            raise DependencyError(
                f"Row store {op} timed out",
                code=f"row_store_{op}_timeout",
                details={"range": range_name},
            ) from e
        except self._backend_errors() as e:
            logger.error("row_store.failed", op=op, range=range_name, error=str(e), exc_info=True)
            raise DependencyError(
                f"Row store {op} failed",
                code=f"row_store_{op}_failed",
                details={"range": range_name, "error": str(e)[:200]},
            ) from e

    async def get_rows(self, range_name: str) -> List[Row]:
        return await self._call("read", range_name, self._get_rows)

    async def append_row(self, range_name: str, row: Sequence[Any]) -> None:
        await self._call("append", range_name, self._append_row, list(row))


class InMemoryRowStore(RowStore):
    """Process-local store keyed by sheet name; used for development and tests."""

    backend = "memory"

    def __init__(self, tables: Optional[Dict[str, List[Row]]] = None, timeout: float = 10.0):
        super().__init__(timeout=timeout)
        self._tables: Dict[str, List[Row]] = {k: [list(r) for r in v] for k, v in (tables or {}).items()}
        self._lock = threading.Lock()

    @staticmethod
    def sheet_name(range_name: str) -> str:
        return range_name.split("!", 1)[0]

    def _get_rows(self, range_name: str) -> List[Row]:
        with self._lock:
            return [list(r) for r in self._tables.get(self.sheet_name(range_name), [])]

    def _append_row(self, range_name: str, row: Sequence[Any]) -> None:
        with self._lock:
            self._tables.setdefault(self.sheet_name(range_name), []).append(list(row))

    def rows(self, sheet: str) -> List[Row]:
        """Snapshot of a sheet's rows, bypassing the async read path."""
        with self._lock:
            return [list(r) for r in self._tables.get(self.sheet_name(sheet), [])]


class SheetsRowStore(RowStore):
    backend = "sheets"

    def __init__(self, spreadsheet_id: str, client_email: str, private_key: str, timeout: float = 10.0):
        super().__init__(timeout=timeout)
        self.spreadsheet_id = spreadsheet_id
        self._client_email = client_email
        self._private_key = private_key
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._open_lock = threading.Lock()

    @classmethod
    def from_settings(cls, s: Settings) -> "SheetsRowStore":
        missing = s.missing_sheets_settings()
        if missing:
            logger.error("row_store.env_missing", missing=missing)
            raise ConfigurationError(
                "Missing Google Sheets configuration",
                details={"missing": missing},
            )
        return cls(
            spreadsheet_id=s.google_sheets_id,
            client_email=s.google_service_account_email,
            private_key=s.private_key(),
            timeout=s.row_store_timeout_seconds,
        )

    def _backend_errors(self) -> tuple:
        # ValueError covers a private key that passes the PEM check but fails to load.
        return (gspread.exceptions.GSpreadException, GoogleAuthError, OSError, ValueError)

    def _open(self) -> gspread.Spreadsheet:
        with self._open_lock:
            if self._spreadsheet is None:
                creds = Credentials.from_service_account_info(
                    {
                        "type": "service_account",
                        "client_email": self._client_email,
                        "private_key": self._private_key,
                        "token_uri": TOKEN_URI,
                    },
                    scopes=SCOPES,
                )
                self._spreadsheet = gspread.authorize(creds).open_by_key(self.spreadsheet_id)
                logger.info("row_store.opened", spreadsheet_id=self.spreadsheet_id)
            return self._spreadsheet

    def _get_rows(self, range_name: str) -> List[Row]:
        res = self._open().values_get(range_name)
        return res.get("values", [])

    def _append_row(self, range_name: str, row: Sequence[Any]) -> None:
        self._open().values_append(
            range_name,
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            body={"values": [list(row)]},
        )


def build_row_store(s: Settings) -> RowStore:
    if s.row_store_backend == "memory":
        logger.warning("row_store.memory_backend", environment=s.environment)
        return InMemoryRowStore(timeout=s.row_store_timeout_seconds)
    return SheetsRowStore.from_settings(s)
