"""Tolerant CSV/XLSX reading shared by lead import and call report parsing"""
import io
import re
from datetime import datetime
from typing import Optional, Iterable, Dict
import pandas as pd
from dispatchdesk.core.exceptions import SpreadsheetError

EXCEL_SUFFIXES = (".xlsx", ".xlsm", ".xls")
_HEADER_JUNK = re.compile(r"[^a-z0-9]+")
_CLOCK = re.compile(r"^(?:(\d+):)?(\d{1,2}):(\d{2})$")


def normalize_header(header) -> str:
    return _HEADER_JUNK.sub("_", str(header).strip().lower()).strip("_")


def _looks_like_excel(content: bytes, filename: Optional[str]) -> bool:
    if filename and filename.lower().endswith(EXCEL_SUFFIXES):
        return True
    # xlsx files are zip archives
    return content[:2] == b"PK"


def read_table(content: bytes, filename: Optional[str] = None) -> pd.DataFrame:
    if not content:
        raise SpreadsheetError("File is empty")
    try:
        if _looks_like_excel(content, filename):
            df = pd.read_excel(io.BytesIO(content), dtype=str).fillna("")
        else:
            df = pd.read_csv(
                io.BytesIO(content),
                dtype=str,
                keep_default_na=False,
                encoding="utf-8-sig",
                skipinitialspace=True,
            )
    except Exception as e:
        raise SpreadsheetError(f"Could not read spreadsheet {filename or ''}: {e}") from e
    df.columns = [normalize_header(c) for c in df.columns]
    return df


def resolve_columns(columns: Iterable[str], aliases: Dict[str, tuple]) -> Dict[str, Optional[str]]:
    """Map each logical field to the first header matching one of its aliases."""
    available = list(columns)
    mapping = {}
    for field, names in aliases.items():
        mapping[field] = next((name for name in names if name in available), None)
    return mapping


def cell(row: dict, column: Optional[str]) -> Optional[str]:
    if column is None:
        return None
    value = row.get(column)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_int(value) -> Optional[int]:
    if value is None or str(value).strip() == "":
        return None
    try:
        return int(float(str(value).replace(",", "").strip()))
    except (ValueError, OverflowError):
        return None


def parse_duration(value) -> int:
    """Seconds from "65", "65.4" or "00:01:05"."""
    if value is None:
        return 0
    text = str(value).strip()
    match = _CLOCK.match(text)
    if match:
        hours, minutes, seconds = match.groups()
        return int(hours or 0) * 3600 + int(minutes) * 60 + int(seconds)
    return max(parse_int(text) or 0, 0)


def parse_timestamp(value) -> Optional[datetime]:
    """UTC datetime, or None when the value is not a recognisable date."""
    if value is None or str(value).strip() == "":
        return None
    ts = pd.to_datetime(str(value).strip(), utc=True, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.to_pydatetime()
