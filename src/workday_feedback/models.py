"""Data models used across the package."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from numbers import Integral
from typing import Any


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


def _to_name(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string")
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field_name} must not be empty")
    return stripped


def _to_calendar_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError("date must be a date or datetime")


def parse_confidential(value: str | None) -> bool:
    """Return True iff *value* reads ``yes`` in any case."""
    if value is None:
        return False
    return value.strip().casefold() == "yes"


# ── Spreadsheet rows ─────────────────────────────────────────────


class CellKind(str, Enum):
    TEXT = "text"
    DATE = "date"
    OTHER = "other"


@dataclass(frozen=True)
class RawRow:
    """One worksheet row exactly as the decoder produced it."""

    line: int
    cells: tuple[Any, ...]

    @property
    def field_count(self) -> int:
        return len(self.cells)

    def kind(self, index: int) -> CellKind:
        if index >= len(self.cells):
            return CellKind.OTHER
        value = self.cells[index]
        if isinstance(value, str):
            return CellKind.TEXT
        if isinstance(value, (datetime, date)):
            return CellKind.DATE
        return CellKind.OTHER

    def text(self, index: int) -> str:
        value = self.cells[index]
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    def optional_text(self, index: int) -> str | None:
        value = self.cells[index]
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)

    def date(self, index: int) -> date:
        value = self.cells[index]
        if not isinstance(value, (datetime, date)):
            raise TypeError(f"column {index} is not a date (got {type(value).__name__})")
        return _to_calendar_date(value)

    def describe(self) -> str:
        """Render every cell as ``value (type: kind)`` for diagnostics."""
        parts = []
        for idx, value in enumerate(self.cells):
            shown = "" if value is None else str(value)
            parts.append(f"{shown} (type: {self.kind(idx).value})")
        return ",".join(parts)


# ── Feedback ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Feedback:
    """One author's answer to one prompt about one recipient."""

    recipient: str
    giver: str
    date: date
    question: str = ""
    response: str | None = None
    confidential: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "recipient", _to_name(self.recipient, "recipient"))
        object.__setattr__(self, "giver", _to_name(self.giver, "giver"))
        object.__setattr__(self, "date", _to_calendar_date(self.date))
        if not isinstance(self.question, str):
            raise TypeError("question must be a string")
        if self.response is not None and not isinstance(self.response, str):
            raise TypeError("response must be a string or None")
        if not isinstance(self.confidential, bool):
            raise TypeError("confidential must be a bool")

    def to_dict(self) -> dict[str, Any]:
        return {
            "recipient": self.recipient,
            "giver": self.giver,
            "date": self.date.isoformat(),
            "question": self.question,
            "response": self.response,
            "confidential": self.confidential,
        }


@dataclass
class IngestReport:
    """Counters collected while reading a batch of feedback exports.

    Contract invariant: ``records_kept <= records_out``.
    """

    files_read: int = 0
    files_failed: int = 0
    rows_in: int = 0
    header_rows: int = 0
    skipped_rows: int = 0
    records_out: int = 0
    records_kept: int = 0
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.files_read = _to_non_negative_int(self.files_read, "files_read")
        self.files_failed = _to_non_negative_int(self.files_failed, "files_failed")
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.header_rows = _to_non_negative_int(self.header_rows, "header_rows")
        self.skipped_rows = _to_non_negative_int(self.skipped_rows, "skipped_rows")
        self.records_out = _to_non_negative_int(self.records_out, "records_out")
        self.records_kept = _to_non_negative_int(self.records_kept, "records_kept")
        self.warnings = _to_string_list(self.warnings, "warnings")
        if self.records_kept > self.records_out:
            raise ValueError("records_kept must be <= records_out")

    def to_dict(self) -> dict[str, Any]:
        return {
            "files_read": self.files_read,
            "files_failed": self.files_failed,
            "rows_in": self.rows_in,
            "header_rows": self.header_rows,
            "skipped_rows": self.skipped_rows,
            "records_out": self.records_out,
            "records_kept": self.records_kept,
            "warnings": list(self.warnings),
        }
