"""I/O helpers — enumerate input files, stream worksheet rows."""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterator
from pathlib import Path
from xml.etree.ElementTree import ParseError
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from workday_feedback import SPREADSHEET_SUFFIXES
from workday_feedback.errors import InputNotFound, ReadError
from workday_feedback.models import RawRow

logger = logging.getLogger(__name__)

_OPENPYXL_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")
_OPENPYXL_ERRORS = (
    InvalidFileException, BadZipFile, ParseError, KeyError, ValueError, OSError,
)

# ── Sources ──────────────────────────────────────────────────────


def iter_sources(path: Path) -> list[Path]:
    """Return the spreadsheet files named by *path*.

    A directory yields every spreadsheet directly inside it, sorted by name;
    anything else yields ``[path]``.

    Raises
    ------
    InputNotFound
        If *path* does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise InputNotFound(path)
    if not path.is_dir():
        return [path]
    return sorted(
        (
            entry
            for entry in path.iterdir()
            if entry.is_file() and entry.name.lower().endswith(SPREADSHEET_SUFFIXES)
        ),
        key=lambda entry: entry.name,
    )


# ── Rows ─────────────────────────────────────────────────────────


def read_rows(path: Path) -> Iterator[RawRow]:
    """Lazily yield every row of the first worksheet in *path*.

    Header rows are not filtered out. Dates come back as ``datetime``
    values, text as ``str`` and empty cells as ``None``.

    Raises
    ------
    ReadError
        If the file cannot be opened or decoded.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in _OPENPYXL_SUFFIXES:
        return _read_openpyxl(path)
    if suffix == ".xls":
        return _read_xlrd(path)
    raise ReadError(path, f"unsupported file type {suffix!r}; use .xlsx or .xls")


def _read_openpyxl(path: Path) -> Iterator[RawRow]:
    try:
        wb = load_workbook(path, read_only=True, data_only=True)
    except _OPENPYXL_ERRORS as exc:
        raise ReadError(path, str(exc) or type(exc).__name__) from exc

    try:
        try:
            ws = wb.worksheets[0]
            if ws.max_column is None:
                # Unsized sheets come back ragged; pad rows to the widest one.
                ws.calculate_dimension(force=True)
        except (_OPENPYXL_ERRORS + (IndexError,)) as exc:
            raise ReadError(path, str(exc) or type(exc).__name__) from exc
        logger.debug("%s: reading sheet %r", path.name, ws.title)
        line = 0
        rows = ws.iter_rows(values_only=True)
        while True:
            try:
                values = next(rows)
            except StopIteration:
                break
            except _OPENPYXL_ERRORS as exc:
                raise ReadError(path, f"line {line + 1}: {exc}") from exc
            line += 1
            yield RawRow(line=line, cells=tuple(values))
    finally:
        wb.close()


def _read_xlrd(path: Path) -> Iterator[RawRow]:
    try:
        import xlrd
        from xlrd.compdoc import CompDocError
    except ImportError as exc:
        raise ReadError(
            path,
            "reading .xls needs 'xlrd'. Either convert to .xlsx or add "
            "dependency: pip install xlrd",
        ) from exc

    xls_errors = (xlrd.XLRDError, CompDocError, struct.error, IndexError, OSError)
    try:
        book = xlrd.open_workbook(str(path), on_demand=True)
    except xls_errors as exc:
        raise ReadError(path, str(exc) or type(exc).__name__) from exc

    try:
        try:
            sheet = book.sheet_by_index(0)
        except xls_errors as exc:
            raise ReadError(path, str(exc) or type(exc).__name__) from exc
        for idx in range(sheet.nrows):
            cells = []
            for cell in sheet.row(idx):
                if cell.ctype == xlrd.XL_CELL_DATE:
                    try:
                        cells.append(xlrd.xldate.xldate_as_datetime(cell.value, book.datemode))
                    except xlrd.xldate.XLDateError as exc:
                        raise ReadError(path, f"line {idx + 1}: {exc}") from exc
                elif cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                    cells.append(None)
                else:
                    cells.append(cell.value)
            yield RawRow(line=idx + 1, cells=tuple(cells))
    finally:
        book.release_resources()
