"""Schema detection + row normalisation — raw worksheet rows to Feedback."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from enum import Enum

from workday_feedback import HEADER_TOLERANCE
from workday_feedback.errors import ActionUnparsed, SchemaMismatch
from workday_feedback.models import CellKind, Feedback, IngestReport, RawRow, parse_confidential

logger = logging.getLogger(__name__)

# ── Layouts ──────────────────────────────────────────────────────


class Schema(str, Enum):
    WIDE = "wide"
    NARROW = "narrow"


WIDE_FIELD_COUNT = 10
WIDE_RECIPIENT, WIDE_DATE, WIDE_GIVER = 0, 2, 5
WIDE_QUESTION, WIDE_RESPONSE, WIDE_CONFIDENTIAL = 7, 8, 9

NARROW_FIELD_COUNT = 6
NARROW_ACTION, NARROW_DATE = 0, 1
NARROW_QUESTION, NARROW_RESPONSE, NARROW_CONFIDENTIAL = 3, 4, 5

_NARROW_TEXT_COLUMNS = (NARROW_ACTION, NARROW_QUESTION, NARROW_RESPONSE, NARROW_CONFIDENTIAL)

# " from " and " on " must not appear inside the names.
_ACTION_RE = re.compile(
    r"Feedback Given: on (?P<receiver>.+?) from (?P<giver>.+?) on .*",
    re.DOTALL,
)


def detect_schema(row: RawRow) -> Schema | None:
    """Return the layout *row* belongs to, or None for header/garbage rows."""
    if row.field_count == WIDE_FIELD_COUNT and row.kind(WIDE_DATE) is CellKind.DATE:
        return Schema.WIDE
    if (
        row.field_count == NARROW_FIELD_COUNT
        and row.kind(NARROW_DATE) is CellKind.DATE
        and all(row.kind(idx) is CellKind.TEXT for idx in _NARROW_TEXT_COLUMNS)
    ):
        return Schema.NARROW
    return None


def parse_action(action: str, *, line: int = 0) -> tuple[str, str]:
    """Split ``Feedback Given: on <receiver> from <giver> on ...``.

    Returns ``(receiver, giver)``; raises ActionUnparsed on anything else.
    """
    match = _ACTION_RE.fullmatch(action)
    if match is None:
        raise ActionUnparsed(action, line=line)
    return match.group("receiver"), match.group("giver")


def normalize_row(row: RawRow, schema: Schema) -> Feedback:
    """Build a Feedback record from a row already matched to *schema*."""
    if schema is Schema.WIDE:
        recipient = row.text(WIDE_RECIPIENT)
        giver = row.text(WIDE_GIVER)
        when = row.date(WIDE_DATE)
        question = row.text(WIDE_QUESTION)
        response = row.optional_text(WIDE_RESPONSE)
        confidential = parse_confidential(row.optional_text(WIDE_CONFIDENTIAL))
    else:
        recipient, giver = parse_action(row.text(NARROW_ACTION), line=row.line)
        when = row.date(NARROW_DATE)
        question = row.text(NARROW_QUESTION)
        response = row.optional_text(NARROW_RESPONSE)
        confidential = parse_confidential(row.text(NARROW_CONFIDENTIAL))

    if not recipient.strip() or not giver.strip():
        raise SchemaMismatch(
            f"{schema.value} row has an empty recipient or giver", line=row.line
        )
    return Feedback(
        recipient=recipient,
        giver=giver,
        date=when,
        question=question,
        response=response,
        confidential=confidential,
    )


# ── Per-file stream ──────────────────────────────────────────────


def _mismatch_detail(row: RawRow) -> str:
    if row.field_count == NARROW_FIELD_COUNT:
        kinds = ", ".join(row.kind(idx).value for idx in range(row.field_count))
        return f"expected text,date,*,text,text,text; got {kinds}"
    return row.describe()


def normalize_rows(
    rows: Iterable[RawRow],
    *,
    source: str = "<rows>",
    report: IngestReport | None = None,
) -> Iterator[Feedback]:
    """Yield a Feedback record for every data row of one file, in order.

    The first ``HEADER_TOLERANCE`` rows matching neither layout are taken as
    headers and dropped quietly. Later mismatches and unparseable actions
    are logged at WARNING and skipped.
    """
    headers_left = HEADER_TOLERANCE
    for row in rows:
        if report is not None:
            report.rows_in += 1

        schema = detect_schema(row)
        if schema is None:
            headers_left -= 1
            if headers_left >= 0:
                if report is not None:
                    report.header_rows += 1
                continue
            message = (
                f"{source}: unexpected bad schema row at line {row.line}: "
                f"{_mismatch_detail(row)}"
            )
            logger.warning(message)
            if report is not None:
                report.skipped_rows += 1
                report.warnings.append(message)
            continue

        try:
            record = normalize_row(row, schema)
        except ActionUnparsed as exc:
            message = (
                f"{source}: cannot parse action at line {row.line}: {exc.action!r}"
            )
        except SchemaMismatch as exc:
            message = f"{source}: skipped line {row.line}: {exc}"
        else:
            if report is not None:
                report.records_out += 1
            yield record
            continue

        logger.warning(message)
        if report is not None:
            report.skipped_rows += 1
            report.warnings.append(message)
