"""Ingestion driver + aggregation — files in, recipient groups out."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from pathlib import Path

import pandas as pd

from workday_feedback.errors import ReadError
from workday_feedback.io import iter_sources, read_rows
from workday_feedback.models import Feedback, IngestReport
from workday_feedback.normalize import normalize_rows

logger = logging.getLogger(__name__)

Groups = dict[str, list[Feedback]]

# ── Ingestion ────────────────────────────────────────────────────


def read_feedback_file(path: Path, *, report: IngestReport | None = None) -> list[Feedback]:
    """Read every feedback record from one spreadsheet.

    Raises
    ------
    ReadError
        If the workbook cannot be opened or decoded. Records read before
        the failure are discarded along with the file.
    """
    logger.info("Reading %s", path)
    return list(normalize_rows(read_rows(path), source=Path(path).name, report=report))


def collect_feedback(path: Path, *, report: IngestReport | None = None) -> list[Feedback]:
    """Read all spreadsheets named by *path*, concatenated in source order.

    A file that fails to read is logged and skipped; the rest still load.
    ``InputNotFound`` propagates.
    """
    records: list[Feedback] = []
    for source in iter_sources(Path(path)):
        try:
            file_records = read_feedback_file(source, report=report)
        except ReadError as exc:
            logger.error("%s", exc)
            if report is not None:
                report.files_failed += 1
                report.warnings.append(str(exc))
            continue
        if report is not None:
            report.files_read += 1
        records.extend(file_records)
    return records


# ── Aggregation ──────────────────────────────────────────────────


def group_by_recipient(
    records: Iterable[Feedback],
    since: date,
    *,
    skip_empty: bool = False,
) -> Groups:
    """Group *records* by recipient, keeping only those dated on/after *since*.

    Recipients come out in ascending string order and each list keeps
    ingestion order. A recipient whose records were all filtered out maps
    to an empty list unless *skip_empty* is set.
    """
    items = list(records)
    if not items:
        return {}

    frame = pd.DataFrame(
        {
            "recipient": [r.recipient for r in items],
            "date": [r.date for r in items],
            "position": range(len(items)),
        }
    )
    frame["keep"] = frame["date"] >= since

    recipients = sorted(frame["recipient"].unique().tolist())
    groups: Groups = {name: [] for name in recipients}

    kept = frame[frame["keep"]].sort_values(["recipient", "position"], kind="stable")
    for name, position in zip(kept["recipient"], kept["position"]):
        groups[name].append(items[int(position)])

    if skip_empty:
        groups = {name: group for name, group in groups.items() if group}
    return groups
