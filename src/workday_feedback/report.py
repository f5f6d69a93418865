"""Markdown report writer — produces the peer feedback document."""

from __future__ import annotations

import contextlib
import tempfile
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from pathlib import Path
from typing import TextIO

from workday_feedback.errors import OutputError
from workday_feedback.models import Feedback

TITLE = "Peer feedback"
LOCK = " 🔒"
DATE_FMT = "%Y-%m-%d"
GENERATED_FMT = "%Y-%m-%d %H:%M:%S"

# ── Helpers ──────────────────────────────────────────────────────


def markdown_quote(text: str | None) -> str:
    """Prefix every line of *text* with ``> ``; None gives an empty string."""
    if text is None:
        return ""
    return "> " + text.strip().replace("\n", "\n> ")


def _heading(record: Feedback) -> str:
    line = f"### {record.giver}, {record.date.strftime(DATE_FMT)}"
    return line + LOCK if record.confidential else line


def _write_group(out: TextIO, recipient: str, records: Sequence[Feedback]) -> None:
    out.write(f"## {recipient}\n\n")

    giver: str | None = None
    on: date | None = None
    for record in records:
        if record.giver != giver or record.date != on:
            giver, on = record.giver, record.date
            out.write(_heading(record) + "\n\n")
        out.write(f"{record.question}\n")
        out.write(markdown_quote(record.response) + "\n")
        out.write("\n")


# ── Public API ───────────────────────────────────────────────────


def render_markdown(
    groups: Mapping[str, Sequence[Feedback]],
    out: TextIO,
    *,
    generated_at: datetime,
) -> None:
    """Write the whole report for *groups* to *out* in one pass."""
    out.write(f"# {TITLE}\n\n")
    out.write(f"Generated on {generated_at.strftime(GENERATED_FMT)}\n\n")
    for recipient, records in groups.items():
        _write_group(out, recipient, records)


def write_markdown(
    groups: Mapping[str, Sequence[Feedback]],
    *,
    output: Path | None = None,
    generated_at: datetime | None = None,
) -> Path:
    """Write the report and return its path.

    Without *output* a fresh temporary ``.md`` file is created and kept.
    With *output* the file is written next to it and moved into place.
    """
    if generated_at is None:
        generated_at = datetime.now()

    if output is None:
        temp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", suffix=".md", prefix="peer-feedback-", delete=False
            ) as fh:
                temp_name = fh.name
                render_markdown(groups, fh, generated_at=generated_at)
        except OSError as exc:
            if temp_name is not None:
                with contextlib.suppress(OSError):
                    Path(temp_name).unlink()
            raise OutputError(None, str(exc)) from exc
        return Path(temp_name)

    output = Path(output)
    tmp_path = output.with_suffix(output.suffix + ".tmp")
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8", newline="\n") as fh:
            render_markdown(groups, fh, generated_at=generated_at)
        tmp_path.replace(output)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise OutputError(output, str(exc)) from exc
    return output
