"""Aggregation and multi-file ingestion tests."""

from __future__ import annotations

import logging
import zipfile
from datetime import date, datetime
from pathlib import Path

import pytest
from openpyxl import Workbook

from workday_feedback.errors import InputNotFound
from workday_feedback.models import Feedback, IngestReport
from workday_feedback.pipeline import collect_feedback, group_by_recipient, read_feedback_file

WIDE_HEADER = [
    "Recipient", "Status", "Date", "Type", "Template", "From", "Role",
    "Question", "Response", "Confidential",
]


def _fb(recipient: str, giver: str, when: date, question: str = "Q?") -> Feedback:
    return Feedback(recipient=recipient, giver=giver, date=when, question=question, response="R")


def _wide_row(recipient: str, giver: str, when: datetime, response: str = "Nice") -> list[object]:
    return [recipient, "", when, "", "", giver, "", "What went well?", response, "No"]


def _write_workbook(path: Path, rows: list[list[object]]) -> Path:
    wb = Workbook()
    ws = wb.active
    assert ws is not None
    for row in rows:
        ws.append(row)
    wb.save(path)
    return path


def _truncate_sheet_xml(path: Path) -> Path:
    with zipfile.ZipFile(path) as zf:
        entries = {name: zf.read(name) for name in zf.namelist()}
    sheet = entries["xl/worksheets/sheet1.xml"]
    entries["xl/worksheets/sheet1.xml"] = sheet[: len(sheet) // 2]
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return path


# ── group_by_recipient ───────────────────────────────────────────


def test_group_by_recipient_sorts_keys_and_keeps_ingestion_order() -> None:
    records = [
        _fb("Zoe", "Bob", date(2024, 7, 1), "first"),
        _fb("Adam", "Bob", date(2024, 7, 2)),
        _fb("Zoe", "Carl", date(2024, 6, 1), "second"),
        _fb("Zoe", "Bob", date(2024, 8, 1), "third"),
    ]

    groups = group_by_recipient(records, date(2024, 1, 1))

    assert list(groups) == ["Adam", "Zoe"]
    assert [r.question for r in groups["Zoe"]] == ["first", "second", "third"]


def test_group_by_recipient_uses_raw_string_order() -> None:
    records = [_fb(name, "Bob", date(2024, 7, 1)) for name in ["bob", "Bob", "alice", "Zed"]]

    groups = group_by_recipient(records, date(2024, 1, 1))

    assert list(groups) == ["Bob", "Zed", "alice", "bob"]


def test_group_by_recipient_filters_strictly_before_cutoff() -> None:
    records = [
        _fb("Eve", "Frank", date(2024, 1, 15), "january"),
        _fb("Eve", "Frank", date(2024, 6, 1), "on cutoff"),
        _fb("Eve", "Frank", date(2024, 7, 15), "july"),
    ]

    groups = group_by_recipient(records, date(2024, 6, 1))

    assert [r.question for r in groups["Eve"]] == ["on cutoff", "july"]


def test_group_by_recipient_keeps_empty_groups_by_default() -> None:
    records = [
        _fb("Old", "Frank", date(2023, 1, 1)),
        _fb("New", "Frank", date(2024, 7, 1)),
    ]

    groups = group_by_recipient(records, date(2024, 1, 1))

    assert groups == {"New": [records[1]], "Old": []}


def test_group_by_recipient_skip_empty() -> None:
    records = [
        _fb("Old", "Frank", date(2023, 1, 1)),
        _fb("New", "Frank", date(2024, 7, 1)),
    ]

    groups = group_by_recipient(records, date(2024, 1, 1), skip_empty=True)

    assert list(groups) == ["New"]


def test_group_by_recipient_empty_input() -> None:
    assert group_by_recipient([], date(2024, 1, 1)) == {}


def test_group_by_recipient_is_monotonic_in_cutoff() -> None:
    records = [
        _fb("Eve", "Frank", date(2024, month, 1)) for month in range(1, 13)
    ] + [_fb("Ann", "Frank", date(2024, 3, 3))]

    previous: set[int] | None = None
    for month in range(1, 13):
        groups = group_by_recipient(records, date(2024, month, 1))
        kept = {id(r) for group in groups.values() for r in group}
        if previous is not None:
            assert kept <= previous
        previous = kept


def test_every_survivor_appears_under_its_recipient_once() -> None:
    records = [
        _fb("Eve", "Frank", date(2024, 6, 1)),
        _fb("Ann", "Frank", date(2024, 6, 2)),
        _fb("Eve", "Gus", date(2024, 6, 3)),
    ]

    groups = group_by_recipient(records, date(2024, 1, 1))

    flattened = [r for group in groups.values() for r in group]
    assert sorted(map(id, flattened)) == sorted(map(id, records))
    assert all(r.recipient == name for name, group in groups.items() for r in group)


# ── collect_feedback ─────────────────────────────────────────────


def test_read_feedback_file_skips_headers(tmp_path: Path) -> None:
    path = _write_workbook(
        tmp_path / "export.xlsx",
        [
            ["Peer feedback export"],
            WIDE_HEADER,
            _wide_row("Alice", "Bob", datetime(2024, 3, 10)),
        ],
    )

    records = read_feedback_file(path)

    assert len(records) == 1
    assert records[0].recipient == "Alice"
    assert records[0].date == date(2024, 3, 10)


def test_collect_feedback_concatenates_files_in_name_order(tmp_path: Path) -> None:
    _write_workbook(
        tmp_path / "b.xlsx",
        [WIDE_HEADER, _wide_row("Alice", "Second", datetime(2024, 3, 10))],
    )
    _write_workbook(
        tmp_path / "a.xlsx",
        [WIDE_HEADER, _wide_row("Alice", "First", datetime(2024, 3, 10))],
    )
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    report = IngestReport()

    records = collect_feedback(tmp_path, report=report)

    assert [r.giver for r in records] == ["First", "Second"]
    assert report.files_read == 2
    assert report.header_rows == 2
    assert report.records_out == 2


def test_collect_feedback_reads_narrow_layout(tmp_path: Path) -> None:
    path = _write_workbook(
        tmp_path / "narrow.xlsx",
        [
            ["Action", "Date", "Type", "Question", "Response", "Confidential"],
            [
                "Feedback Given: on Carol from Dave on 2024-05-01",
                datetime(2024, 5, 1),
                "",
                "What could improve?",
                "Communication",
                "No",
            ],
        ],
    )

    records = collect_feedback(path)

    assert len(records) == 1
    assert (records[0].recipient, records[0].giver) == ("Carol", "Dave")


def test_collect_feedback_continues_after_unreadable_file(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    (tmp_path / "a_broken.xlsx").write_bytes(b"not a workbook")
    _write_workbook(
        tmp_path / "b_good.xlsx",
        [WIDE_HEADER, _wide_row("Alice", "Bob", datetime(2024, 3, 10))],
    )
    report = IngestReport()

    with caplog.at_level(logging.ERROR):
        records = collect_feedback(tmp_path, report=report)

    assert [r.recipient for r in records] == ["Alice"]
    assert report.files_failed == 1
    assert report.files_read == 1
    assert any("a_broken.xlsx" in rec.getMessage() for rec in caplog.records)


def test_collect_feedback_missing_input_raises(tmp_path: Path) -> None:
    with pytest.raises(InputNotFound):
        collect_feedback(tmp_path / "missing")


def test_collect_feedback_continues_after_truncated_sheet(tmp_path: Path) -> None:
    rows = [WIDE_HEADER] + [
        _wide_row(f"Person {i}", "Bob", datetime(2024, 3, 10)) for i in range(50)
    ]
    _truncate_sheet_xml(_write_workbook(tmp_path / "a_bad.xlsx", rows))
    _write_workbook(
        tmp_path / "b_good.xlsx",
        [WIDE_HEADER, _wide_row("Alice", "Bob", datetime(2024, 3, 10))],
    )
    report = IngestReport()

    records = collect_feedback(tmp_path, report=report)

    assert [r.recipient for r in records] == ["Alice"]
    assert report.files_failed == 1
    assert report.files_read == 1
