"""Error taxonomy for the feedback converter."""

from __future__ import annotations

from pathlib import Path


class FeedbackError(Exception):
    """Base class for every error raised by workday_feedback."""


class InputNotFound(FeedbackError, FileNotFoundError):
    """The ``--file`` path does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        super().__init__(f"Input not found: {self.path}")


class ReadError(FeedbackError):
    """The spreadsheet decoder failed to open or advance a file."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = Path(path)
        self.detail = detail
        super().__init__(f"Could not read {self.path.name}: {detail}")


class RowError(FeedbackError, ValueError):
    """A single row could not be turned into a feedback record."""

    def __init__(self, message: str, *, line: int = 0) -> None:
        self.line = line
        super().__init__(message)


class SchemaMismatch(RowError):
    """A row matches neither the wide nor the narrow layout."""


class ActionUnparsed(RowError):
    """A narrow row's action text is not a ``Feedback Given`` entry."""

    def __init__(self, action: str, *, line: int = 0) -> None:
        self.action = action
        super().__init__(f"Unparseable action: {action!r}", line=line)


class OutputError(FeedbackError, OSError):
    """Writing the Markdown report failed."""

    def __init__(self, path: Path | None, detail: str) -> None:
        self.path = path
        self.detail = detail
        target = str(path) if path is not None else "temporary file"
        super().__init__(f"Could not write {target}: {detail}")
