"""Shared helpers — cutoff dates, logging setup."""

from __future__ import annotations

import logging
from datetime import date

import pandas as pd
from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LOOKBACK_MONTHS = 6


def default_cutoff(today: date | None = None, *, months: int = DEFAULT_LOOKBACK_MONTHS) -> date:
    """Return *today* minus *months* calendar months (day clamped to month end)."""
    if today is None:
        today = date.today()
    return (pd.Timestamp(today) - pd.DateOffset(months=months)).date()


def configure_logging(console: Console, *, level: int = logging.INFO) -> logging.Logger:
    """Route ``workday_feedback`` log records through a rich handler."""
    pkg_logger = logging.getLogger("workday_feedback")
    pkg_logger.setLevel(level)
    for handler in list(pkg_logger.handlers):
        if isinstance(handler, RichHandler):
            pkg_logger.removeHandler(handler)
    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setLevel(level)
    pkg_logger.addHandler(handler)
    return pkg_logger
