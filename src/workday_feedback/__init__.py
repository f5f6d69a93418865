"""workday-feedback — Turn peer feedback spreadsheet exports into a Markdown report."""

__version__ = "0.1.0"

SPREADSHEET_SUFFIXES: tuple[str, ...] = (".xlsx", ".xlsm", ".xls")

HEADER_TOLERANCE = 2
"""Leading non-data rows per file that are skipped without a warning."""
