"""Allow ``python -m workday_feedback``."""

from workday_feedback import cli

if __name__ == "__main__":
    cli.app()
