"""Session-wide test setup."""

from podarchiver.logging_config import setup_logging


def pytest_configure() -> None:
    """Route package logs through the console formatter at DEBUG."""
    setup_logging(
        log_format_type="human", app_log_level_name="DEBUG", include_stacktrace=True
    )
