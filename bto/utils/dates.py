"""DD-MM-YYYY date literals used by the project records."""

from datetime import date, datetime

from bto.utils.constants import DATE_FORMAT


def parse_date(text: str) -> date:
    """Parse a DD-MM-YYYY literal; raises ValueError when malformed."""
    return datetime.strptime(text.strip(), DATE_FORMAT).date()


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)
