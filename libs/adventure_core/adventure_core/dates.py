from datetime import date, datetime
from typing import Optional

# Fixed English abbreviations so output does not depend on the process locale
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def format_display_date(value: datetime) -> str:
    """Format a timestamp as e.g. 'Mar 15, 2024'."""
    return f"{MONTH_ABBR[value.month - 1]} {value.day}, {value.year}"


def parse_display_date(text: str) -> Optional[date]:
    """Inverse of format_display_date. Returns None for anything unrecognised."""
    try:
        month_part, day_part, year_part = text.replace(",", " ").split()
        return date(int(year_part), MONTH_ABBR.index(month_part) + 1, int(day_part))
    except (AttributeError, ValueError):
        return None
