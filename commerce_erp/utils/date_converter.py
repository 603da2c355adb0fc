# commerce_erp/utils/date_converter.py

from datetime import date, datetime
from typing import Optional, Union
import jdatetime

from commerce_erp.constants import DATE_FORMAT

GREGORIAN = "gregorian"
JALALI = "jalali"


def to_shamsi_str(gregorian_date: Optional[date]) -> str:
    """Converts a gregorian date to a Jalali (Shamsi) string in YYYY/MM/DD format."""
    if gregorian_date is None:
        return "-"
    if not isinstance(gregorian_date, (date, datetime)):
        return str(gregorian_date)

    try:
        shamsi_date = jdatetime.date.fromgregorian(date=gregorian_date)
        return shamsi_date.strftime("%Y/%m/%d")
    except (ValueError, TypeError):
        return "invalid date"


def to_gregorian_date(shamsi_date_str: str) -> Optional[date]:
    """Converts a Jalali YYYY/MM/DD string to a gregorian date."""
    if not isinstance(shamsi_date_str, str) or not shamsi_date_str:
        return None

    try:
        parts = list(map(int, shamsi_date_str.split('/')))
        if len(parts) != 3: return None
        j_date = jdatetime.date(parts[0], parts[1], parts[2])
        return j_date.togregorian()
    except (ValueError, TypeError, IndexError):
        return None


def parse_iso_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Accepts a date, a datetime or an ISO string (date part only) and returns a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise ValueError(f"Invalid ISO date: '{value}'")
    raise ValueError(f"Unsupported date value: {value!r}")


def format_display_date(value: Optional[date], calendar: str = GREGORIAN) -> str:
    if value is None:
        return "-"
    if calendar == JALALI:
        return to_shamsi_str(value)
    return value.strftime(DATE_FORMAT)
