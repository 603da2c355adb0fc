# commerce_erp/presentation/api_envelope.py

"""
Request boundary: runs a manager call and wraps its outcome in the
{"success": ..., "result"/"message": ...} envelope with a status code.
"""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Tuple

from commerce_erp.business_logic.exceptions import NotFoundError, PreconditionFailed, ValidationError
from commerce_erp.business_logic.totals_calculator import DocumentTotals
from commerce_erp.utils.date_converter import GREGORIAN, JALALI, format_display_date
import logging

logger = logging.getLogger(__name__)

Envelope = Dict[str, Any]


def success_envelope(result: Any = None, calendar: str = GREGORIAN) -> Envelope:
    return {"success": True, "result": serialize(result, calendar)}


def failure_envelope(message: str, **extra: Any) -> Envelope:
    body = {"success": False, "message": message}
    body.update(extra)
    return body


def serialize(value: Any, calendar: str = GREGORIAN) -> Any:
    """
    Converts entities (dataclasses, including their child lists) to plain
    JSON-ready values. Money goes out as float, enums as their value, dates
    as ISO strings. With the jalali calendar each date field also gets a
    `<name>_display` companion.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, DocumentTotals):
        return {f.name: serialize(getattr(value, f.name), calendar) for f in fields(value)}
    if is_dataclass(value) and not isinstance(value, type):
        data = {}
        for f in fields(value):
            item = getattr(value, f.name)
            data[f.name] = serialize(item, calendar)
            if calendar == JALALI and isinstance(item, date):
                data[f"{f.name}_display"] = format_display_date(item, calendar)
        return data
    if isinstance(value, dict):
        return {str(k): serialize(v, calendar) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [serialize(v, calendar) for v in value]
    return str(value)


def handle_request(fn: Callable[..., Any], *args: Any, calendar: str = GREGORIAN,
                   **kwargs: Any) -> Tuple[int, Envelope]:
    """Calls `fn(*args, **kwargs)` and returns (status_code, envelope)."""
    try:
        result = fn(*args, **kwargs)
    except ValidationError as e:
        return 400, failure_envelope(str(e))
    except PreconditionFailed as e:
        return 400, failure_envelope(str(e), guard=e.guard)
    except NotFoundError as e:
        return 404, failure_envelope(str(e))
    except Exception as e:
        logger.error(f"Unhandled error in {getattr(fn, '__name__', fn)}: {e}", exc_info=True)
        return 500, failure_envelope("Internal server error")
    return 200, success_envelope(result, calendar)
