import calendar
import math
import re
from datetime import date, datetime, timezone

from .errors import ValidationError

PIN_LENGTH = 4


def parse_ymd(value: str | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value = str(value or "").strip()
    if not value:
        raise ValidationError("Select a date")
    if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
        raise ValidationError("Invalid date format")
    year, month, day = map(int, value.split("-"))
    if not (1 <= month <= 12):
        raise ValidationError("Invalid month")
    last_day = calendar.monthrange(year, month)[1]
    if not (1 <= day <= last_day):
        raise ValidationError("Invalid day")
    return date(year, month, day)


def parse_timestamp(value: str | datetime | None) -> datetime:
    """Parse an ISO datetime from the store; naive values are taken as UTC."""
    if value is None or value == "":
        return datetime.now(timezone.utc)
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValidationError(f"Invalid timestamp: {value}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_month(value: str) -> tuple[int, int]:
    period = (value or "").strip()
    if not re.fullmatch(r"\d{4}-\d{2}", period):
        raise ValidationError("Invalid month format. Use YYYY-MM")
    year, month = map(int, period.split("-"))
    if not (1 <= month <= 12):
        raise ValidationError("Invalid month")
    return year, month


def _as_money(value) -> float:
    if isinstance(value, bool):
        raise ValidationError("Enter valid amount")
    if isinstance(value, str):
        value = value.strip()
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Enter valid amount") from exc
    if math.isnan(amount) or math.isinf(amount):
        raise ValidationError("Enter valid amount")
    return round(amount, 2)


def parse_amount(value) -> float:
    """Amount of a single deposit or spend: strictly positive."""
    amount = _as_money(value)
    if amount <= 0:
        raise ValidationError("Enter valid amount")
    return amount


def parse_non_negative(value, message: str = "Values cannot be negative") -> float:
    """Baseline balances and the budget limit may be zero but never negative."""
    amount = _as_money(value)
    if amount < 0:
        raise ValidationError(message)
    return amount


def require_purpose(value: str | None) -> str:
    purpose = (value or "").strip()
    if not purpose:
        raise ValidationError("Enter a purpose")
    return purpose


def is_valid_pin(pin) -> bool:
    return isinstance(pin, str) and re.fullmatch(r"[0-9]{%d}" % PIN_LENGTH, pin) is not None


def ensure_pin(pin, message: str = "PIN must be 4 digits") -> str:
    if not is_valid_pin(pin):
        raise ValidationError(message)
    return pin
