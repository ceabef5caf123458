import re
from datetime import date, datetime, time, timezone

from services.errors import ValidationError

GROUP_NAME_RE = re.compile(r"^G[0-9]+$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")


def is_valid_group(group_name):
    return bool(group_name) and bool(GROUP_NAME_RE.match(str(group_name)))


def require_group(group_name):
    if not is_valid_group(group_name):
        raise ValidationError("Invalid group name. Must be in format G1, G2, etc.")
    return group_name


def normalize_email(email):
    return (email or "").strip().lower()


def require_email(email):
    email = normalize_email(email)
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email format")
    return email


def to_int(value, field):
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def parse_marks(value, field="marks"):
    """Return marks as a float in [0, 100] or raise ValidationError."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number between 0 and 100")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number between 0 and 100")
    if number != number or number < 0 or number > 100:
        raise ValidationError("Marks must be between 0 and 100")
    return number


def _utc_day(moment):
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date()


def parse_day(value):
    """Accept YYYY-MM-DD or an ISO timestamp and return the calendar day.

    Timestamps carrying an offset are read as their UTC day.
    """
    if isinstance(value, datetime):
        return _utc_day(value)
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        raise ValidationError("date is required")

    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return _utc_day(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        raise ValidationError(f"Invalid date: {value}")


def parse_time(value):
    if isinstance(value, time):
        return value
    match = TIME_RE.match(str(value or "").strip())
    if not match:
        raise ValidationError("schedule_time must be in HH:MM format")
    hours, minutes, seconds = match.groups()
    return time(int(hours), int(minutes), int(seconds or 0))
