"""Calendar-day helpers. Days are `YYYY-MM-DD` strings in local time."""

from datetime import date, datetime

DAY_FORMAT = "%Y-%m-%d"


class InvalidDateError(ValueError):
    """Raised when a day string is not `YYYY-MM-DD`."""


def parse_day(value: str) -> date:
    try:
        return datetime.strptime(value, DAY_FORMAT).date()
    except (TypeError, ValueError):
        raise InvalidDateError(f"Invalid date format: {value}. Expected YYYY-MM-DD")


def format_day(value: date | datetime | None = None) -> str:
    return (value or datetime.now()).strftime(DAY_FORMAT)


def start_of_day_ms(day: str) -> int:
    d = parse_day(day)
    return int(datetime(d.year, d.month, d.day, 0, 0, 0).timestamp() * 1000)


def end_of_day_ms(day: str) -> int:
    d = parse_day(day)
    return int(datetime(d.year, d.month, d.day, 23, 59, 59, 999000).timestamp() * 1000)
