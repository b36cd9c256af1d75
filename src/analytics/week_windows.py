"""Business-week arithmetic.

The business week runs Monday 00:00:00.000 through Saturday 23:59:59.999.
Sunday belongs to the week that ended the day before, never to the next one.
Week 1 of a year is the week starting on the first Monday on or after January 1;
days before that Monday belong to the last week of the previous year.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import List, Optional, Union

from src.core.errors import InvalidTimeWindowError
from src.schemas.metrics import ReportPeriod, WeekWindow

DateLike = Union[date, datetime]

MIN_YEAR = 1
MAX_YEAR = 9998
WEEK_END_TIME = time(23, 59, 59, 999000)

MONTH_NAMES_ES = [
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
]


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise InvalidTimeWindowError(f"Expected a date, got {type(value).__name__}")


def week_window(reference: DateLike) -> WeekWindow:
    day = _as_date(reference)
    # weekday() is 0 for Monday and 6 for Sunday, so Sunday walks back to the Monday before it.
    try:
        monday = day - timedelta(days=day.weekday())
        saturday = monday + timedelta(days=5)
    except OverflowError as exc:
        raise InvalidTimeWindowError(f"Date {day.isoformat()} is outside the supported calendar") from exc
    return WeekWindow(
        start=datetime.combine(monday, time.min),
        end=datetime.combine(saturday, WEEK_END_TIME),
    )


def previous_week_window(reference: DateLike) -> WeekWindow:
    current = week_window(reference)
    try:
        previous_start = current.start_date - timedelta(days=7)
    except OverflowError as exc:
        raise InvalidTimeWindowError("No business week exists before the given date") from exc
    return week_window(previous_start)


def _first_monday(year: int) -> date:
    jan1 = date(year, 1, 1)
    return jan1 + timedelta(days=(7 - jan1.weekday()) % 7)


def _validate_year(year: int) -> None:
    if isinstance(year, bool) or not isinstance(year, int):
        raise InvalidTimeWindowError("Year must be an integer")
    if year < MIN_YEAR or year > MAX_YEAR:
        raise InvalidTimeWindowError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")


def weeks_in_year(year: int) -> int:
    _validate_year(year)
    last_monday = week_window(date(year, 12, 31)).start_date
    return (last_monday - _first_monday(year)).days // 7 + 1


def week_of_year(value: DateLike) -> int:
    """1-based number of the business week containing ``value``, counted in the year of its Monday."""
    monday = week_window(value).start_date
    return (monday - _first_monday(monday.year)).days // 7 + 1


def week_window_by_number(year: int, week_number: int) -> WeekWindow:
    _validate_year(year)
    if isinstance(week_number, bool) or not isinstance(week_number, int):
        raise InvalidTimeWindowError("Week number must be an integer")
    total_weeks = weeks_in_year(year)
    if week_number < 1 or week_number > total_weeks:
        raise InvalidTimeWindowError(f"Week number for {year} must be between 1 and {total_weeks}")
    return week_window(_first_monday(year) + timedelta(days=(week_number - 1) * 7))


def format_date(value: DateLike) -> str:
    day = _as_date(value)
    return f"{day.day} de {MONTH_NAMES_ES[day.month - 1]} de {day.year}"


def resolve_date_range(
    start: Optional[DateLike], end: Optional[DateLike]
) -> tuple[Optional[date], Optional[date]]:
    start_date = _as_date(start) if start is not None else None
    end_date = _as_date(end) if end is not None else None
    if start_date and end_date and end_date < start_date:
        raise InvalidTimeWindowError("End date must be on or after start date")
    return start_date, end_date


def resolve_report_window(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    year: Optional[int] = None,
    week: Optional[int] = None,
    reference: Optional[date] = None,
) -> ReportPeriod:
    """Pick the reporting period: explicit range, then year + week, then the current week."""
    has_range = start_date is not None or end_date is not None
    has_week = year is not None or week is not None
    if has_range and has_week:
        raise InvalidTimeWindowError("Use either a date range or a week number, not both")

    if has_range:
        start, end = resolve_date_range(start_date, end_date)
        return ReportPeriod(start_date=start, end_date=end, time_window="custom")

    if has_week:
        if week is None:
            raise InvalidTimeWindowError("A week number is required when a year is given")
        week_year = year if year is not None else week_window(reference or date.today()).start.year
        window = week_window_by_number(week_year, week)
        return ReportPeriod(
            start_date=window.start_date,
            end_date=window.end_date,
            time_window=f"{week_year}-W{week:02d}",
        )

    window = week_window(reference or date.today())
    return ReportPeriod(
        start_date=window.start_date,
        end_date=window.end_date,
        time_window="current_week",
    )


def trailing_week_windows(reference: DateLike, weeks: int) -> List[WeekWindow]:
    """The ``weeks`` consecutive business weeks ending with the week of ``reference``, oldest first."""
    if isinstance(weeks, bool) or not isinstance(weeks, int) or weeks < 1:
        raise InvalidTimeWindowError("Number of weeks must be a positive integer")
    windows = [week_window(reference)]
    for _ in range(weeks - 1):
        windows.append(previous_week_window(windows[-1].start))
    windows.reverse()
    return windows
