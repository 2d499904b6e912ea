"""Time window resolution for analytics queries.

Normalizes user-supplied bounds into an inclusive UTC range and picks the
trend granularity. Bad input never fails a request: it falls back to the
default window for the caller kind.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any

from chatpulse.settings import settings

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59, 999000)

# Strings the dashboard frontend sends when a picker is empty
_BLANK_DATE_VALUES = {"", "null", "undefined", "none"}


class Granularity(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"


class WindowKind(str, Enum):
    """Which default window applies when no usable bounds were supplied."""

    DASHBOARD = "dashboard"  # rolling last 24h
    REPORT = "report"  # last 30 calendar days


@dataclass(frozen=True)
class TimeWindow:
    """Resolved analytics window. ``start`` and ``end`` are naive UTC, both inclusive."""

    start: datetime
    end: datetime
    granularity: Granularity
    source: str  # "explicit", "period" or "default"

    @property
    def diff_in_days(self) -> int:
        return max(1, math.ceil((self.end - self.start).total_seconds() / 86400))

    @property
    def days(self) -> int:
        """Number of calendar days the window touches."""
        return (self.end.date() - self.start.date()).days + 1

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "granularity": self.granularity.value,
            "days": self.days,
        }


def parse_date(value: date | datetime | str | None) -> date | None:
    """Normalize various date inputs to a date object.

    Args:
        value: Date as date, datetime, ISO string, or None

    Returns:
        Normalized date or None if missing or invalid
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.lower() in _BLANK_DATE_VALUES:
            return None
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            try:
                return datetime.strptime(text[:10], "%Y-%m-%d").date()
            except ValueError:
                return None
    return None


def select_granularity(start: datetime, end: datetime) -> Granularity:
    """Pick the trend bucket size from the window length."""
    diff_in_days = math.ceil((end - start).total_seconds() / 86400)
    if diff_in_days <= 1:
        return Granularity.HOURLY
    if diff_in_days <= 7:
        return Granularity.DAILY
    return Granularity.WEEKLY


def parse_granularity(value: Granularity | str | None) -> Granularity | None:
    if value is None or isinstance(value, Granularity):
        return value
    try:
        return Granularity(value.strip().lower())
    except ValueError:
        logger.debug("Ignoring unknown granularity override", extra={"granularity": value})
        return None


def day_range(start_day: date, end_day: date) -> tuple[datetime, datetime]:
    """Inclusive UTC datetimes covering ``start_day`` 00:00 to ``end_day`` 23:59:59.999."""
    if start_day > end_day:
        start_day = end_day
    return datetime.combine(start_day, time.min), datetime.combine(end_day, END_OF_DAY)


def period_day_range(selected_period: str | None, today: date) -> tuple[date, date] | None:
    """Map a period tag (``today``, ``7d``, ``current_month``...) to a day range."""
    if not selected_period:
        return None
    tag = selected_period.strip().lower()
    if tag == "today":
        return today, today
    if tag == "yesterday":
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if tag == "current_month":
        return today.replace(day=1), today
    if tag.endswith("d") and tag[:-1].isdigit() and int(tag[:-1]) > 0:
        return today - timedelta(days=int(tag[:-1]) - 1), today
    return None


def resolve_time_window(
    date_start: date | datetime | str | None = None,
    date_end: date | datetime | str | None = None,
    selected_period: str | None = None,
    kind: WindowKind = WindowKind.REPORT,
    granularity: Granularity | str | None = None,
    now: datetime | None = None,
) -> TimeWindow:
    """Resolve the effective analytics window.

    Precedence: both explicit dates valid, then a recognised period tag, then
    the default window for ``kind``.

    Args:
        date_start: Start date (any form ``parse_date`` accepts)
        date_end: End date
        selected_period: Optional period tag
        kind: Which default applies
        granularity: Optional explicit granularity override
        now: Current UTC time (injectable for tests)

    Returns:
        Resolved TimeWindow
    """
    now = now or datetime.utcnow()
    today = now.date()

    parsed_start = parse_date(date_start)
    parsed_end = parse_date(date_end)

    if parsed_start is not None and parsed_end is not None:
        start, end = day_range(parsed_start, parsed_end)
        source = "explicit"
    else:
        period = period_day_range(selected_period, today)
        if period is not None:
            start, end = day_range(*period)
            source = "period"
        else:
            if date_start or date_end:
                logger.info(
                    "Falling back to default analytics window",
                    extra={"date_start": str(date_start), "date_end": str(date_end), "kind": kind.value},
                )
            start, end = _default_window(kind, now)
            source = "default"

    return TimeWindow(
        start=start,
        end=end,
        granularity=parse_granularity(granularity) or select_granularity(start, end),
        source=source,
    )


def _default_window(kind: WindowKind, now: datetime) -> tuple[datetime, datetime]:
    if kind == WindowKind.DASHBOARD:
        return now - timedelta(hours=settings.dashboard_default_hours), now
    today = now.date()
    return day_range(today - timedelta(days=settings.report_default_days - 1), today)
