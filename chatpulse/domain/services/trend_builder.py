"""Time-bucketed trend series and the weekly activity heatmap."""

import logging
import math
from collections.abc import Iterable
from datetime import datetime, timedelta

import pytz

from chatpulse.domain.models.analytics import HeatmapCell, MessageRow, TrendPoint
from chatpulse.domain.services.response_time import response_time_for_messages
from chatpulse.domain.services.time_window import Granularity, TimeWindow
from chatpulse.utils.numbers import round_int

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7
HOURS_PER_DAY = 24
HOUR = timedelta(hours=1)


def sender_key(message: MessageRow) -> str | None:
    """Identity used to count active senders: sending profile, else display name."""
    if message.user_id is not None:
        return f"user:{message.user_id}"
    if message.sender_name:
        return f"name:{message.sender_name}"
    return None


def _hour_count(window: TimeWindow) -> int:
    return max(1, math.ceil((window.end - window.start) / HOUR))


def _bucket_labels(window: TimeWindow) -> list[str]:
    if window.granularity == Granularity.HOURLY:
        # Offsets from the window start, not clock hours
        label_format = "%H:%M" if window.end - window.start <= timedelta(days=1) else "%Y-%m-%d %H:%M"
        return [(window.start + offset * HOUR).strftime(label_format) for offset in range(_hour_count(window))]
    if window.granularity == Granularity.DAILY:
        first = window.start.date()
        return [(first + timedelta(days=offset)).isoformat() for offset in range(window.days)]
    weeks = max(1, math.ceil(window.days / DAYS_PER_WEEK))
    return [f"Week {week + 1}" for week in range(weeks)]


def _bucket_index(window: TimeWindow, moment: datetime) -> int:
    if window.granularity == Granularity.HOURLY:
        return min(int((moment - window.start) // HOUR), _hour_count(window) - 1)
    days = (moment.date() - window.start.date()).days
    if window.granularity == Granularity.DAILY:
        return days
    return days // DAYS_PER_WEEK


def build_trends(messages: Iterable[MessageRow], window: TimeWindow) -> list[TrendPoint]:
    """Bucket messages by the window's granularity (UTC).

    Every bucket is present, zero-filled. Messages outside the window are
    ignored.
    """
    labels = _bucket_labels(window)
    buckets: list[list[MessageRow]] = [[] for _ in labels]
    for message in messages:
        if not window.contains(message.created_at):
            continue
        index = _bucket_index(window, message.created_at)
        if 0 <= index < len(buckets):
            buckets[index].append(message)

    points = []
    for label, bucket in zip(labels, buckets):
        sent = sum(1 for message in bucket if message.is_from_me)
        senders = {key for key in (sender_key(message) for message in bucket) if key is not None}
        average = response_time_for_messages(bucket).average
        points.append(
            TrendPoint(
                period_label=label,
                messages=len(bucket),
                sent_messages=sent,
                received_messages=len(bucket) - sent,
                active_users=len(senders),
                avg_response_time=round_int(average) if average is not None else 0,
            )
        )
    return points


def resolve_timezone(name: str | None) -> pytz.BaseTzInfo:
    """Look up an IANA timezone, falling back to UTC for unknown names."""
    if not name:
        return pytz.utc
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Unknown timezone {name!r}, using UTC")
        return pytz.utc


def local_day_and_hour(moment: datetime, tz: pytz.BaseTzInfo) -> tuple[int, int]:
    """Day of week (0=Sunday) and hour of a naive UTC datetime in ``tz``."""
    local = pytz.utc.localize(moment).astimezone(tz)
    return (local.weekday() + 1) % 7, local.hour


def build_heatmap(messages: Iterable[MessageRow], timezone: str | None = None) -> list[HeatmapCell]:
    """Count messages per (day of week, hour) in the organization's local time.

    Always returns the full 7 x 24 grid, ordered by day then hour.
    """
    tz = resolve_timezone(timezone)
    grid = [[0] * HOURS_PER_DAY for _ in range(DAYS_PER_WEEK)]
    for message in messages:
        day, hour = local_day_and_hour(message.created_at, tz)
        grid[day][hour] += 1
    return [
        HeatmapCell(day_of_week=day, hour=hour, value=grid[day][hour])
        for day in range(DAYS_PER_WEEK)
        for hour in range(HOURS_PER_DAY)
    ]
