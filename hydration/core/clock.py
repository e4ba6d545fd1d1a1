"""Calendar helpers shared by the metrics, rollover and reminder modules.

Day boundaries are the ones of the reference datetime's zone. Aware
datetimes are converted into that zone before the day is taken; naive
datetimes are read as local wall-clock time.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo


def to_zone(dt: datetime, reference: datetime | tzinfo | None) -> datetime:
    """Express `dt` in the zone of `reference` when both are aware."""
    if reference is None or dt.tzinfo is None:
        return dt
    zone = reference.tzinfo if isinstance(reference, datetime) else reference
    if zone is None:
        return dt
    return dt.astimezone(zone)


def local_day(dt: datetime, reference: datetime | tzinfo | None = None) -> date:
    return to_zone(dt, reference).date()


def start_of_day(dt: datetime) -> datetime:
    """Midnight at the start of `dt`'s calendar day, same zone."""
    return datetime.combine(dt.date(), time.min, tzinfo=dt.tzinfo)


def next_midnight(now: datetime) -> datetime:
    return start_of_day(now + timedelta(days=1))


def seconds_until_midnight(now: datetime) -> float:
    return (next_midnight(now) - now).total_seconds()


def relative_time(moment: datetime, reference: datetime) -> str:
    """Human phrase for `moment` seen from `reference`: "5 minutes ago", "in 1 hour"."""
    delta = (moment - reference).total_seconds()
    seconds = abs(delta)
    if seconds < 60:
        return "just now"

    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = int(seconds // size)
            break
    label = f"{count} {unit}{'s' if count != 1 else ''}"
    return f"{label} ago" if delta < 0 else f"in {label}"
