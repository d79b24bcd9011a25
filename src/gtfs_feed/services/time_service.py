"""Time normalization for GTFS wall-clock times.

GTFS times are "HH:MM:SS" relative to the service day and the hour may exceed
23 for trips that run past midnight. These helpers anchor such times onto a
concrete calendar date.
"""

from datetime import date, datetime, time, timedelta


def parse_gtfs_time(time_str: str) -> tuple[int, int, int]:
    """Parse a GTFS time string into hours, minutes, seconds.

    GTFS times can exceed 24:00:00 for trips that extend past midnight.
    For example, "25:30:00" means 1:30 AM the next day.

    Args:
        time_str: Time string in HH:MM:SS format (hours can exceed 24).

    Returns:
        Tuple of (hours, minutes, seconds).

    Raises:
        ValueError: If the time string is invalid.
    """
    parts = time_str.strip().split(":")
    if len(parts) != 3:
        raise ValueError(f"Invalid GTFS time format: {time_str}")

    try:
        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = int(parts[2])
    except ValueError as e:
        raise ValueError(f"Invalid GTFS time format: {time_str}") from e

    if hours < 0 or not 0 <= minutes < 60 or not 0 <= seconds < 60:
        raise ValueError(f"Invalid GTFS time format: {time_str}")

    return hours, minutes, seconds


def _start_of_day(reference: date | datetime) -> datetime:
    if isinstance(reference, datetime):
        return reference.replace(hour=0, minute=0, second=0, microsecond=0)
    return datetime.combine(reference, time())


def anchor_time(
    value: str | datetime,
    reference: date | datetime | None = None,
    override: bool = True,
    subtract: bool = False,
) -> datetime:
    """Anchor a wall-clock time onto a reference date.

    The hour, minute and second come from a GTFS time string or from an
    already anchored timestamp.

    Modes:
        override=True, subtract=False (default): set the wall clock on the
            reference date; hours >= 24 roll forward into the following
            day(s), so "25:10:00" on D is 01:10 on D+1.
        override=True, subtract=True: first move the reference back by
            hour // 24 days, then set hour % 24, cancelling a rollover that
            is already baked into the hour value.
        override=False: add the time as a duration to the reference
            timestamp.

    Args:
        value: GTFS time string or timestamp.
        reference: Date or timestamp to anchor on (default: now).
        override: Set the wall clock instead of adding a duration.
        subtract: With override, cancel the day rollover of the hour.

    Returns:
        The anchored timestamp. Microseconds are always zero in override mode.

    Raises:
        ValueError: If value is a malformed time string.
    """
    if isinstance(value, str):
        hours, minutes, seconds = parse_gtfs_time(value)
    else:
        hours, minutes, seconds = value.hour, value.minute, value.second

    if reference is None:
        reference = datetime.now()

    if not override:
        if not isinstance(reference, datetime):
            reference = _start_of_day(reference)
        return reference + timedelta(hours=hours, minutes=minutes, seconds=seconds)

    start = _start_of_day(reference)
    if subtract:
        offset_days = hours // 24
        start -= timedelta(days=offset_days)
        hours -= offset_days * 24

    return start + timedelta(hours=hours, minutes=minutes, seconds=seconds)


def day_offset(timestamp: datetime, origin: date) -> int:
    """Number of calendar days timestamp lies past the origin service day."""
    return (timestamp.date() - origin).days


def rebase_time(timestamp: datetime, origin: date, target: date) -> datetime:
    """Move an anchored timestamp from one service day onto another.

    The wall clock is re-anchored on target and the cumulative day offset the
    timestamp had relative to origin is carried over, so a stop at "25:10:00"
    stays on the day after the target service day.

    Args:
        timestamp: Timestamp anchored on the origin service day.
        origin: Service day the timestamp was anchored on.
        target: Service day to move it to.

    Returns:
        The re-anchored timestamp.
    """
    anchored = anchor_time(timestamp, target)
    return anchored + timedelta(days=day_offset(timestamp, origin))
