"""Service calendar resolution."""

from datetime import date, datetime

from gtfs_feed.models.feed import Feed
from gtfs_feed.models.gtfs import ExceptionType
from gtfs_feed.models.responses import ServiceActivation, ServiceSource


def _as_date(day: date | datetime) -> date:
    return day.date() if isinstance(day, datetime) else day


def get_service_activations(feed: Feed, query_date: date | datetime) -> list[ServiceActivation]:
    """Get every activation of a service on a date, with its source.

    Implements the GTFS service day algorithm:
    1. Collect calendar_dates exceptions for the date
    2. For each calendar row whose [start_date, end_date] contains the date:
       a removed exception deactivates it, otherwise an added exception
       activates it, otherwise the weekday flag decides
    3. Every added exception activates its service too, unless the same
       service is also removed on that date (removal wins)

    A service can be reported once per source.

    Args:
        feed: Feed to query.
        query_date: Date to check for active services.

    Returns:
        Activations in calendar order, then calendar_dates order.
    """
    query_date = _as_date(query_date)
    exceptions = feed.exceptions_on(query_date)

    added = {e.service_id for e in exceptions if e.exception_type is ExceptionType.ADDED}
    removed = {e.service_id for e in exceptions if e.exception_type is ExceptionType.REMOVED}

    activations: list[ServiceActivation] = []
    for calendar in feed.calendar:
        if not calendar.date.contains(query_date):
            continue

        if calendar.service_id in removed:
            continue
        if calendar.service_id in added or calendar.days.runs_on(query_date):
            activations.append(
                ServiceActivation(service_id=calendar.service_id, source=ServiceSource.CALENDAR)
            )

    for exception in exceptions:
        if exception.exception_type is ExceptionType.ADDED and exception.service_id not in removed:
            activations.append(
                ServiceActivation(
                    service_id=exception.service_id, source=ServiceSource.CALENDAR_DATES
                )
            )

    return activations


def get_active_service_ids(feed: Feed, query_date: date | datetime) -> frozenset[str]:
    """Get service IDs active on a given date, de-duplicated.

    Args:
        feed: Feed to query.
        query_date: Date to check for active services.

    Returns:
        Set of active service IDs.
    """
    return frozenset(a.service_id for a in get_service_activations(feed, query_date))
