"""Query engine joining trips, stop times, stops and shapes."""

import logging
import warnings
from datetime import date, datetime

from gtfs_feed.exceptions import NotFoundError
from gtfs_feed.models.feed import Feed
from gtfs_feed.models.gtfs import Route, Stop, StopTime, Trip
from gtfs_feed.models.responses import (
    GeoRoute,
    RouteStop,
    ScheduleTime,
    ShapePoint,
    ShapeResult,
    StopSchedule,
    TripItinerary,
)
from gtfs_feed.normalizers.text import to_half_width_or_none
from gtfs_feed.services.calendar_service import get_active_service_ids
from gtfs_feed.services.time_service import rebase_time

logger = logging.getLogger(__name__)


def find_stop(feed: Feed, stop_id: str) -> Stop:
    stop = feed.get_stop(stop_id)
    if stop is None:
        raise NotFoundError("stop", stop_id)
    return stop


def find_route(feed: Feed, route_id: str) -> Route:
    route = feed.get_route(route_id)
    if route is None:
        raise NotFoundError("route", route_id)
    return route


def find_trips(feed: Feed, trip_id: str | None = None, route_id: str | None = None) -> list[Trip]:
    """Find one trip by id, or all trips of a route.

    Exactly one of trip_id and route_id must be given.

    Raises:
        NotFoundError: If no trip matches.
    """
    if (trip_id is None) == (route_id is None):
        raise ValueError("Specify exactly one of trip_id and route_id")

    if trip_id is not None:
        trip = feed.get_trip(trip_id)
        if trip is None:
            raise NotFoundError("trip", trip_id)
        return [trip]

    trips = feed.trips_for_route(route_id)
    if not trips:
        raise NotFoundError("trip", route_id)
    return trips


def _require_stop_times(feed: Feed, trip: Trip) -> list[StopTime]:
    stop_times = feed.stop_times_for_trip(trip.id)
    if not stop_times:
        raise NotFoundError("stopTime", trip.id)
    return stop_times


def _rebase(feed: Feed, timestamp: datetime | None, service_day: date) -> datetime | None:
    # Untimed stops have no schedule to move
    if timestamp is None:
        return None
    return rebase_time(timestamp, feed.reference_date, service_day)


def _build_route_stops(
    feed: Feed,
    trip: Trip,
    stop_times: list[StopTime],
    service_day: date,
    with_direction: bool = False,
) -> list[RouteStop]:
    """Decorate stop times with their stops, re-anchored on service_day."""
    route_stops: list[RouteStop] = []
    for stop_time in stop_times:
        stop = find_stop(feed, stop_time.stop_id)
        route_stops.append(
            RouteStop(
                **stop.model_dump(),
                sequence=stop_time.sequence,
                date=StopSchedule(
                    arrival=ScheduleTime(
                        schedule=_rebase(feed, stop_time.time.arrival, service_day)
                    ),
                    departure=ScheduleTime(
                        schedule=_rebase(feed, stop_time.time.departure, service_day)
                    ),
                ),
                headsign=to_half_width_or_none(stop_time.headsign or trip.headsign),
                direction=trip.direction_id if with_direction else None,
            )
        )
    return route_stops


def _as_date(value: date | datetime | None, default: date) -> date:
    if value is None:
        return default
    return value.date() if isinstance(value, datetime) else value


def find_trip_itinerary(
    feed: Feed,
    trip_id: str,
    reference_date: date | datetime | None = None,
) -> TripItinerary:
    """Build the ordered stop itinerary of one trip.

    Times are anchored on reference_date, or on the service day the trip's
    first stop time was imported on. Stops past midnight keep their day
    offset from the service day.

    Raises:
        NotFoundError: If the trip, its stop times or one of its stops is missing.
    """
    trip = find_trips(feed, trip_id=trip_id)[0]
    stop_times = _require_stop_times(feed, trip)
    service_day = _as_date(reference_date, feed.reference_date)

    return TripItinerary(
        **trip.model_dump(),
        stops=_build_route_stops(feed, trip, stop_times, service_day),
    )


def find_route_itineraries(
    feed: Feed,
    route_id: str,
    first_stop_date: date | datetime | None = None,
    day_only: bool = True,
) -> list[TripItinerary]:
    """Build the itineraries of every trip of a route running on a day.

    With day_only (the default) a trip qualifies when its service is active
    on first_stop_date according to the service calendar. day_only=False
    selects the legacy test instead: the trip's first arrival, as anchored at
    import time, falls on first_stop_date. That test only makes sense when
    first_stop_date is the feed's reference date.

    Args:
        feed: Feed to query.
        route_id: Route whose trips are listed.
        first_stop_date: Service day (default: today).
        day_only: Select trips by service calendar.

    Returns:
        Qualifying trips with stops and direction, in feed order.

    Raises:
        NotFoundError: If the route has no trips, a trip has no stop times, or
            no trip qualifies.
    """
    service_day = _as_date(first_stop_date, date.today())
    trips = find_trips(feed, route_id=route_id)

    if day_only:
        active_services = get_active_service_ids(feed, service_day)
    else:
        warnings.warn(
            "day_only=False compares import-time timestamps; use the service calendar instead",
            DeprecationWarning,
            stacklevel=2,
        )
        logger.warning(f"Legacy trip selection for route {route_id} on {service_day}")
        active_services = frozenset()

    itineraries: list[TripItinerary] = []
    for trip in trips:
        stop_times = _require_stop_times(feed, trip)

        if day_only:
            if trip.service_id not in active_services:
                continue
        else:
            first_arrival = stop_times[0].time.arrival
            if first_arrival is None or first_arrival.date() != service_day:
                continue

        itineraries.append(
            TripItinerary(
                **trip.model_dump(),
                stops=_build_route_stops(
                    feed, trip, stop_times, service_day, with_direction=True
                ),
            )
        )

    if not itineraries:
        raise NotFoundError("route", route_id)

    logger.debug(f"Route {route_id}: {len(itineraries)} of {len(trips)} trips on {service_day}")
    return itineraries


def find_routes(
    feed: Feed,
    trip_id: str | None = None,
    route_id: str | None = None,
    reference_date: date | datetime | None = None,
    day_only: bool = True,
) -> list[TripItinerary]:
    """Itineraries for one trip (trip_id) or for a route on a day (route_id).

    reference_date is the trip's service day or the route's first stop date.
    """
    if trip_id is not None and route_id is None:
        return [find_trip_itinerary(feed, trip_id, reference_date)]
    if route_id is not None and trip_id is None:
        return find_route_itineraries(feed, route_id, reference_date, day_only)
    raise ValueError("Specify exactly one of trip_id and route_id")


def get_shape(feed: Feed, route_id: str) -> ShapeResult:
    """Get the shape of a route from its first trip that has a shape.

    Raises:
        NotFoundError: If no trip of the route has a shape_id, or the shape
            has no points.
    """
    trip = next((t for t in feed.trips_for_route(route_id) if t.shape_id is not None), None)
    if trip is None:
        raise NotFoundError("trip", route_id)

    points = feed.shape_points(trip.shape_id)
    if not points:
        raise NotFoundError("shape", trip.shape_id)

    points.sort(key=lambda p: p.sequence)
    return ShapeResult(
        id=trip.shape_id,
        points=[ShapePoint(location=p.location, dist_traveled=p.dist_traveled) for p in points],
    )


def get_geo_route(feed: Feed, route_id: str) -> GeoRoute:
    """Get a route's shape as a [lon, lat] line geometry."""
    shape = get_shape(feed, route_id)
    return GeoRoute(
        id=route_id,
        coordinates=[(p.location.lon, p.location.lat) for p in shape.points],
    )


def find_translation(feed: Feed, record_id: str) -> dict[str, str]:
    """Get the translations of a record, keyed by language."""
    if record_id not in feed.translations:
        raise NotFoundError("translation", record_id)
    return dict(feed.translations[record_id])
