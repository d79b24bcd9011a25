"""Immutable feed aggregate."""

from collections.abc import Mapping
from datetime import date, datetime
from types import MappingProxyType
from typing import Any

from pydantic import Field, PrivateAttr, field_validator

from gtfs_feed.models.gtfs import (
    Agencies,
    Calendar,
    CalendarDate,
    FareAttribute,
    FareRule,
    FeedInfo,
    Frequency,
    GTFSModel,
    Level,
    Pathway,
    Route,
    Shape,
    Stop,
    StopTime,
    TimedTransfer,
    Transfer,
    Trip,
)
from gtfs_feed.models.responses import GeoRoute, ServiceActivation, ShapeResult, TripItinerary


class Feed(GTFSModel):
    """A validated GTFS feed.

    Built once by the loader and read-only afterwards, so any number of
    concurrent readers can query it without locking. Lookup indexes are
    derived when the model is constructed.
    """

    # Service day the stop_times and frequencies timestamps are anchored on
    reference_date: date

    agencies: Agencies
    stops: tuple[Stop, ...] = ()
    routes: tuple[Route, ...] = ()
    trips: tuple[Trip, ...] = ()
    stop_times: tuple[StopTime, ...] = ()
    calendar: tuple[Calendar, ...] = ()
    calendar_dates: tuple[CalendarDate, ...] = ()
    fare_attributes: tuple[FareAttribute, ...] = ()
    fare_rules: tuple[FareRule, ...] = ()
    shapes: tuple[Shape, ...] = ()
    frequencies: tuple[Frequency, ...] = ()
    transfers: tuple[Transfer | TimedTransfer, ...] = ()
    pathways: tuple[Pathway, ...] = ()
    levels: tuple[Level, ...] = ()
    feed_info: tuple[FeedInfo, ...] = ()
    translations: Mapping[str, Mapping[str, str]] = Field(
        default_factory=dict, validate_default=True
    )

    _stops_by_id: dict[str, Stop] = PrivateAttr(default_factory=dict)
    _routes_by_id: dict[str, Route] = PrivateAttr(default_factory=dict)
    _trips_by_id: dict[str, Trip] = PrivateAttr(default_factory=dict)
    _trips_by_route: dict[str, list[Trip]] = PrivateAttr(default_factory=dict)
    _stop_times_by_trip: dict[str, list[StopTime]] = PrivateAttr(default_factory=dict)
    _shapes_by_id: dict[str, list[Shape]] = PrivateAttr(default_factory=dict)
    _exceptions_by_date: dict[date, list[CalendarDate]] = PrivateAttr(default_factory=dict)

    @field_validator("translations", mode="after")
    @classmethod
    def _freeze_translations(
        cls, value: Mapping[str, Mapping[str, str]]
    ) -> Mapping[str, Mapping[str, str]]:
        return MappingProxyType(
            {record_id: MappingProxyType(dict(texts)) for record_id, texts in value.items()}
        )

    def model_post_init(self, __context: Any) -> None:
        # First occurrence wins for duplicate ids
        for stop in self.stops:
            self._stops_by_id.setdefault(stop.id, stop)
        for route in self.routes:
            self._routes_by_id.setdefault(route.id, route)
        for trip in self.trips:
            self._trips_by_id.setdefault(trip.id, trip)
            self._trips_by_route.setdefault(trip.route_id, []).append(trip)
        for stop_time in self.stop_times:
            self._stop_times_by_trip.setdefault(stop_time.trip_id, []).append(stop_time)
        for stop_times in self._stop_times_by_trip.values():
            stop_times.sort(key=lambda st: st.sequence)
        for point in self.shapes:
            self._shapes_by_id.setdefault(point.id, []).append(point)
        for exception in self.calendar_dates:
            self._exceptions_by_date.setdefault(exception.date, []).append(exception)

    # Index lookups; None or empty when nothing matches

    @property
    def stop_ids(self) -> list[str]:
        return [stop.id for stop in self.stops]

    def get_stop(self, stop_id: str) -> Stop | None:
        return self._stops_by_id.get(stop_id)

    def get_route(self, route_id: str) -> Route | None:
        return self._routes_by_id.get(route_id)

    def get_trip(self, trip_id: str) -> Trip | None:
        return self._trips_by_id.get(trip_id)

    def trips_for_route(self, route_id: str) -> list[Trip]:
        return list(self._trips_by_route.get(route_id, ()))

    def stop_times_for_trip(self, trip_id: str) -> list[StopTime]:
        """Stop times of a trip ordered by stop_sequence."""
        return list(self._stop_times_by_trip.get(trip_id, ()))

    def shape_points(self, shape_id: str) -> list[Shape]:
        return list(self._shapes_by_id.get(shape_id, ()))

    def exceptions_on(self, day: date) -> list[CalendarDate]:
        return list(self._exceptions_by_date.get(day, ()))

    # Queries

    def active_service_ids(self, day: date) -> frozenset[str]:
        from gtfs_feed.services.calendar_service import get_active_service_ids

        return get_active_service_ids(self, day)

    def service_activations(self, day: date) -> list[ServiceActivation]:
        from gtfs_feed.services.calendar_service import get_service_activations

        return get_service_activations(self, day)

    def find_stop(self, stop_id: str) -> Stop:
        from gtfs_feed.services.query_service import find_stop

        return find_stop(self, stop_id)

    def find_route(self, route_id: str) -> Route:
        from gtfs_feed.services.query_service import find_route

        return find_route(self, route_id)

    def find_trips(self, trip_id: str | None = None, route_id: str | None = None) -> list[Trip]:
        from gtfs_feed.services.query_service import find_trips

        return find_trips(self, trip_id=trip_id, route_id=route_id)

    def find_routes(
        self,
        trip_id: str | None = None,
        route_id: str | None = None,
        reference_date: date | datetime | None = None,
        day_only: bool = True,
    ) -> list[TripItinerary]:
        from gtfs_feed.services.query_service import find_routes

        return find_routes(
            self,
            trip_id=trip_id,
            route_id=route_id,
            reference_date=reference_date,
            day_only=day_only,
        )

    def get_shape(self, route_id: str) -> ShapeResult:
        from gtfs_feed.services.query_service import get_shape

        return get_shape(self, route_id)

    def get_geo_route(self, route_id: str) -> GeoRoute:
        from gtfs_feed.services.query_service import get_geo_route

        return get_geo_route(self, route_id)

    def find_translation(self, record_id: str) -> dict[str, str]:
        from gtfs_feed.services.query_service import find_translation

        return find_translation(self, record_id)
