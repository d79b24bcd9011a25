from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import Field

from gtfs_feed.models.gtfs import DirectionId, GTFSModel, Location, Stop, Trip


class ServiceSource(str, Enum):
    """Indicates which table activated a service on a date."""

    CALENDAR = "calendar"
    CALENDAR_DATES = "calendar_dates"


class ServiceActivation(GTFSModel):
    service_id: str
    source: ServiceSource


class ScheduleTime(GTFSModel):
    schedule: datetime | None = Field(
        description="Scheduled time anchored on the query service day; None for untimed stops"
    )
    # Placeholder for realtime predictions; never filled by the static feed
    decision: datetime | None = None


class StopSchedule(GTFSModel):
    arrival: ScheduleTime
    departure: ScheduleTime


class RouteStop(Stop):
    """A stop as visited by one trip."""

    sequence: int
    date: StopSchedule
    headsign: str | None = Field(
        default=None, description="stop_headsign, falling back to the trip headsign"
    )
    direction: DirectionId | None = Field(
        default=None, description="Trip direction (route itineraries only)"
    )


class TripItinerary(Trip):
    """A trip with its stops in stop_sequence order."""

    stops: list[RouteStop]


class ShapePoint(GTFSModel):
    location: Location
    dist_traveled: float | None = None


class ShapeResult(GTFSModel):
    id: str
    points: list[ShapePoint]


class GeoRoute(GTFSModel):
    """GeoJSON-style line geometry of a route."""

    id: str
    type: Literal["LineString"] = "LineString"
    coordinates: list[tuple[float, float]] = Field(description="[lon, lat] pairs in path order")
