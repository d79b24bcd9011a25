"""Pydantic models for GTFS entities."""

from datetime import date, datetime
from enum import IntEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class GTFSModel(BaseModel):
    """Base for immutable feed records."""

    model_config = ConfigDict(frozen=True)


# Closed enumerations for coded integer fields


class LocationType(IntEnum):
    STOP = 0
    STATION = 1
    ENTRANCE = 2


class ParentStationFlag(IntEnum):
    NONE = 0
    HAS_PARENT = 1


class Accessibility(IntEnum):
    """Shared by wheelchair_boarding, wheelchair_accessible and bikes_allowed."""

    NO_INFO = 0
    ALLOWED = 1
    NOT_ALLOWED = 2


class RouteType(IntEnum):
    TRAM = 0
    SUBWAY = 1
    RAIL = 2
    BUS = 3
    FERRY = 4
    CABLE_TRAM = 5
    AERIAL_LIFT = 6
    FUNICULAR = 7


class DirectionId(IntEnum):
    OUTBOUND = 0
    INBOUND = 1


class PickupDropOffType(IntEnum):
    REGULAR = 0
    NOT_AVAILABLE = 1
    PHONE_AGENCY = 2
    COORDINATE_WITH_DRIVER = 3


class Timepoint(IntEnum):
    APPROXIMATE = 0
    EXACT = 1


class ExceptionType(IntEnum):
    ADDED = 1
    REMOVED = 2


class PaymentMethod(IntEnum):
    ON_BOARD = 0
    BEFORE_BOARDING = 1


class TransferCount(IntEnum):
    NONE = 0
    ONCE = 1
    TWICE = 2


class ExactTimes(IntEnum):
    FREQUENCY_BASED = 0
    SCHEDULE_BASED = 1


class TransferType(IntEnum):
    RECOMMENDED = 0
    TIMED = 1
    MIN_TIME = 2
    NOT_POSSIBLE = 3


class PathwayMode(IntEnum):
    WALKWAY = 1
    STAIRS = 2
    MOVING_SIDEWALK = 3
    ESCALATOR = 4
    ELEVATOR = 5
    FARE_GATE = 6
    EXIT_GATE = 7


class Bidirectional(IntEnum):
    UNIDIRECTIONAL = 0
    BIDIRECTIONAL = 1


# Shared value objects


class Location(GTFSModel):
    lat: float
    lon: float


class DateRange(GTFSModel):
    """Inclusive date range."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class OptionalDateRange(GTFSModel):
    start: date | None = None
    end: date | None = None


class ArrivalDeparture(GTFSModel):
    # Both None for untimed stops (timepoint=0 with blank times)
    arrival: datetime | None = None
    departure: datetime | None = None


class TimeRange(GTFSModel):
    start: datetime
    end: datetime


# Entities


class Agency(GTFSModel):
    """GTFS agency entity.

    The id may be None only in a single-agency feed.
    """

    id: str | None = None
    name: str
    url: str
    timezone: str
    lang: str | None = None
    phone: str | None = None
    fare_url: str | None = None
    email: str | None = None


class MultiAgency(Agency):
    """Agency of a feed with more than one agency; the id is mandatory."""

    id: str


Agencies = tuple[Agency] | tuple[MultiAgency, ...]


class StopLocation(Location):
    type: LocationType = LocationType.STOP


class Stop(GTFSModel):
    """GTFS stop entity."""

    id: str
    code: str | None = None
    name: str
    description: str | None = None
    location: StopLocation
    zone_id: str | None = None
    url: str | None = None
    parent_station: ParentStationFlag = ParentStationFlag.NONE
    timezone: str | None = None
    wheelchair_boarding: Accessibility = Accessibility.NO_INFO
    level_id: str | None = None
    platform_code: str | None = None


class ShortRouteName(GTFSModel):
    kind: Literal["short"] = "short"
    short: str
    long: None = None


class LongRouteName(GTFSModel):
    kind: Literal["long"] = "long"
    short: None = None
    long: str


class FullRouteName(GTFSModel):
    kind: Literal["both"] = "both"
    short: str
    long: str


RouteName = Annotated[
    ShortRouteName | LongRouteName | FullRouteName,
    Field(discriminator="kind"),
]


class Route(GTFSModel):
    """GTFS route entity."""

    id: str
    agency_id: str | None = None
    name: RouteName
    description: str | None = None
    type: RouteType
    url: str | None = None
    color: str = ""
    text_color: str = ""
    sort_order: int = 0


class Trip(GTFSModel):
    """GTFS trip entity."""

    route_id: str
    service_id: str
    id: str
    headsign: str | None = None
    short_name: str | None = None
    direction_id: DirectionId | None = None
    block_id: str | None = None
    shape_id: str | None = None
    wheelchair_accessible: Accessibility = Accessibility.NO_INFO
    bikes_allowed: Accessibility = Accessibility.NO_INFO


class StopTime(GTFSModel):
    """GTFS stop_times entity.

    Times are absolute timestamps anchored on the feed's reference date;
    a raw "25:10:00" becomes 01:10 on the following day.
    """

    trip_id: str
    time: ArrivalDeparture
    stop_id: str
    sequence: int
    headsign: str | None = None
    pickup_type: PickupDropOffType = PickupDropOffType.REGULAR
    drop_off_type: PickupDropOffType = PickupDropOffType.REGULAR
    shape_dist_traveled: float | None = None
    timepoint: Timepoint = Timepoint.EXACT


class WeekDays(GTFSModel):
    monday: bool
    tuesday: bool
    wednesday: bool
    thursday: bool
    friday: bool
    saturday: bool
    sunday: bool

    def runs_on(self, day: date) -> bool:
        """Return the flag for the weekday of day."""
        return getattr(self, WEEKDAY_NAMES[day.weekday()])


# Indexed by date.weekday() (0=Monday, 6=Sunday)
WEEKDAY_NAMES = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]


class Calendar(GTFSModel):
    """GTFS calendar entity for service patterns."""

    service_id: str
    days: WeekDays
    date: DateRange


class CalendarDate(GTFSModel):
    """GTFS calendar_dates entity for service exceptions."""

    service_id: str
    date: date
    exception_type: ExceptionType


class FareAttribute(GTFSModel):
    fare_id: str
    price: float
    currency_type: str  # ISO 4217
    payment_method: PaymentMethod
    transfers: TransferCount | None = None  # None = unlimited
    agency_id: str | None = None
    transfer_duration: int | None = None


class FareRule(GTFSModel):
    fare_id: str
    route_id: str | None = None
    origin_id: str | None = None
    destination_id: str | None = None
    contains_id: str | None = None


class Shape(GTFSModel):
    """One point of a shape."""

    id: str
    location: Location
    sequence: int
    dist_traveled: float | None = None


class Frequency(GTFSModel):
    trip_id: str
    time: TimeRange
    headway_secs: int
    exact_times: ExactTimes = ExactTimes.FREQUENCY_BASED


class _TransferStops(GTFSModel):
    from_stop_id: str
    to_stop_id: str


class Transfer(_TransferStops):
    """Transfer without a minimum time."""

    type: Literal[TransferType.RECOMMENDED, TransferType.TIMED, TransferType.NOT_POSSIBLE]


class TimedTransfer(_TransferStops):
    """Transfer that requires min_transfer_time seconds (transfer_type=2)."""

    type: Literal[TransferType.MIN_TIME] = TransferType.MIN_TIME
    min_transfer_time: int


class Pathway(GTFSModel):
    id: str
    from_stop_id: str
    to_stop_id: str
    pathway_mode: PathwayMode
    is_bidirectional: Bidirectional
    length: float | None = None  # meters
    traversal_time: int | None = None  # seconds
    stair_count: int | None = None
    max_slope: float | None = None
    min_width: float | None = None
    signposted_as: str | None = None
    reversed_signposted_as: str | None = None


class Level(GTFSModel):
    id: str
    index: float
    name: str | None = None


class Publisher(GTFSModel):
    name: str
    url: str


class Contact(GTFSModel):
    email: str | None = None
    url: str | None = None


class FeedInfo(GTFSModel):
    """GTFS feed_info entity."""

    publisher: Publisher
    lang: str
    date: OptionalDateRange = OptionalDateRange()
    version: str | None = None
    contact: Contact = Contact()


# record id -> language -> text
Translations = dict[str, dict[str, str]]
