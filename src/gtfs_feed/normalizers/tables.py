"""Per-table normalizers turning raw rows into typed feed records.

Each normalizer takes the rows of one table as string-keyed mappings and
either returns the full list of records or raises for the first bad row;
rows are never skipped.
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime

from gtfs_feed.data.currency import is_currency_code
from gtfs_feed.exceptions import FieldValidationError, MalformedFeedError
from gtfs_feed.models.gtfs import (
    Accessibility,
    Agencies,
    Agency,
    ArrivalDeparture,
    Bidirectional,
    Calendar,
    CalendarDate,
    Contact,
    DateRange,
    DirectionId,
    ExactTimes,
    ExceptionType,
    FareAttribute,
    FareRule,
    FeedInfo,
    Frequency,
    FullRouteName,
    Level,
    Location,
    LocationType,
    LongRouteName,
    MultiAgency,
    OptionalDateRange,
    ParentStationFlag,
    Pathway,
    PathwayMode,
    PaymentMethod,
    PickupDropOffType,
    Publisher,
    Route,
    RouteType,
    Shape,
    ShortRouteName,
    Stop,
    StopLocation,
    StopTime,
    TimedTransfer,
    Timepoint,
    TimeRange,
    Transfer,
    TransferCount,
    TransferType,
    Translations,
    Trip,
    WeekDays,
    WEEKDAY_NAMES,
)
from gtfs_feed.normalizers.fields import RowReader
from gtfs_feed.normalizers.text import to_half_width_or_none

Rows = Iterable[Mapping[str, str]]


def _readers(table: str, rows: Rows) -> Iterable[RowReader]:
    return (RowReader(table, row) for row in rows)


def normalize_agencies(rows: Rows) -> Agencies:
    """Normalize agency.txt.

    A single agency may omit agency_id; with several agencies every row must
    carry one so routes can reference them unambiguously.
    """
    readers = list(_readers("agency.txt", rows))
    if not readers:
        raise MalformedFeedError("Please include one or more agencies in agency.txt")

    multi = len(readers) > 1
    agencies: list[Agency] = []
    for r in readers:
        fields = {
            "name": r.required("agency_name"),
            "url": r.required("agency_url"),
            "timezone": r.required("agency_timezone"),
            "lang": r.optional("agency_lang"),
            "phone": r.optional("agency_phone"),
            "fare_url": r.optional("agency_fare_url"),
            "email": r.optional("agency_email"),
        }
        if multi:
            agency_id = r.raw("agency_id")
            if agency_id is None:
                raise r.fail("agency_id", "required when the feed has more than one agency")
            agencies.append(MultiAgency(id=agency_id, **fields))
        else:
            agencies.append(Agency(id=r.optional("agency_id"), **fields))

    return tuple(agencies)


def normalize_stops(rows: Rows) -> list[Stop]:
    """Normalize stops.txt."""
    stops: list[Stop] = []
    for r in _readers("stops.txt", rows):
        stops.append(
            Stop(
                id=r.required("stop_id"),
                code=r.optional("stop_code"),
                name=r.required("stop_name"),
                description=to_half_width_or_none(r.optional("stop_desc")),
                location=StopLocation(
                    type=r.enum("location_type", LocationType, LocationType.STOP),
                    lat=r.number("stop_lat", required=True),
                    lon=r.number("stop_lon", required=True),
                ),
                zone_id=r.optional("zone_id"),
                url=r.optional("stop_url"),
                parent_station=r.enum("parent_station", ParentStationFlag, ParentStationFlag.NONE),
                timezone=r.optional("stop_timezone"),
                wheelchair_boarding=r.enum(
                    "wheelchair_boarding", Accessibility, Accessibility.NO_INFO
                ),
                level_id=r.optional("level_id"),
                platform_code=r.optional("platform_code"),
            )
        )
    return stops


def normalize_routes(rows: Rows) -> list[Route]:
    """Normalize routes.txt.

    At least one of route_short_name and route_long_name must be given.
    """
    routes: list[Route] = []
    for r in _readers("routes.txt", rows):
        short = to_half_width_or_none(r.optional("route_short_name"))
        long = to_half_width_or_none(r.optional("route_long_name"))
        if short is not None and long is not None:
            name = FullRouteName(short=short, long=long)
        elif short is not None:
            name = ShortRouteName(short=short)
        elif long is not None:
            name = LongRouteName(long=long)
        else:
            raise FieldValidationError(
                r.table,
                "route_short_name/route_long_name",
                "",
                "route_short_name and route_long_name can not both be empty",
            )

        routes.append(
            Route(
                id=r.required("route_id"),
                agency_id=r.optional("agency_id"),
                name=name,
                description=to_half_width_or_none(r.optional("route_desc")),
                type=r.enum("route_type", RouteType, required=True),
                url=r.optional("route_url"),
                color=r.optional("route_color") or "",
                text_color=r.optional("route_text_color") or "",
                sort_order=r.integer("route_sort_order", default=0),
            )
        )
    return routes


def normalize_trips(rows: Rows) -> list[Trip]:
    """Normalize trips.txt.

    A blank direction_id is 0; direction_id is None only when the column is absent.
    """
    trips: list[Trip] = []
    for r in _readers("trips.txt", rows):
        trips.append(
            Trip(
                route_id=r.required("route_id"),
                service_id=r.required("service_id"),
                id=r.required("trip_id"),
                headsign=to_half_width_or_none(r.optional("trip_headsign")),
                short_name=to_half_width_or_none(r.optional("trip_short_name")),
                direction_id=(
                    r.enum("direction_id", DirectionId, DirectionId.OUTBOUND)
                    if "direction_id" in r.row
                    else None
                ),
                block_id=r.optional("block_id"),
                shape_id=r.optional("shape_id"),
                wheelchair_accessible=r.enum(
                    "wheelchair_accessible", Accessibility, Accessibility.NO_INFO
                ),
                bikes_allowed=r.enum("bikes_allowed", Accessibility, Accessibility.NO_INFO),
            )
        )
    return trips


def normalize_stop_times(rows: Rows, reference: date | datetime | None = None) -> list[StopTime]:
    """Normalize stop_times.txt.

    Arrival and departure are anchored on reference (default: now). A blank
    arrival or departure takes the other's value. Both may be blank only on
    untimed stops (timepoint=0), which get no times at all.
    """
    stop_times: list[StopTime] = []
    for r in _readers("stop_times.txt", rows):
        timepoint = r.enum("timepoint", Timepoint, Timepoint.EXACT)
        arrival_field, departure_field = "arrival_time", "departure_time"

        if (
            timepoint is Timepoint.APPROXIMATE
            and r.raw(arrival_field) is None
            and r.raw(departure_field) is None
        ):
            time = ArrivalDeparture()
        else:
            if r.raw(arrival_field) is None:
                arrival_field = departure_field
            elif r.raw(departure_field) is None:
                departure_field = arrival_field
            time = ArrivalDeparture(
                arrival=r.clock_time(arrival_field, reference),
                departure=r.clock_time(departure_field, reference),
            )

        stop_times.append(
            StopTime(
                trip_id=r.required("trip_id"),
                time=time,
                stop_id=r.required("stop_id"),
                sequence=r.integer("stop_sequence", required=True),
                headsign=to_half_width_or_none(r.optional("stop_headsign")),
                pickup_type=r.enum("pickup_type", PickupDropOffType, PickupDropOffType.REGULAR),
                drop_off_type=r.enum(
                    "drop_off_type", PickupDropOffType, PickupDropOffType.REGULAR
                ),
                shape_dist_traveled=r.number("shape_dist_traveled"),
                timepoint=timepoint,
            )
        )
    return stop_times


def normalize_calendar(rows: Rows) -> list[Calendar]:
    """Normalize calendar.txt."""
    calendars: list[Calendar] = []
    for r in _readers("calendar.txt", rows):
        days = WeekDays(**{day: r.flag(day) for day in WEEKDAY_NAMES})
        start = r.calendar_date("start_date")
        end = r.calendar_date("end_date")
        if end < start:
            raise r.fail("end_date", "end_date must not be before start_date")

        calendars.append(
            Calendar(
                service_id=r.required("service_id"),
                days=days,
                date=DateRange(start=start, end=end),
            )
        )
    return calendars


def normalize_calendar_dates(rows: Rows) -> list[CalendarDate]:
    """Normalize calendar_dates.txt."""
    return [
        CalendarDate(
            service_id=r.required("service_id"),
            date=r.calendar_date("date"),
            exception_type=r.enum("exception_type", ExceptionType, required=True),
        )
        for r in _readers("calendar_dates.txt", rows)
    ]


def normalize_fare_attributes(rows: Rows) -> list[FareAttribute]:
    """Normalize fare_attributes.txt; currency_type must be an ISO 4217 code."""
    fares: list[FareAttribute] = []
    for r in _readers("fare_attributes.txt", rows):
        currency_type = r.required("currency_type")
        if not is_currency_code(currency_type):
            raise r.fail("currency_type", "unknown ISO 4217 currency code")

        fares.append(
            FareAttribute(
                fare_id=r.required("fare_id"),
                price=r.number("price", required=True),
                currency_type=currency_type,
                payment_method=r.enum("payment_method", PaymentMethod, required=True),
                transfers=r.enum("transfers", TransferCount),
                agency_id=r.optional("agency_id"),
                transfer_duration=r.integer("transfer_duration"),
            )
        )
    return fares


def normalize_fare_rules(rows: Rows) -> list[FareRule]:
    """Normalize fare_rules.txt."""
    return [
        FareRule(
            fare_id=r.required("fare_id"),
            route_id=r.optional("route_id"),
            origin_id=r.optional("origin_id"),
            destination_id=r.optional("destination_id"),
            contains_id=r.optional("contains_id"),
        )
        for r in _readers("fare_rules.txt", rows)
    ]


def normalize_shapes(rows: Rows) -> list[Shape]:
    """Normalize shapes.txt.

    Points are grouped by shape id (in order of first appearance) and sorted
    by shape_pt_sequence within each shape, whatever the input row order.
    """
    by_id: dict[str, list[Shape]] = {}
    for r in _readers("shapes.txt", rows):
        point = Shape(
            id=r.required("shape_id"),
            location=Location(
                lat=r.number("shape_pt_lat", required=True),
                lon=r.number("shape_pt_lon", required=True),
            ),
            sequence=r.integer("shape_pt_sequence", required=True),
            dist_traveled=r.number("shape_dist_traveled"),
        )
        by_id.setdefault(point.id, []).append(point)

    return [
        point
        for points in by_id.values()
        for point in sorted(points, key=lambda p: p.sequence)
    ]


def normalize_frequencies(
    rows: Rows, reference: date | datetime | None = None
) -> list[Frequency]:
    """Normalize frequencies.txt."""
    frequencies: list[Frequency] = []
    for r in _readers("frequencies.txt", rows):
        headway_secs = r.integer("headway_secs", required=True)
        if headway_secs <= 0:
            raise r.fail("headway_secs", "positive integer expected")

        frequencies.append(
            Frequency(
                trip_id=r.required("trip_id"),
                time=TimeRange(
                    start=r.clock_time("start_time", reference),
                    end=r.clock_time("end_time", reference),
                ),
                headway_secs=headway_secs,
                exact_times=r.enum("exact_times", ExactTimes, ExactTimes.FREQUENCY_BASED),
            )
        )
    return frequencies


def normalize_transfers(rows: Rows) -> list[Transfer | TimedTransfer]:
    """Normalize transfers.txt.

    transfer_type=2 requires a non-negative integer min_transfer_time.
    """
    transfers: list[Transfer | TimedTransfer] = []
    for r in _readers("transfers.txt", rows):
        from_stop_id = r.required("from_stop_id")
        to_stop_id = r.required("to_stop_id")
        transfer_type = r.enum("transfer_type", TransferType, TransferType.RECOMMENDED)

        if transfer_type is TransferType.MIN_TIME:
            min_transfer_time = r.integer("min_transfer_time", required=True)
            if min_transfer_time < 0:
                raise r.fail("min_transfer_time", "non-negative integer expected")
            transfers.append(
                TimedTransfer(
                    from_stop_id=from_stop_id,
                    to_stop_id=to_stop_id,
                    min_transfer_time=min_transfer_time,
                )
            )
        else:
            transfers.append(
                Transfer(from_stop_id=from_stop_id, to_stop_id=to_stop_id, type=transfer_type)
            )
    return transfers


def normalize_pathways(rows: Rows) -> list[Pathway]:
    """Normalize pathways.txt."""
    return [
        Pathway(
            id=r.required("pathway_id"),
            from_stop_id=r.required("from_stop_id"),
            to_stop_id=r.required("to_stop_id"),
            pathway_mode=r.enum("pathway_mode", PathwayMode, required=True),
            is_bidirectional=r.enum("is_bidirectional", Bidirectional, required=True),
            length=r.number("length"),
            traversal_time=r.integer("traversal_time"),
            stair_count=r.integer("stair_count"),
            max_slope=r.number("max_slope"),
            min_width=r.number("min_width"),
            signposted_as=r.optional("signposted_as"),
            reversed_signposted_as=r.optional("reversed_signposted_as"),
        )
        for r in _readers("pathways.txt", rows)
    ]


def normalize_levels(rows: Rows) -> list[Level]:
    """Normalize levels.txt."""
    return [
        Level(
            id=r.required("level_id"),
            index=r.number("level_index", required=True),
            name=r.optional("level_name"),
        )
        for r in _readers("levels.txt", rows)
    ]


def normalize_feed_info(rows: Rows) -> list[FeedInfo]:
    """Normalize feed_info.txt."""
    infos: list[FeedInfo] = []
    for r in _readers("feed_info.txt", rows):
        start = r.calendar_date("feed_start_date", required=False)
        end = r.calendar_date("feed_end_date", required=False)
        if start is not None and end is not None and end < start:
            raise r.fail("feed_end_date", "feed_end_date must not be before feed_start_date")

        infos.append(
            FeedInfo(
                publisher=Publisher(
                    name=r.required("feed_publisher_name"),
                    url=r.required("feed_publisher_url"),
                ),
                lang=r.required("feed_lang"),
                date=OptionalDateRange(start=start, end=end),
                version=r.optional("feed_version"),
                contact=Contact(
                    email=r.optional("feed_contact_email"),
                    url=r.optional("feed_contact_url"),
                ),
            )
        )
    return infos


def normalize_translations(rows: Rows) -> Translations:
    """Fold translations.txt into record id -> language -> text.

    Accepts the legacy layout (trans_id, lang) as well as the current one
    (record_id or field_value, language).
    """
    translations: Translations = {}
    for r in _readers("translations.txt", rows):
        record_id = r.raw("trans_id") or r.raw("record_id") or r.raw("field_value")
        if record_id is None:
            raise r.fail("trans_id", "trans_id, record_id or field_value is required")
        language = r.raw("lang") or r.raw("language")
        if language is None:
            raise r.fail("lang", "lang or language is required")

        translations.setdefault(record_id, {})[language] = r.required("translation")
    return translations
