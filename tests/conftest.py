from datetime import date

import pytest

from gtfs_feed.data.feed_loader import FeedLoader
from gtfs_feed.data.sources import MappingRowSource
from gtfs_feed.models.feed import Feed

# A Monday
REFERENCE_DATE = date(2024, 3, 4)

SAMPLE_TABLES: dict[str, str] = {
    "agency.txt": (
        "agency_name,agency_url,agency_timezone,agency_lang\n"
        "Harbour Transit,https://transit.example.com,Asia/Tokyo,ja\n"
    ),
    "stops.txt": (
        "stop_id,stop_code,stop_name,stop_desc,stop_lat,stop_lon,location_type,"
        "wheelchair_boarding,platform_code\n"
        "S1,100,Central Station,,35.681,139.767,1,1,\n"
        "S2,200,Harbour Gate,,35.690,139.700,0,,2\n"
        "S3,300,North Hill,Ｂ出口（北口）,35.700,139.750,,2,\n"
    ),
    "routes.txt": (
        "route_id,route_short_name,route_long_name,route_type,route_color\n"
        "R1,1,,3,FF0000\n"
        "R2,,Ｈａｒｂｏｕｒ Line（快速）,2,\n"
        "R3,3,Ghost Line,3,\n"
    ),
    "trips.txt": (
        "route_id,service_id,trip_id,trip_headsign,direction_id,shape_id\n"
        "R1,WEEKDAY,T1,Downtown,0,SH1\n"
        "R1,WEEKEND,T2,Uptown,1,SH1\n"
        "R2,HOLIDAY,T3,Ｎｏｒｔｈ,,\n"
        "R1,WEEKDAY,T4,Night Owl,0,SH1\n"
        "R3,WEEKDAY,T5,,,\n"
    ),
    "stop_times.txt": (
        "trip_id,arrival_time,departure_time,stop_id,stop_sequence,stop_headsign\n"
        "T1,08:10:00,08:10:00,S2,2,\n"
        "T1,08:00:00,08:05:00,S1,1,\n"
        "T2,10:00:00,10:00:00,S2,1,\n"
        "T2,10:20:00,10:20:00,S1,2,\n"
        "T3,12:00:00,12:00:00,S3,1,\n"
        "T3,12:30:00,12:30:00,S1,2,\n"
        "T4,23:50:00,23:50:00,S1,1,\n"
        "T4,25:10:00,25:12:00,S2,2,Harbour Depot\n"
    ),
    "calendar.txt": (
        "service_id,monday,tuesday,wednesday,thursday,friday,saturday,sunday,"
        "start_date,end_date\n"
        "WEEKDAY,1,1,1,1,1,0,0,20240101,20241231\n"
        "WEEKEND,0,0,0,0,0,1,1,20240101,20241231\n"
    ),
    "calendar_dates.txt": (
        "service_id,date,exception_type\n"
        "HOLIDAY,20240304,1\n"
        "WEEKEND,20240304,1\n"
        "WEEKDAY,20240305,2\n"
        "WEEKDAY,20240305,1\n"
    ),
    "shapes.txt": (
        "shape_id,shape_pt_lat,shape_pt_lon,shape_pt_sequence,shape_dist_traveled\n"
        "SH1,35.690,139.700,3,2.5\n"
        "SH1,35.681,139.767,1,0\n"
        "SH1,35.685,139.730,2,\n"
    ),
    "translations.txt": (
        "trans_id,lang,translation\n"
        "Central Station,ja,中央駅\n"
        "Central Station,en,Central Station\n"
    ),
    "feed_info.txt": (
        "feed_publisher_name,feed_publisher_url,feed_lang,feed_start_date,feed_end_date,"
        "feed_version\n"
        "Harbour Transit,https://transit.example.com,ja,20240101,20241231,2024.1\n"
    ),
}


def make_source(tables: dict[str, str]) -> MappingRowSource:
    """Build an in-memory row source, with a BOM on agency.txt like real exports."""
    entries = {}
    for name, text in tables.items():
        data = text.encode("utf-8")
        if name == "agency.txt":
            data = b"\xef\xbb\xbf" + data
        entries[name] = data
    return MappingRowSource(entries)


@pytest.fixture
def sample_tables() -> dict[str, str]:
    """Raw text of a small, valid feed."""
    return dict(SAMPLE_TABLES)


@pytest.fixture
async def sample_feed(sample_tables: dict[str, str]) -> Feed:
    """The sample feed loaded and anchored on REFERENCE_DATE."""
    loader = FeedLoader(reference_date=REFERENCE_DATE)
    return await loader.load(make_source(sample_tables))
