import zipfile
from datetime import date
from pathlib import Path

import pytest
from conftest import REFERENCE_DATE, make_source

from gtfs_feed.data.config import get_settings
from gtfs_feed.data.feed_loader import FeedLoader, check_admission, get_table_counts, load_feed
from gtfs_feed.data.sources import (
    DirectoryRowSource,
    MappingRowSource,
    ZipRowSource,
    decode_rows,
    open_source,
)
from gtfs_feed.exceptions import FieldValidationError, MalformedFeedError
from gtfs_feed.models.feed import Feed


@pytest.fixture
def sample_gtfs_dir(tmp_path: Path, sample_tables: dict[str, str]) -> Path:
    """Write the sample feed as an extracted GTFS directory."""
    gtfs_dir = tmp_path / "gtfs"
    gtfs_dir.mkdir()
    for name, text in sample_tables.items():
        (gtfs_dir / name).write_text(text, encoding="utf-8")
    return gtfs_dir


@pytest.fixture
def sample_gtfs_zip(sample_gtfs_dir: Path, tmp_path: Path) -> Path:
    """Create a sample GTFS ZIP file from the directory."""
    zip_path = tmp_path / "gtfs.zip"
    with zipfile.ZipFile(zip_path, "w") as zf:
        for file_path in sample_gtfs_dir.iterdir():
            zf.write(file_path, file_path.name)
    return zip_path


@pytest.fixture
def clear_settings():
    """Reset the cached settings around a test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


async def load_tables(tables: dict[str, str]) -> Feed:
    return await FeedLoader(reference_date=REFERENCE_DATE).load(make_source(tables))


class TestDecodeRows:
    """Tests for CSV table decoding."""

    def test_strips_bom_and_header_whitespace(self) -> None:
        """Test the BOM and padding around header names are removed."""
        rows = decode_rows(b"\xef\xbb\xbfstop_id , stop_name\nS1,Central\n")
        assert rows == [{"stop_id": "S1", "stop_name": "Central"}]

    def test_quoted_fields(self) -> None:
        """Test quoted cells may contain commas and newlines."""
        rows = decode_rows(b'id,name\n1,"Main St, North"\n2,"two\nlines"\n')
        assert rows[0]["name"] == "Main St, North"
        assert rows[1]["name"] == "two\nlines"

    def test_missing_trailing_cells(self) -> None:
        """Test short rows are padded with empty strings."""
        assert decode_rows(b"a,b,c\n1\n") == [{"a": "1", "b": "", "c": ""}]

    def test_blank_lines_skipped(self) -> None:
        """Test blank lines between rows are ignored."""
        assert len(decode_rows(b"a,b\r\n1,2\r\n\r\n3,4\r\n")) == 2

    def test_header_only(self) -> None:
        """Test a table with only a header has no rows."""
        assert decode_rows(b"a,b\n") == []

    def test_empty_table(self) -> None:
        """Test a table without a header row is rejected."""
        with pytest.raises(ValueError):
            decode_rows(b"", "stops.txt")

    def test_invalid_utf8(self) -> None:
        """Test undecodable bytes are rejected."""
        with pytest.raises(ValueError, match="stops.txt"):
            decode_rows(b"stop_id\n\xff\xfe\n", "stops.txt")


class TestAdmission:
    """Tests for required table checks."""

    def test_complete_feed_admitted(self, sample_tables: dict[str, str]) -> None:
        """Test a feed with every required table passes."""
        check_admission(set(sample_tables))

    def test_missing_required_table(self, sample_tables: dict[str, str]) -> None:
        """Test a missing required table is named in the error."""
        del sample_tables["stop_times.txt"]
        with pytest.raises(MalformedFeedError, match="stop_times.txt"):
            check_admission(set(sample_tables))

    def test_calendar_dates_alone_is_enough(self, sample_tables: dict[str, str]) -> None:
        """Test calendar.txt may be omitted when calendar_dates.txt is present."""
        del sample_tables["calendar.txt"]
        check_admission(set(sample_tables))

    def test_no_service_calendar(self, sample_tables: dict[str, str]) -> None:
        """Test a feed without calendar.txt and calendar_dates.txt is refused."""
        del sample_tables["calendar.txt"]
        del sample_tables["calendar_dates.txt"]
        with pytest.raises(MalformedFeedError, match="calendar"):
            check_admission(set(sample_tables))

    async def test_load_refuses_incomplete_feed(self, sample_tables: dict[str, str]) -> None:
        """Test the loader applies the admission check before reading."""
        del sample_tables["agency.txt"]
        with pytest.raises(MalformedFeedError):
            await load_tables(sample_tables)


class TestFeedLoader:
    """Tests for FeedLoader."""

    async def test_load_mapping_source(self, sample_feed: Feed) -> None:
        """Test loading the in-memory sample feed."""
        assert sample_feed.reference_date == REFERENCE_DATE
        assert len(sample_feed.agencies) == 1
        assert sample_feed.agencies[0].name == "Harbour Transit"
        assert sample_feed.agencies[0].id is None
        assert len(sample_feed.stop_times) == 8
        assert sample_feed.feed_info[0].version == "2024.1"

    async def test_load_directory(self, sample_gtfs_dir: Path) -> None:
        """Test loading from an extracted directory."""
        feed = await load_feed(sample_gtfs_dir, REFERENCE_DATE)
        assert feed.stop_ids == ["S1", "S2", "S3"]
        assert len(feed.trips) == 5

    async def test_load_zip(self, sample_gtfs_zip: Path) -> None:
        """Test loading from a ZIP archive."""
        feed = await load_feed(sample_gtfs_zip, REFERENCE_DATE)
        assert len(feed.routes) == 3
        assert feed.get_trip("T4").headsign == "Night Owl"

    async def test_zip_nested_entries_ignored(
        self, sample_gtfs_dir: Path, tmp_path: Path
    ) -> None:
        """Test tables inside a folder of the archive are not recognized."""
        zip_path = tmp_path / "nested.zip"
        with zipfile.ZipFile(zip_path, "w") as zf:
            for file_path in sample_gtfs_dir.iterdir():
                zf.write(file_path, f"gtfs/{file_path.name}")

        assert ZipRowSource(zip_path).entry_names() == frozenset()
        with pytest.raises(MalformedFeedError):
            await load_feed(zip_path, REFERENCE_DATE)

    def test_open_source_picks_adapter(self, sample_gtfs_dir: Path, sample_gtfs_zip: Path) -> None:
        """Test directories and archives get their own row source."""
        assert isinstance(open_source(sample_gtfs_dir), DirectoryRowSource)
        assert isinstance(open_source(sample_gtfs_zip), ZipRowSource)

    def test_open_source_missing_path(self, tmp_path: Path) -> None:
        """Test a missing path raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            open_source(tmp_path / "nonexistent")

    def test_open_source_plain_file(self, tmp_path: Path) -> None:
        """Test a file that is not a ZIP archive is rejected."""
        path = tmp_path / "feed.txt"
        path.write_text("not a feed")
        with pytest.raises(ValueError):
            open_source(path)

    async def test_mapping_source_entries(self) -> None:
        """Test in-memory sources list and decode their entries."""
        source = MappingRowSource({"stops.txt": b"stop_id\nS1\n"})
        assert source.entry_names() == frozenset({"stops.txt"})
        assert await source.read_rows("stops.txt") == [{"stop_id": "S1"}]

    async def test_unrecognized_entries_ignored(self, sample_tables: dict[str, str]) -> None:
        """Test entries that are not GTFS tables are never read."""
        source = make_source(sample_tables)
        source.entries["notes.txt"] = b"\xff\xfe garbage"
        feed = await FeedLoader(reference_date=REFERENCE_DATE).load(source)
        assert len(feed.stops) == 3

    async def test_optional_tables_default_empty(self, sample_tables: dict[str, str]) -> None:
        """Test absent optional tables become empty collections."""
        for name in ("shapes.txt", "translations.txt", "feed_info.txt"):
            del sample_tables[name]
        feed = await load_tables(sample_tables)
        assert feed.shapes == ()
        assert feed.translations == {}
        assert feed.feed_info == ()
        assert feed.transfers == ()

    async def test_stop_times_anchored_on_reference_date(
        self, sample_tables: dict[str, str]
    ) -> None:
        """Test stop times are anchored on the loader's reference date."""
        feed = await FeedLoader(reference_date=date(2024, 7, 1)).load(make_source(sample_tables))
        night = feed.stop_times_for_trip("T4")
        assert night[1].time.arrival.date() == date(2024, 7, 2)

    def test_table_counts(self, sample_feed: Feed) -> None:
        """Test record counts keyed by table file name."""
        counts = get_table_counts(sample_feed)
        assert counts["agency.txt"] == 1
        assert counts["stop_times.txt"] == 8
        assert counts["calendar_dates.txt"] == 4
        assert counts["shapes.txt"] == 3
        assert counts["translations.txt"] == 1
        assert counts["transfers.txt"] == 0


class TestFeedIntegrity:
    """Tests for cross-table reference checks."""

    async def test_unknown_route(self, sample_tables: dict[str, str]) -> None:
        """Test a trip referencing an unknown route fails the import."""
        sample_tables["trips.txt"] += "R9,WEEKDAY,T9,,,\n"
        with pytest.raises(MalformedFeedError, match="R9"):
            await load_tables(sample_tables)

    async def test_unknown_stop(self, sample_tables: dict[str, str]) -> None:
        """Test a stop time referencing an unknown stop fails the import."""
        sample_tables["stop_times.txt"] += "T1,08:20:00,08:20:00,S9,3,\n"
        with pytest.raises(MalformedFeedError, match="S9"):
            await load_tables(sample_tables)

    async def test_unknown_trip(self, sample_tables: dict[str, str]) -> None:
        """Test a stop time referencing an unknown trip fails the import."""
        sample_tables["stop_times.txt"] += "T9,08:20:00,08:20:00,S1,1,\n"
        with pytest.raises(MalformedFeedError, match="T9"):
            await load_tables(sample_tables)

    async def test_unknown_agency(self, sample_tables: dict[str, str]) -> None:
        """Test a route referencing an unknown agency fails the import."""
        sample_tables["routes.txt"] = (
            "route_id,agency_id,route_short_name,route_long_name,route_type\n"
            "R1,NOPE,1,,3\nR2,,2,,3\nR3,,3,,3\n"
        )
        with pytest.raises(MalformedFeedError, match="NOPE"):
            await load_tables(sample_tables)

    async def test_route_agency_required_with_several_agencies(
        self, sample_tables: dict[str, str]
    ) -> None:
        """Test routes must name their agency in a multi-agency feed."""
        sample_tables["agency.txt"] = (
            "agency_id,agency_name,agency_url,agency_timezone\n"
            "HT,Harbour Transit,https://transit.example.com,Asia/Tokyo\n"
            "NB,North Buses,https://buses.example.com,Asia/Tokyo\n"
        )
        with pytest.raises(MalformedFeedError, match="multi-agency"):
            await load_tables(sample_tables)

    async def test_several_agencies_with_ids(self, sample_tables: dict[str, str]) -> None:
        """Test a multi-agency feed whose routes all name their agency."""
        sample_tables["agency.txt"] = (
            "agency_id,agency_name,agency_url,agency_timezone\n"
            "HT,Harbour Transit,https://transit.example.com,Asia/Tokyo\n"
            "NB,North Buses,https://buses.example.com,Asia/Tokyo\n"
        )
        sample_tables["routes.txt"] = (
            "route_id,agency_id,route_short_name,route_long_name,route_type\n"
            "R1,HT,1,,3\nR2,NB,2,,3\nR3,HT,3,,3\n"
        )
        feed = await load_tables(sample_tables)
        assert [a.id for a in feed.agencies] == ["HT", "NB"]

    async def test_empty_agency_table(self, sample_tables: dict[str, str]) -> None:
        """Test a feed without agencies is refused."""
        sample_tables["agency.txt"] = "agency_name,agency_url,agency_timezone\n"
        with pytest.raises(MalformedFeedError):
            await load_tables(sample_tables)

    async def test_invalid_row_aborts_import(self, sample_tables: dict[str, str]) -> None:
        """Test one invalid field fails the whole import."""
        sample_tables["calendar_dates.txt"] += "WEEKDAY,20240306,3\n"
        with pytest.raises(FieldValidationError) as exc_info:
            await load_tables(sample_tables)
        assert exc_info.value.table == "calendar_dates.txt"
        assert exc_info.value.field == "exception_type"

    async def test_route_without_names(self, sample_tables: dict[str, str]) -> None:
        """Test a route with neither a short nor a long name is refused."""
        sample_tables["routes.txt"] += "R4,,,3,\n"
        with pytest.raises(FieldValidationError) as exc_info:
            await load_tables(sample_tables)
        assert exc_info.value.table == "routes.txt"


class TestReferenceDateDefault:
    """Tests for choosing the loader's reference date."""

    def test_explicit_date_wins(self, clear_settings, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test an explicit reference date overrides the environment."""
        monkeypatch.setenv("GTFS_REFERENCE_DATE", "2024-05-01")
        assert FeedLoader(reference_date=REFERENCE_DATE).reference_date == REFERENCE_DATE

    def test_from_environment(self, clear_settings, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test GTFS_REFERENCE_DATE is used when no date is given."""
        monkeypatch.setenv("GTFS_REFERENCE_DATE", "2024-05-01")
        assert FeedLoader().reference_date == date(2024, 5, 1)

    def test_defaults_to_today(self, clear_settings, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the loader falls back to today."""
        monkeypatch.delenv("GTFS_REFERENCE_DATE", raising=False)
        assert FeedLoader().reference_date == date.today()
