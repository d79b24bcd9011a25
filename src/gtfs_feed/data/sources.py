"""Row sources supplying raw GTFS table rows to the loader."""

import asyncio
import csv
import io
import logging
import zipfile
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

Row = dict[str, str]


def decode_rows(data: bytes, filename: str = "<table>") -> list[Row]:
    """Decode a CSV table into rows keyed by header name.

    The UTF-8 BOM is stripped, header names are trimmed and missing trailing
    cells become empty strings.

    Raises:
        ValueError: If the table has no header row or is not valid UTF-8.
    """
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValueError(f"{filename} is not valid UTF-8") from e

    reader = csv.reader(io.StringIO(text, newline=""))
    header = next(reader, None)
    if header is None:
        raise ValueError(f"{filename} is empty")
    columns = [name.strip() for name in header]

    rows: list[Row] = []
    for values in reader:
        if not any(v.strip() for v in values):
            continue
        rows.append(
            {col: values[idx] if idx < len(values) else "" for idx, col in enumerate(columns)}
        )
    return rows


class RowSource:
    """Supplies the raw rows of each table of one feed."""

    def entry_names(self) -> frozenset[str]:
        """Names of the table entries available, e.g. "stops.txt"."""
        raise NotImplementedError

    async def read_rows(self, name: str) -> list[Row]:
        """Read and decode one table entry."""
        raise NotImplementedError


class MappingRowSource(RowSource):
    """Row source over in-memory table bytes."""

    def __init__(self, entries: Mapping[str, bytes]):
        self.entries = dict(entries)

    def entry_names(self) -> frozenset[str]:
        return frozenset(self.entries)

    async def read_rows(self, name: str) -> list[Row]:
        return decode_rows(self.entries[name], name)


class DirectoryRowSource(RowSource):
    """Row source over an extracted GTFS directory."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def entry_names(self) -> frozenset[str]:
        return frozenset(p.name for p in self.path.iterdir() if p.is_file())

    async def read_rows(self, name: str) -> list[Row]:
        logger.debug(f"Reading {name} from {self.path}")
        data = await asyncio.to_thread((self.path / name).read_bytes)
        return decode_rows(data, name)


class ZipRowSource(RowSource):
    """Row source over a GTFS ZIP archive.

    Only entries at the root of the archive are considered tables.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def entry_names(self) -> frozenset[str]:
        with zipfile.ZipFile(self.path, "r") as zf:
            return frozenset(name for name in zf.namelist() if "/" not in name)

    def _read_entry(self, name: str) -> bytes:
        with zipfile.ZipFile(self.path, "r") as zf:
            return zf.read(name)

    async def read_rows(self, name: str) -> list[Row]:
        logger.debug(f"Reading {name} from archive {self.path}")
        data = await asyncio.to_thread(self._read_entry, name)
        return decode_rows(data, name)


def open_source(path: Path) -> RowSource:
    """Pick the row source for a GTFS directory or ZIP file.

    Raises:
        FileNotFoundError: If the path doesn't exist.
        ValueError: If the path is neither a directory nor a ZIP file.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"GTFS path not found: {path}")
    if path.is_dir():
        return DirectoryRowSource(path)
    if zipfile.is_zipfile(path):
        return ZipRowSource(path)
    raise ValueError(f"Not a GTFS directory or ZIP file: {path}")
