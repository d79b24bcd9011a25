"""Field-level parsing for raw GTFS rows.

Every failure raises FieldValidationError naming the table, the field and the
offending value.
"""

from collections.abc import Mapping
from datetime import date, datetime
from enum import IntEnum
from typing import TypeVar

from gtfs_feed.exceptions import FieldValidationError
from gtfs_feed.services.time_service import anchor_time

E = TypeVar("E", bound=IntEnum)

GTFS_DATE_FORMAT = "%Y%m%d"


class RowReader:
    """Typed accessors over one raw row of a table."""

    def __init__(self, table: str, row: Mapping[str, str | None]):
        self.table = table
        self.row = row

    def raw(self, field: str) -> str | None:
        """Return the stripped value, or None when blank or absent."""
        value = self.row.get(field)
        if value is None:
            return None
        value = value.strip()
        return value or None

    def fail(self, field: str, reason: str | None = None) -> FieldValidationError:
        return FieldValidationError(self.table, field, self.row.get(field), reason)

    def required(self, field: str) -> str:
        value = self.raw(field)
        if value is None:
            raise self.fail(field, "required")
        return value

    def optional(self, field: str) -> str | None:
        return self.raw(field)

    def integer(self, field: str, default: int | None = None, required: bool = False) -> int | None:
        value = self.raw(field)
        if value is None:
            if required:
                raise self.fail(field, "required")
            return default
        try:
            return int(value)
        except ValueError:
            raise self.fail(field, "integer expected") from None

    def number(self, field: str, required: bool = False) -> float | None:
        value = self.raw(field)
        if value is None:
            if required:
                raise self.fail(field, "required")
            return None
        try:
            return float(value)
        except ValueError:
            raise self.fail(field, "number expected") from None

    def enum(
        self,
        field: str,
        enum_cls: type[E],
        default: E | None = None,
        required: bool = False,
    ) -> E | None:
        """Parse a coded integer field into its closed enumeration.

        Blank values yield default (or fail when required); any non-blank
        value outside the enumeration fails.
        """
        value = self.raw(field)
        if value is None:
            if required:
                raise self.fail(field, "required")
            return default
        try:
            return enum_cls(int(value))
        except ValueError:
            allowed = ", ".join(str(member.value) for member in enum_cls)
            raise self.fail(field, f"expected one of {allowed}") from None

    def flag(self, field: str) -> bool:
        """Parse a required 0/1 field."""
        value = self.required(field)
        if value not in ("0", "1"):
            raise self.fail(field, "expected 0 or 1")
        return value == "1"

    def calendar_date(self, field: str, required: bool = True) -> date | None:
        """Parse a YYYYMMDD date."""
        value = self.raw(field)
        if value is None:
            if required:
                raise self.fail(field, "required")
            return None
        try:
            return datetime.strptime(value, GTFS_DATE_FORMAT).date()
        except ValueError:
            raise self.fail(field, "YYYYMMDD date expected") from None

    def clock_time(self, field: str, reference: date | datetime | None = None) -> datetime:
        """Anchor a required HH:MM:SS field onto reference."""
        value = self.required(field)
        try:
            return anchor_time(value, reference)
        except ValueError:
            raise self.fail(field, "HH:MM:SS time expected") from None
