"""Error hierarchy for feed import and queries."""


class FeedError(Exception):
    """Base class for all feed errors."""


class MalformedFeedError(FeedError):
    """The feed as a whole cannot be admitted.

    Raised for missing required tables, a missing service calendar, an empty
    agency table or dangling cross-table references.
    """


class FieldValidationError(FeedError, ValueError):
    """A single field of a table row is missing or outside its domain."""

    def __init__(self, table: str, field: str, value: str | None, reason: str | None = None):
        self.table = table
        self.field = field
        self.value = value
        self.reason = reason
        message = f"{table}: can not use {value!r} for {field}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class NotFoundError(FeedError, LookupError):
    """A query referenced an id with no matching record."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"There is no such {kind}: {key}")
