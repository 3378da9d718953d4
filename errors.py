"""Failure conditions for the ingest and rebuild jobs."""


class LedgerJobError(Exception):
    """Base class for every fatal condition raised by the jobs."""


class ConfigError(LedgerJobError):
    pass


class InvalidRangeKey(LedgerJobError, ValueError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Unknown range key: {value!r}")


class SourceUnavailable(LedgerJobError):
    """Login, navigation or export generation on the report portal failed."""


class StoreWriteFailure(LedgerJobError):
    pass


class StoreReadFailure(LedgerJobError):
    pass


class MalformedLedgerRow(Exception):
    """A ledger row that fits no known shape. Skipped by the summary scan."""

    def __init__(self, row_number, row, reason):
        self.row_number = row_number
        self.row = row
        self.reason = reason
        super().__init__(f"Row {row_number}: {reason} ({row!r})")
