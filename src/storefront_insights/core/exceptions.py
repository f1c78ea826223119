"""Exception types raised across the reporting engine."""


class StorefrontInsightsError(Exception):
    """Base class for errors raised by storefront insights."""


class UpstreamFetchError(StorefrontInsightsError):
    """The commerce data source could not supply a snapshot."""


class SnapshotFormatError(UpstreamFetchError):
    """A source file exists but does not hold the expected records."""


class ReadStateError(StorefrontInsightsError):
    """The read-state backend could not be read safely before a write."""
