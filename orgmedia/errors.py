"""Exception types raised by orgmedia."""


class OrgMediaError(Exception):
    """Base class for orgmedia errors."""


class ConfigurationError(OrgMediaError):
    """Raised when the command-line configuration cannot be used for a run."""


class DedupeExhaustedError(OrgMediaError):
    """Raised when no free numeric suffix is left for a destination."""

    def __init__(self, destination, limit):
        self.destination = destination
        self.limit = limit
        super().__init__(f"Too many duplicates for {destination} (limit {limit})")
