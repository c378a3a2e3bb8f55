"""Exception types raised by transit-departures."""


class TransitDeparturesError(Exception):
    """Base class for all transit-departures errors."""


class MissingCalendarError(TransitDeparturesError, KeyError):
    """A trip references a service with no calendar entry."""

    def __init__(self, service_id: str) -> None:
        super().__init__(service_id)
        self.service_id = service_id

    def __str__(self) -> str:
        return f"No calendar found for service {self.service_id}"


class UnknownStopError(TransitDeparturesError, KeyError):
    """A stop id is not present in the feed."""

    def __init__(self, stop_id: str) -> None:
        super().__init__(stop_id)
        self.stop_id = stop_id

    def __str__(self) -> str:
        return f"Stop {self.stop_id} not found in feed"


class FeedConsistencyError(TransitDeparturesError, ValueError):
    """Feed tables reference rows that do not exist."""


class StoreError(TransitDeparturesError):
    """Schedule store is missing or unreadable."""
