"""Domain errors raised by the scheduling core and the services around it.

None of these are retried internally; the host (API router or CLI) decides
how to present them.
"""


class LangBridgeError(Exception):
    """Base class for all LangBridge domain errors."""


class NotFoundError(LangBridgeError):
    """A record id has no matching record in its collection."""

    def __init__(self, kind: str, record_id: object) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class InvalidRatingError(LangBridgeError, ValueError):
    """A rating outside again/hard/good/easy was submitted."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid rating {value!r}: expected again, hard, good or easy (1-4)")


class InvalidStateError(LangBridgeError):
    """The operation is not allowed in the record's current state."""


class ConcurrentUpdateError(LangBridgeError):
    """The record changed between read and write."""

    def __init__(self, kind: str, record_id: object, expected_version: int) -> None:
        self.kind = kind
        self.record_id = record_id
        self.expected_version = expected_version
        super().__init__(
            f"{kind} {record_id} was modified concurrently (expected version {expected_version})"
        )
