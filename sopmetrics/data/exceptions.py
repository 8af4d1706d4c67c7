"""
Exceptions raised by the data layer of the SOP metrics system.
"""


class EntityReaderError(RuntimeError):
    """
    The entity reader could not produce a complete snapshot.

    Raised for any I/O or load failure behind the reader. Metrics are never
    computed from a partial snapshot, so callers get this single failure
    instead of degraded numbers.
    """


class InvalidRecordError(ValueError):
    """A raw store row could not be turned into a typed entity."""

    def __init__(self, collection: str, record_id: object, reason: str):
        self.collection = collection
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Invalid {collection} record {record_id!r}: {reason}")
