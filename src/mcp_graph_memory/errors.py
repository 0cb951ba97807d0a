"""Exceptions raised by the memory mapping and query layer.

"Not found" is never an exception here: fetch/update return ``None`` and
delete returns ``False``. Transport errors from the graph engine propagate
unchanged.
"""


class MemoryServiceError(Exception):
    """Base class for memory service errors."""


class PersistenceError(MemoryServiceError):
    """A write was expected to affect the graph but reported no effect."""


class NormalizationError(MemoryServiceError):
    """A graph result row could not be mapped onto a memory record."""

    def __init__(self, message: str, row: object | None = None):
        super().__init__(message)
        self.row = row
