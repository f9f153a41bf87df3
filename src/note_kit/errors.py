"""Exception taxonomy for note-kit.

Chunking only ever raises ``MissingDocumentIdentity``. Structural problems in
the cache are raised as ``MalformedStructure`` internally and recovered into a
degraded block. Sync failures are wrapped per item into ``SyncTransportError``
and reported, not raised.
"""


class NoteKitError(Exception):
    """Base class for all note-kit errors."""


class MissingDocumentIdentity(NoteKitError, ValueError):
    """Raised when a chunking call has no ``original_id``."""

    def __init__(self, note_path: str | None = None) -> None:
        self.note_path = note_path
        where = f" for {note_path!r}" if note_path else ""
        super().__init__(f"original_id is required to chunk a note{where}")


class MalformedStructure(NoteKitError):
    """A cache region or span that does not fit the document."""


class SyncTransportError(NoteKitError):
    """An embedding or vector-store call failed, for one item or for the baseline scroll."""

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        chunk_id: str | None = None,
        record_id: str | None = None,
    ) -> None:
        self.operation = operation
        self.chunk_id = chunk_id
        self.record_id = record_id
        super().__init__(message)


class BaselineInconsistency(NoteKitError):
    """A baseline anomaly such as a duplicate ``chunkId``."""

    def __init__(self, message: str, *, chunk_id: str) -> None:
        self.chunk_id = chunk_id
        super().__init__(message)
