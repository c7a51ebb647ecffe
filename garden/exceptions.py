"""Exceptions raised by the garden domain operations."""


class GardenError(Exception):
    """Base class for garden errors that views report to the user."""


class RecordNotFound(GardenError):
    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"No record {record_id!r} in {collection}")


class GardenImportError(GardenError):
    """Raised when an import document cannot be applied. Nothing is written."""
