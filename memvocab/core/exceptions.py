class MemVocabError(Exception):
    """Base class for every error raised by the vocabulary store."""


class StoreNotOpenError(MemVocabError):
    def __init__(self, message: str = "Local storage is not open") -> None:
        super().__init__(message)


class MigrationError(MemVocabError):
    pass


_PREPOSITIONS = {
    "add": "to",
    "save": "to",
    "seed": "to",
    "load": "from",
    "delete": "from",
    "clear": "from",
}


class StorageError(MemVocabError):
    """A storage operation failed; the driver error is kept as ``__cause__``."""

    entity = "records"

    def __init__(self, operation: str, message: str | None = None) -> None:
        self.operation = operation
        preposition = _PREPOSITIONS.get(operation, "in")
        super().__init__(
            message
            or f"Failed to {operation} {self.entity} {preposition} local storage"
        )


class CardStorageError(StorageError):
    entity = "cards"


class DeckStorageError(StorageError):
    entity = "decks"


class SeedingError(StorageError):
    entity = "default data"


class CardImportError(MemVocabError):
    """The cards JSON blob of the editing form is malformed."""
