"""Error taxonomy for the code registry and the service layer.

The registry normalizes every storage failure into one of the registry errors
below; SQLAlchemy exception types never cross the registry boundary. The
service layer turns registry errors into ``ServiceFailure`` values that carry
only a caller-safe message.
"""

from shortener.enums import FailureKind

__all__ = [
    "RegistryError",
    "ValidationError",
    "NotFoundError",
    "StorageError",
    "StoreTimeoutError",
    "ConflictError",
    "ServiceFailure",
]


class RegistryError(Exception):
    """Base class for all errors raised by the code registry."""


class ValidationError(RegistryError):
    """Input is missing or malformed. Not retriable without fixing the input."""


class NotFoundError(RegistryError):
    """No mapping exists for the given short code or id."""


class StorageError(RegistryError):
    """Transient infrastructure failure while talking to the store."""


class StoreTimeoutError(StorageError):
    """A store operation exceeded its time bound."""


class ConflictError(RegistryError):
    """A uniqueness constraint rejected an insert.

    Only raised and handled inside the registry's insert path.
    """


class ServiceFailure(Exception):
    """Caller-facing failure with a category and a message safe to expose."""

    def __init__(self, kind: FailureKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def __repr__(self) -> str:
        return f"ServiceFailure(kind={self.kind.value!r}, message={self.message!r})"
