"""Error types raised by the persistence layer.

Every error carries a ``kind`` tag so callers can branch on the type of
failure without inspecting message text.
"""
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONSTRAINT = "constraint"
    NOT_FOUND = "not_found"
    CONNECTION = "connection"


class ConstraintReason(str, Enum):
    DUPLICATE = "duplicate"
    HAS_DEPENDENTS = "has_dependents"
    INTEGRITY = "integrity"


class StoreError(Exception):
    """Base class for all persistence errors."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    """Malformed or missing input, rejected before touching the database."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConstraintError(StoreError):
    """A uniqueness or referential rule would be broken by the write."""

    kind = ErrorKind.CONSTRAINT

    def __init__(self, message: str, reason: ConstraintReason = ConstraintReason.INTEGRITY):
        super().__init__(message)
        self.reason = reason


class NotFoundError(StoreError):
    """Operate-by-id on a row that does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} with id {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConnectionError(StoreError):
    """The database handle is closed or was never available."""

    kind = ErrorKind.CONNECTION
