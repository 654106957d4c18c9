"""
Domain exceptions raised by the service layer.

Routers never build HTTP errors for these themselves; the handlers registered
in ``kasoku.main`` map each kind onto a response. ``Forbidden`` deliberately
renders exactly like ``NotFound`` so callers cannot probe for other coaches'
data.
"""
from typing import Any, Optional


class KasokuError(Exception):
    """Base class carrying the entity and identifier the error is about."""

    error_code = "ERROR"

    def __init__(
        self,
        detail: str,
        entity: Optional[str] = None,
        identifier: Any = None,
        field: Optional[str] = None,
    ):
        super().__init__(detail)
        self.detail = detail
        self.entity = entity
        self.identifier = identifier
        self.field = field

    def context(self) -> dict[str, Any]:
        data: dict[str, Any] = {"error_code": self.error_code, "detail": self.detail}
        if self.entity is not None:
            data["entity"] = self.entity
        if self.identifier is not None:
            data["id"] = self.identifier
        if self.field is not None:
            data["field"] = self.field
        return data


class NotFound(KasokuError):
    """Referenced entity is absent."""

    error_code = "NOT_FOUND"

    def __init__(self, entity: str, identifier: Any = None):
        super().__init__(f"{entity} not found.", entity=entity, identifier=identifier)


class Forbidden(KasokuError):
    """Caller is authenticated but has no rights over the entity."""

    error_code = "FORBIDDEN"

    def __init__(self, entity: str, identifier: Any = None, reason: str = "Access denied."):
        super().__init__(reason, entity=entity, identifier=identifier)


class ValidationError(KasokuError):
    """Malformed or semantically invalid input."""

    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        detail: str,
        field: Optional[str] = None,
        entity: Optional[str] = None,
        identifier: Any = None,
    ):
        super().__init__(detail, entity=entity, identifier=identifier, field=field)


class InvalidState(KasokuError):
    """Requested transition is not legal from the entity's current state."""

    error_code = "INVALID_STATE"

    def __init__(self, entity: str, identifier: Any, current: str, requested: str):
        super().__init__(
            f"{entity} {identifier} cannot move from '{current}' to '{requested}'.",
            entity=entity,
            identifier=identifier,
        )
        self.current = current
        self.requested = requested


class PersistenceError(KasokuError):
    """The underlying store operation failed."""

    error_code = "PERSISTENCE_ERROR"


class DataIntegrityError(PersistenceError):
    """Stored data violates an invariant the store itself cannot enforce."""

    error_code = "DATA_INTEGRITY_ERROR"
