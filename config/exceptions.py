"""Custom exception hierarchy for the novel IDE core."""

from typing import Optional


class NovelIDEError(Exception):
    """Base exception for all novel IDE errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# ---- Storage Errors ----

class StorageError(NovelIDEError):
    """Storage collaborator reported a failed read/write/list."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message, {"path": path} if path else {})
        self.path = path


class CatalogError(NovelIDEError):
    """Entity catalog file is unreadable or has the wrong shape."""


# ---- Validation Errors ----

class ValidationError(NovelIDEError):
    """Input validation failed."""


class InvalidNodePatchError(ValidationError):
    """A node patch names a field the node variant does not have (or its id)."""

    def __init__(self, node_id: str, fields: list[str]):
        super().__init__(
            f"Invalid patch for node {node_id}",
            {"node_id": node_id, "fields": ", ".join(fields)},
        )
        self.fields = fields


class InvalidEntityError(ValidationError):
    """Entity record failed validation."""


class UnresolvedReferenceError(ValidationError):
    """Content holds references to entities missing from their catalog."""

    def __init__(self, document_id: str, entity_ids: list[str]):
        super().__init__(
            f"'{document_id}' references missing entities: {', '.join(entity_ids)}",
            {"document_id": document_id, "entity_ids": ", ".join(entity_ids)},
        )
        self.entity_ids = entity_ids


class InvalidConfigError(ValidationError):
    """Configuration value is invalid."""


# ---- Entity Errors ----

class EntityError(NovelIDEError):
    """Base exception for catalog entity operations."""


class EntityNotFoundError(EntityError):
    """Referenced entity id is absent from its catalog."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind.capitalize()} '{entity_id}' not found", {"id": entity_id})
        self.kind = kind
        self.entity_id = entity_id


class EntityInUseError(EntityError):
    """Entity cannot be deleted while documents still reference it."""

    def __init__(self, kind: str, entity_id: str, reference_count: int):
        super().__init__(
            f"Cannot delete {kind} '{entity_id}': used in {reference_count} document(s)",
            {"id": entity_id, "reference_count": reference_count},
        )
        self.kind = kind
        self.entity_id = entity_id
        self.reference_count = reference_count


class LocationCycleError(EntityError):
    """Assigning the parent would make the location hierarchy cyclic."""

    def __init__(self, location_id: str, parent_id: str):
        super().__init__(
            f"Location '{parent_id}' cannot be the parent of '{location_id}'",
            {"location_id": location_id, "parent_id": parent_id},
        )


# ---- Session Errors ----

class SessionError(NovelIDEError):
    """Base exception for document session errors."""


class NoActiveTabError(SessionError):
    """Operation needs an active tab but none is open."""

    def __init__(self, message: str = "No active tab"):
        super().__init__(message)


class UnknownTabError(SessionError):
    """Tab id is not open in the session."""

    def __init__(self, tab_id: str):
        super().__init__(f"Tab '{tab_id}' is not open", {"tab_id": tab_id})
        self.tab_id = tab_id


class SaveInProgressError(SessionError):
    """A save of the same tab is already in flight."""

    def __init__(self, tab_id: str):
        super().__init__(f"Save already in progress for '{tab_id}'", {"tab_id": tab_id})
        self.tab_id = tab_id


class ProjectNotLoadedError(SessionError):
    """Operation needs an open project."""

    def __init__(self, message: str = "No project loaded"):
        super().__init__(message)
