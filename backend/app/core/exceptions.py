class AppError(Exception):
    """Base class for all application exceptions."""

    code = "APP_ERROR"

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or out-of-range input."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class OutOfWindowSlotError(ValidationError):
    code = "OUT_OF_WINDOW_SLOT"

    def __init__(self, day: str, index: int, slot: dict, window: dict):
        super().__init__(
            f"Slot {index + 1} on {day} falls outside the working-hours window",
            details={"day": day, "index": index, "slot": slot, "window": window},
        )


class OverlappingSlotsError(ValidationError):
    code = "OVERLAPPING_SLOTS"

    def __init__(self, day: str, first: dict, second: dict):
        super().__init__(
            f"Slots on {day} overlap",
            details={"day": day, "slots": [first, second]},
        )


class InvalidDeltaError(ValidationError):
    code = "INVALID_DELTA"

    def __init__(self, delta):
        super().__init__("Increment must be an integer", details={"delta": repr(delta)})


class CrossSessionReferenceError(ValidationError):
    """Raised when referenced ids are missing or live in another session."""

    code = "CROSS_SESSION_REFERENCE"

    def __init__(self, entity_type: str, invalid_ids: list[str]):
        super().__init__(
            f"Some {entity_type} ids were not found or do not belong to the same session",
            details={"entity_type": entity_type, "invalid_ids": invalid_ids},
        )
        self.invalid_ids = invalid_ids


class NotFoundError(AppError):
    """Raised when a requested entity is not found."""

    code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(
            f"{entity_type} with id {entity_id} not found",
            status_code=404,
            details={"entity_type": entity_type, "entity_id": entity_id},
        )


class SessionNotFoundError(NotFoundError):
    code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        super().__init__("Session", session_id)


class ResourceNotFoundError(NotFoundError):
    code = "RESOURCE_NOT_FOUND"


class GroupNotFoundError(NotFoundError):
    code = "GROUP_NOT_FOUND"


class CourseNotFoundError(NotFoundError):
    code = "COURSE_NOT_FOUND"

    def __init__(self, course_id: str):
        super().__init__("Course", course_id)


class ConflictError(AppError):
    code = "CONFLICT"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class NameConflictError(ConflictError):
    code = "NAME_CONFLICT"

    def __init__(self, entity_type: str, name: str):
        super().__init__(f"{entity_type} name '{name}' already exists", details={"name": name})


class ReferentialGuardError(AppError):
    """Delete blocked because dependents still reference the entity."""

    code = "REFERENTIAL_GUARD"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class ResourceInUseError(ReferentialGuardError):
    code = "RESOURCE_IN_USE"

    def __init__(self, entity_type: str, entity_id: str, count: int, relation: str):
        super().__init__(
            f"Cannot delete {entity_type.lower()}: it is referenced by {count} course link(s) ({relation})",
            details={"entity_type": entity_type, "entity_id": entity_id, "count": count, "relation": relation},
        )
        self.count = count


class CascadeFailureError(AppError):
    """A cascade stopped part-way; the transaction was rolled back."""

    code = "CASCADE_FAILURE"

    def __init__(self, session_id: str, last_step: str | None, counts: dict):
        super().__init__(
            f"Cascade for session {session_id} failed after step {last_step or 'none'}",
            status_code=500,
            details={"session_id": session_id, "last_completed_step": last_step, "partial_counts": counts},
        )
        self.last_step = last_step
        self.counts = counts


class StorageError(AppError):
    code = "STORAGE_ERROR"

    def __init__(self, message: str = "Storage operation failed", details: dict = None):
        super().__init__(message, status_code=500, details=details)
