from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.services.booking.detector import ConflictDescriptor


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Raised when a booking request is missing a field or a field is malformed."""
    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else None
        super().__init__(message, status_code=400, details=details)
        self.field = field


class ConflictError(AppError):
    """Raised when a candidate booking clashes with an existing one."""
    def __init__(self, conflict: "ConflictDescriptor"):
        super().__init__(conflict.message, status_code=409, details={"conflict": conflict.as_dict()})
        self.conflict = conflict


class ReferentialError(AppError):
    """Raised when a booking references a course, batch, classroom or professor that does not exist."""
    def __init__(self, message: str = "Invalid Course, Batch, or Classroom ID provided."):
        super().__init__(message, status_code=400)


class PersistenceError(AppError):
    """Raised on database or transport faults. The message never carries driver detail."""
    def __init__(self, message: str = "Server error booking extra class."):
        super().__init__(message, status_code=500)

