"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"

    # Not found errors (404)
    NOT_FOUND = "NOT_FOUND"
    TAG_NOT_FOUND = "TAG_NOT_FOUND"
    POST_NOT_FOUND = "POST_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SELF_MERGE = "SELF_MERGE"

    # Conflict errors (409)
    DUPLICATE = "DUPLICATE"
    DUPLICATE_TAG = "DUPLICATE_TAG"
    CONFLICT = "CONFLICT"
    TAG_IN_USE = "TAG_IN_USE"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


# --- Validation (400) ---


class ValidationError(AppException):
    """Malformed input: blank or overlong name, bad color, bad slug."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=400,
            details={"field": field} if field else None,
        )


class SelfMergeError(ValidationError):
    """A tag cannot be merged into itself."""

    def __init__(self, tag_id: str) -> None:
        super().__init__(
            message=f"Cannot merge tag with itself: {tag_id}",
            error_code=ErrorCode.SELF_MERGE,
        )
        self.details = {"tag_id": tag_id}


# --- Not found (404) ---


class NotFoundError(AppException):
    """Referenced id does not exist."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.NOT_FOUND,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=404,
            details=details,
        )


class TagNotFoundError(NotFoundError):
    """Tag not found."""

    def __init__(self, tag_ref: str, field: str = "tag_id") -> None:
        super().__init__(
            message=f"Tag not found: {tag_ref}",
            error_code=ErrorCode.TAG_NOT_FOUND,
            details={field: tag_ref},
        )


class PostNotFoundError(NotFoundError):
    """Post not found."""

    def __init__(self, post_id: str) -> None:
        super().__init__(
            message=f"Post not found: {post_id}",
            error_code=ErrorCode.POST_NOT_FOUND,
            details={"post_id": post_id},
        )


# --- Duplicates / conflicts (409) ---


class DuplicateError(AppException):
    """Uniqueness violation."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.DUPLICATE,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=409,
            details=details,
        )


class DuplicateTagError(DuplicateError):
    """A tag with the same name or slug already exists."""

    def __init__(self, field: str, value: str) -> None:
        super().__init__(
            message=f"Tag {field} already exists: {value}",
            error_code=ErrorCode.DUPLICATE_TAG,
            details={field: value},
        )
        self.field = field


class ConflictError(AppException):
    """Operation conflicts with the current state of the resource."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFLICT,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=409,
            details=details,
        )


class TagInUseError(ConflictError):
    """Strict delete of a tag that is still attached to posts."""

    def __init__(self, tag_id: str, name: str, usage_count: int) -> None:
        super().__init__(
            message=(
                f"Cannot delete tag '{name}' that is used by posts "
                f"(usage count: {usage_count})"
            ),
            error_code=ErrorCode.TAG_IN_USE,
            details={"tag_id": tag_id, "usage_count": usage_count},
        )
