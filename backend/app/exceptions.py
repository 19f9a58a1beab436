"""
VideoTube Backend — Custom Exception Hierarchy
================================================

What:  Domain errors for accounts, uploads, videos and persistence.
How:   Every error carries a client-safe message plus a context dict for logs;
       main.register_exception_handlers turns each class into an
       ErrorResponse envelope with its status code.
Who:   Raised by services, dependencies and middleware; caught by global handlers.

Exception Hierarchy:
    VideoTubeError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (duplicate username/email)
    ├── FileStorageError         → 500 Internal Server Error
    ├── DatabaseError            → 500 Internal Server Error
    └── RemoteStoreError         → 502 Bad Gateway

The one exception to "errors propagate as exceptions":
    UploadHandoff never raises. A RemoteStoreError raised by the store is
    absorbed there and reported as a None result (or an UploadError value
    from transfer_outcome). Callers decide which of the errors above to raise.
"""

from typing import Any, Dict, Optional


class VideoTubeError(Exception):
    """
    Base exception for all VideoTube application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where a handler opts in)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(VideoTubeError):
    """
    Raised when client input fails validation.

    When:    Missing required fields, short username, malformed email,
             unsupported file type, missing avatar.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(VideoTubeError):
    """
    Raised when a request is not authenticated.

    When:    Missing/expired/tampered JWT, wrong password, revoked refresh token.
    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Unauthorized request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(VideoTubeError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(VideoTubeError):
    """
    Raised when a write would violate a uniqueness rule.

    When:    Registering with a username or email that already exists.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(VideoTubeError):
    """
    Raised when a local file operation fails or an upload could not be completed.

    When:    Disk full or permission denied while staging; the upload handoff
             reported no result for a required file.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(VideoTubeError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error (message is always generic; details are logged)
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RemoteStoreError(VideoTubeError):
    """
    Raised by a RemoteStore implementation when the remote service call fails.

    What:    Wraps SDK and I/O errors (network, quota, invalid payload, unreadable file).
    HTTP:    502 Bad Gateway, if it ever escapes a route (UploadHandoff absorbs it).
    """

    def __init__(
        self,
        message: str = "Remote storage request failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
