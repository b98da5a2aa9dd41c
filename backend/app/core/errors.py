"""API error classes.

HTTP status codes and error codes for the application wizard service,
plus the failures raised while talking to the recruiting platform.

WHY CUSTOM ERROR CLASSES:
- Consistent error response format across all endpoints
- Easy to map to HTTP status codes in exception handlers
- The wizard controller can tell recoverable platform failures
  (NetworkError and its subclasses) from contract violations
"""


class APIError(Exception):
    """Base class for API errors.

    All API errors have a code, message, and HTTP status.
    Subclasses set default status_code.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(APIError):
    """Field validation failed (400).

    Raised for field input that cannot be stored (wrong type, unknown
    option, unknown field). Never reaches the platform.
    """

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedError(APIError):
    """Authentication required (401)."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
        )


class ForbiddenError(APIError):
    """Not allowed to access resource (403).

    Use when the caller is authenticated but the action is not permitted,
    e.g. applying in-platform to an externally sourced job.
    """

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            code="FORBIDDEN",
            message=message,
            status_code=403,
        )


class NotFoundError(APIError):
    """Resource not found (404).

    WHY NOT SEPARATE "FORBIDDEN" FOR WRONG OWNERSHIP:
    - Revealing "exists but not yours" leaks information
    - From user perspective, resource simply doesn't exist
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
        )


class InvalidStateError(APIError):
    """Business rule violation (422).

    Use when the request is well formed but the wizard is in the wrong
    state for it, e.g. editing an application that was already submitted.
    """

    def __init__(self, message: str) -> None:
        super().__init__(
            code="INVALID_STATE_TRANSITION",
            message=message,
            status_code=422,
        )


class ServiceUnavailableError(APIError):
    """Too many live wizard sessions (503)."""

    def __init__(self, message: str = "Service temporarily unavailable") -> None:
        super().__init__(
            code="SERVICE_UNAVAILABLE",
            message=message,
            status_code=503,
        )


class InternalError(APIError):
    """Unexpected server error (500).

    Use for unhandled exceptions. Never expose stack traces to clients.
    """

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(
            code="INTERNAL_ERROR",
            message=message,
            status_code=500,
        )


# =============================================================================
# Platform errors
# =============================================================================

GENERIC_NETWORK_MESSAGE = "Something went wrong. Please try again."
"""Banner text when the platform gives no usable ``error`` field."""


class NetworkError(APIError):
    """Platform call failed (502).

    Non-OK response or transport failure. ``message`` is the human-readable
    text from the response body's ``error`` field, or a generic fallback.
    Always retryable by the user.

    Attributes:
        upstream_status: Platform HTTP status, None for transport failures.
        transient: True for timeouts, connection errors and 5xx responses.
    """

    def __init__(
        self,
        message: str = GENERIC_NETWORK_MESSAGE,
        upstream_status: int | None = None,
        transient: bool = False,
    ) -> None:
        self.upstream_status = upstream_status
        self.transient = transient
        super().__init__(
            code="NETWORK_ERROR",
            message=message,
            status_code=502,
        )


class TemplateLoadError(NetworkError):
    """Question template could not be fetched.

    Non-fatal: the wizard proceeds without the additional-questions step.
    """


class DocumentListError(NetworkError):
    """Resume or cover listing could not be fetched.

    Non-fatal: the wizard renders with an empty list and a notice.
    """
