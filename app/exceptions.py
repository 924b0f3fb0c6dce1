"""
Domain errors raised by services and translated to HTTP responses in app.main
"""


class QuizPlatformError(Exception):
    """Base class for errors with a client-facing status code"""

    status_code = 500
    error = "internal_server_error"

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message)
        self.message = message


class NotFoundError(QuizPlatformError):
    """Entity is absent or not visible to the caller"""

    status_code = 404
    error = "not_found"


class InvalidStateError(QuizPlatformError):
    """Request is well-formed but cannot be applied to the current state"""

    status_code = 400
    error = "invalid_state"


class StorageFailureError(QuizPlatformError):
    """Unexpected persistence error; details are logged, never returned"""

    status_code = 500
    error = "storage_failure"

    def __init__(self, message: str = "A storage error occurred. Please try again later."):
        super().__init__(message)
