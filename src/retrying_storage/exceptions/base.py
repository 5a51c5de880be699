"""
Base exception classes for storage operations.

Backend errors are translated into this hierarchy at the client boundary so
the retry executor can classify them without knowing the transport.
"""


class StorageError(Exception):
    """Base exception for all storage errors."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        backend: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.backend = backend

    def __str__(self) -> str:
        parts = [self.message]
        if self.backend:
            parts.insert(0, f"[{self.backend}]")
        if self.status_code:
            parts.append(f"(status: {self.status_code})")
        return " ".join(parts)


class DeadlineExceededError(StorageError):
    """Raised when the backend did not answer before its deadline."""

    def __init__(self, message: str = "Deadline exceeded", **kwargs):
        super().__init__(message, **kwargs)


class StorageConnectionError(StorageError):
    """Raised when the storage backend cannot be reached."""

    def __init__(self, message: str = "Connection failed", **kwargs):
        super().__init__(message, **kwargs)


class ContentionError(StorageError):
    """Raised when concurrent writers collided on the same entity."""

    def __init__(self, message: str = "Too much contention", **kwargs):
        super().__init__(message, **kwargs)


class AuthenticationError(StorageError):
    """Raised when the backend rejected the credentials."""

    def __init__(self, message: str = "Authentication failed", **kwargs):
        super().__init__(message, **kwargs)


class InvalidRequestError(StorageError):
    """Raised when the backend rejected a malformed request."""

    def __init__(self, message: str = "Invalid request", **kwargs):
        super().__init__(message, **kwargs)


class ServerError(StorageError):
    """Raised when the backend returns a 5xx error."""

    def __init__(self, message: str = "Server error", **kwargs):
        super().__init__(message, **kwargs)


class NoMoreRetriesError(StorageError):
    """
    Raised when a call used up its whole attempt budget.

    Always chained to the last underlying failure, which is also kept on
    ``last_error``.
    """

    def __init__(self, last_error: BaseException, attempts: int, **kwargs):
        super().__init__(
            f"No more tries for storage access after {attempts} attempts: {last_error}",
            **kwargs,
        )
        self.last_error = last_error
        self.attempts = attempts


class RetryCancelledError(StorageError):
    """Raised when a cancel signal stopped a call between attempts."""

    def __init__(self, message: str = "Retry cancelled", last_error: BaseException | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.last_error = last_error
