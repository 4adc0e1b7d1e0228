"""Error taxonomy shared by the API handlers and the client session."""


class SmartmarkError(Exception):
    """Base class for errors raised by smartmark."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(SmartmarkError):
    """Missing or malformed input. Reported to callers as a 400."""


class UpstreamError(SmartmarkError):
    """A third-party site or provider could not be used."""


class UpstreamTimeoutError(UpstreamError):
    """The upstream did not answer before the deadline."""


class UpstreamFetchError(UpstreamError):
    """
    The upstream answered with a failure status, or the transport failed.

    `status_code` is None when no response was received.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RateLimitedSubmission(SmartmarkError):
    """A create was submitted again before the minimum interval elapsed."""

    def __init__(self, retry_after: float) -> None:
        self.retry_after = retry_after
        super().__init__("Too fast, slow down")


class ApiError(SmartmarkError):
    """The smartmark API answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class StoreError(ApiError):
    """The store rejected an insert, update or delete."""
