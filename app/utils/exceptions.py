"""
Custom exceptions for the pool occupancy service.

Provides a hierarchy of exceptions for different error scenarios:
- Ingestion errors (CrowdMonitor WebSocket feed)
- Store errors (occupancy table reads and writes)
- API surface errors (unknown routes, unsupported methods)
"""


class PoolMonitorError(Exception):
    """Base exception for all pool occupancy service errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


# =============================================================================
# Ingestion Exceptions
# =============================================================================

class IngestionError(PoolMonitorError):
    """Base exception for scrape failures. No records are produced."""
    pass


class UpgradeFailure(IngestionError):
    """The upstream refused or failed the WebSocket upgrade."""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)


class UpstreamTimeoutError(IngestionError):
    """No snapshot message arrived within the timeout window."""

    def __init__(self, message: str, timeout: float | None = None):
        self.timeout = timeout
        super().__init__(message)


class ParseError(IngestionError):
    """The snapshot message was not a JSON array of pool entries."""

    def __init__(self, message: str, payload: str | None = None):
        self.payload = payload
        super().__init__(message)


class ChannelError(IngestionError):
    """The channel was closed or errored before the snapshot arrived."""
    pass


# =============================================================================
# Store Exceptions
# =============================================================================

class StoreError(PoolMonitorError):
    """Base exception for occupancy store errors."""
    pass


class StoreWriteFailure(StoreError):
    """An append or delete could not be committed."""
    pass


class StoreReadFailure(StoreError):
    """A snapshot or history query failed."""
    pass


# =============================================================================
# API Exceptions
# =============================================================================

class ValidationError(PoolMonitorError):
    """
    Bad query parameter. Kept to complete the error taxonomy only: the API
    normalizes parameters (see clamp_hours) and never raises or catches this.
    """
    pass


class ApiError(PoolMonitorError):
    """Error surfaced to API consumers as a JSON body."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


class RouteNotFound(ApiError):
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class MethodNotAllowed(ApiError):
    status_code = 405

    def __init__(self, message: str = "Method not allowed"):
        super().__init__(message)


__all__ = [
    "PoolMonitorError",
    "IngestionError",
    "UpgradeFailure",
    "UpstreamTimeoutError",
    "ParseError",
    "ChannelError",
    "StoreError",
    "StoreWriteFailure",
    "StoreReadFailure",
    "ValidationError",
    "ApiError",
    "RouteNotFound",
    "MethodNotAllowed",
]
