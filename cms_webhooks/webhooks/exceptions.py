"""Webhook exception hierarchy.

Delivery failures are raised by the executor and always caught by the
dispatcher. Store failures propagate up to the service boundary, which
turns them into generic failure results.
"""


class WebhookError(Exception):
    """Base exception for webhook subsystem errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DeliveryError(WebhookError):
    """Raised when a request fails without an HTTP response.

    Covers connection errors, DNS failures and timeouts. `duration_ms`
    is measured up to the moment the error surfaced.
    """

    def __init__(self, message: str, duration_ms: int) -> None:
        super().__init__(message)
        self.duration_ms = duration_ms


class WebhookNotFoundError(WebhookError):
    """Raised when a webhook or log entry doesn't exist."""


class ConcurrentUpdateError(WebhookError):
    """Raised when a log entry changed since it was read."""

    def __init__(self, message: str, expected_version: int, actual_version: int) -> None:
        super().__init__(message)
        self.expected_version = expected_version
        self.actual_version = actual_version
