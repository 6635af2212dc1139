"""Error types raised by the chat gateway"""


class GatewayError(Exception):
    """Base class for all gateway errors"""

    def __init__(self, message: str, provider: str = "", operation: str = ""):
        self.provider = provider
        self.operation = operation
        prefix = ""
        if provider and operation:
            prefix = f"{provider} {operation}: "
        elif provider or operation:
            prefix = f"{provider or operation}: "
        super().__init__(prefix + message)


class ConfigError(GatewayError):
    """Unknown, disabled or missing provider, or a bad config file"""


class TransportError(GatewayError):
    """Connection failure, timeout or cancellation"""

    def __init__(self, message: str, provider: str = "", operation: str = "", cancelled: bool = False):
        self.cancelled = cancelled
        super().__init__(message, provider, operation)


class HTTPStatusError(GatewayError):
    """Vendor answered with a non-2xx status"""

    EXCERPT_LIMIT = 500

    def __init__(self, status: int, body: str, provider: str = "", operation: str = ""):
        self.status = status
        self.body_excerpt = body[: self.EXCERPT_LIMIT]
        super().__init__(
            f"API request failed with status {status}: {self.body_excerpt}",
            provider,
            operation,
        )


class DecodeError(GatewayError):
    """Response body does not match the expected schema"""


class UnsupportedOperationError(GatewayError):
    """Requested mode is not available for this provider kind"""
