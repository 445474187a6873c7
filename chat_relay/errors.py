"""Exceptions raised by the chat relay."""
from typing import Any, Dict, Optional


class ChatRelayError(Exception):
    """Base exception for the chat relay.

    ``public_message`` is safe to hand to clients; ``message`` and
    ``details`` are meant for logs only.
    """

    status_code: int = 500
    public_message: str = "Internal server error. Please try again."

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(ChatRelayError):
    """Raised when an inbound message is empty or malformed."""

    status_code = 400
    public_message = "Message is required"

    def __init__(self, message: str = "Message is required", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "INVALID_INPUT", details)
        self.public_message = message


# ── Provider errors ─────────────────────────────────────────────────


class ProviderError(ChatRelayError):
    """Raised when the completion provider call fails."""

    def __init__(self, provider: str, message: str, error_code: str = "PROVIDER_ERROR",
                 details: Optional[Dict[str, Any]] = None):
        self.provider = provider
        super().__init__(f"{provider} provider error: {message}", error_code, details)


class QuotaExceededError(ProviderError):
    """The provider account has run out of quota or balance."""

    status_code = 429
    public_message = "API quota exceeded. Please try again later."

    def __init__(self, provider: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(provider, message, "QUOTA_EXCEEDED", details)


class RateLimitedError(ProviderError):
    """The provider throttled the request."""

    status_code = 429
    public_message = "Rate limit exceeded. Please wait a moment."

    def __init__(self, provider: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(provider, message, "RATE_LIMITED", details)


class ProviderUnavailableError(ProviderError):
    """The provider could not be reached or answered with a server error."""

    def __init__(self, provider: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(provider, message, "PROVIDER_UNAVAILABLE", details)


class ProviderTimeoutError(ProviderError):
    """The provider did not answer within the configured time."""

    status_code = 504
    public_message = "The assistant took too long to respond. Please try again."

    def __init__(self, provider: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(provider, message, "PROVIDER_TIMEOUT", details)


class UnknownProviderError(ProviderError):
    """Any provider failure that fits no other category."""

    def __init__(self, provider: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(provider, message, "PROVIDER_UNKNOWN", details)


# ── Registry errors ─────────────────────────────────────────────────


class RegistryError(ChatRelayError):
    """Raised on connection registry races. Never surfaced to other clients."""

    def __init__(self, message: str, error_code: str, connection_id: str):
        self.connection_id = connection_id
        super().__init__(message, error_code, {"connection_id": connection_id})


class UnknownConnectionError(RegistryError):
    """The connection is not (or no longer) registered."""

    def __init__(self, connection_id: str):
        super().__init__(f"Connection '{connection_id}' not found", "UNKNOWN_CONNECTION", connection_id)


class DuplicateConnectionError(RegistryError):
    """A connection with the same id is already registered."""

    def __init__(self, connection_id: str):
        super().__init__(f"Connection '{connection_id}' already registered", "DUPLICATE_CONNECTION", connection_id)


class ConnectionLimitError(RegistryError):
    """The registry is at its connection cap."""

    status_code = 503
    public_message = "Too many active connections, please try again later."

    def __init__(self, connection_id: str, limit: int):
        self.limit = limit
        super().__init__(f"Connection limit of {limit} reached", "CONNECTION_LIMIT", connection_id)


# ── Request limits ──────────────────────────────────────────────────


class TooManyRequestsError(ChatRelayError):
    """A client exceeded its request quota for the current window."""

    status_code = 429
    public_message = "Too many requests, please try again later."

    def __init__(self, client_key: str, limit_name: str):
        self.client_key = client_key
        super().__init__(
            f"Client '{client_key}' exceeded request limit '{limit_name}'",
            "TOO_MANY_REQUESTS",
            {"client": client_key, "limit": limit_name},
        )
