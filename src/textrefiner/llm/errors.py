from __future__ import annotations

from enum import Enum
from typing import Optional


class RefinementError(RuntimeError):
    pass


class RefinementCancelled(RefinementError):
    """Raised when the caller cancels an in-progress refinement."""


class ServiceErrorKind(str, Enum):
    INVALID_URL = "invalid_url"
    NO_RESPONSE = "no_response"
    INVALID_RESPONSE = "invalid_response"
    NETWORK_ERROR = "network_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    TIMEOUT = "timeout"
    API_ERROR = "api_error"
    DECODING_ERROR = "decoding_error"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    AUTHENTICATION_FAILED = "authentication_failed"


RETRYABLE_KINDS = frozenset(
    {
        ServiceErrorKind.NETWORK_ERROR,
        ServiceErrorKind.SERVICE_UNAVAILABLE,
        ServiceErrorKind.TIMEOUT,
        ServiceErrorKind.RATE_LIMIT_EXCEEDED,
    }
)

_DESCRIPTIONS = {
    ServiceErrorKind.INVALID_URL: "Invalid API endpoint URL",
    ServiceErrorKind.NO_RESPONSE: "No response received from the API",
    ServiceErrorKind.INVALID_RESPONSE: "Invalid response format from the API",
    ServiceErrorKind.NETWORK_ERROR: "Network error",
    ServiceErrorKind.SERVICE_UNAVAILABLE: "LLM service is currently unavailable",
    ServiceErrorKind.TIMEOUT: "Request timed out",
    ServiceErrorKind.API_ERROR: "API error",
    ServiceErrorKind.DECODING_ERROR: "Failed to decode response",
    ServiceErrorKind.RATE_LIMIT_EXCEEDED: "Rate limit exceeded",
    ServiceErrorKind.AUTHENTICATION_FAILED: "Authentication failed",
}


def is_retryable(kind: ServiceErrorKind) -> bool:
    return kind in RETRYABLE_KINDS


class ServiceError(RefinementError):
    """A classified failure talking to the chat-completion endpoint.

    The kind decides retryability; `message` and `cause` are optional payload
    used for the human-readable text.
    """

    def __init__(
        self,
        kind: ServiceErrorKind,
        message: Optional[str] = None,
        cause: Optional[BaseException] = None,
        description: Optional[str] = None,
    ):
        self.kind = kind
        self.message = message
        self.cause = cause
        self._description = description or _DESCRIPTIONS[kind]
        super().__init__(self._describe())

    def _describe(self) -> str:
        base = self._description
        if self.message:
            return f"{base}: {self.message}"
        if self.cause is not None:
            return f"{base}: {self.cause}"
        return base

    @property
    def retryable(self) -> bool:
        return is_retryable(self.kind)

    def __repr__(self) -> str:
        return f"ServiceError(kind={self.kind.name}, message={self.message!r})"

    # --- constructors -------------------------------------------------

    @classmethod
    def invalid_url(cls, endpoint: Optional[str] = None) -> "ServiceError":
        return cls(ServiceErrorKind.INVALID_URL, message=endpoint)

    @classmethod
    def no_response(cls) -> "ServiceError":
        return cls(ServiceErrorKind.NO_RESPONSE)

    @classmethod
    def invalid_response(cls) -> "ServiceError":
        return cls(ServiceErrorKind.INVALID_RESPONSE)

    @classmethod
    def network_error(cls, cause: BaseException) -> "ServiceError":
        return cls(ServiceErrorKind.NETWORK_ERROR, cause=cause)

    @classmethod
    def service_unavailable(cls) -> "ServiceError":
        return cls(ServiceErrorKind.SERVICE_UNAVAILABLE)

    @classmethod
    def timeout(cls, cause: Optional[BaseException] = None) -> "ServiceError":
        return cls(ServiceErrorKind.TIMEOUT, cause=cause)

    @classmethod
    def api_error(cls, message: str) -> "ServiceError":
        return cls(ServiceErrorKind.API_ERROR, message=message)

    @classmethod
    def decoding_error(
        cls, cause: BaseException, message: Optional[str] = None
    ) -> "ServiceError":
        return cls(ServiceErrorKind.DECODING_ERROR, message=message, cause=cause)

    @classmethod
    def encoding_error(cls, cause: BaseException) -> "ServiceError":
        # Request serialization failures share the decoding-error kind.
        return cls(
            ServiceErrorKind.DECODING_ERROR,
            cause=cause,
            description="Failed to encode request",
        )

    @classmethod
    def rate_limit_exceeded(cls) -> "ServiceError":
        return cls(ServiceErrorKind.RATE_LIMIT_EXCEEDED)

    @classmethod
    def authentication_failed(cls) -> "ServiceError":
        return cls(ServiceErrorKind.AUTHENTICATION_FAILED)
