"""Chat-completion client with typed errors and retry/backoff.

Design goals:
- Hide transport and wire-format details behind `refine(text) -> str`.
- Classify every failure once, close to the HTTP call.
- Retry only what is transient, with predictable exponential backoff.
"""

from .base import ClientConfig
from .errors import (
    RefinementCancelled,
    RefinementError,
    ServiceError,
    ServiceErrorKind,
)
from .factory import build_client
from .refinement_client import RefinementClient
from .types import ChatMessage, CompletionRequest, CompletionResponse

__all__ = [
    "ChatMessage",
    "ClientConfig",
    "CompletionRequest",
    "CompletionResponse",
    "RefinementCancelled",
    "RefinementClient",
    "RefinementError",
    "ServiceError",
    "ServiceErrorKind",
    "build_client",
]
