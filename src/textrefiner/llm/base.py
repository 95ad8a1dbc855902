from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from typing import Optional, Protocol

from textrefiner import config


@dataclass(frozen=True)
class ClientConfig:
    """Immutable settings for one RefinementClient.

    Build a new client when any of these change.
    """

    endpoint: str
    model: str
    request_timeout_s: float = 30.0
    max_attempts: int = 3
    base_backoff_s: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            object.__setattr__(self, "max_attempts", 1)

        if not math.isfinite(self.base_backoff_s):
            object.__setattr__(self, "base_backoff_s", 1.0)
        elif self.base_backoff_s < 0:
            object.__setattr__(self, "base_backoff_s", 0.0)

        if not math.isfinite(self.request_timeout_s) or self.request_timeout_s <= 0:
            object.__setattr__(self, "request_timeout_s", 30.0)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        return cls(
            endpoint=config.REFINER_ENDPOINT,
            model=config.REFINER_MODEL,
            request_timeout_s=config.REFINER_REQUEST_TIMEOUT_S,
            max_attempts=config.REFINER_MAX_ATTEMPTS,
            base_backoff_s=config.REFINER_BASE_BACKOFF_S,
        )


class RefinementService(Protocol):
    """What the surrounding application needs from a refinement backend."""

    def refine(self, text: str, *, cancel: Optional[threading.Event] = None) -> str:
        raise NotImplementedError

    def test_connection(self, *, cancel: Optional[threading.Event] = None) -> bool:
        raise NotImplementedError

    def is_available(self) -> bool:
        raise NotImplementedError
