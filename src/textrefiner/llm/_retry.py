from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from textrefiner import logger as logger_mod

from .errors import RefinementCancelled, ServiceError

log = logger_mod.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Retry/backoff settings for chat-completion calls.

    `max_attempts` counts the first try; `base_delay_s` is the wait before the
    first retry and doubles for each retry after that.
    """

    max_attempts: int = 3
    base_delay_s: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            object.__setattr__(self, "max_attempts", 1)

        if not math.isfinite(self.base_delay_s):
            object.__setattr__(self, "base_delay_s", 1.0)
        elif self.base_delay_s < 0:
            object.__setattr__(self, "base_delay_s", 0.0)

    def delay_for(self, retry_index: int) -> float:
        """Backoff before retry `retry_index` (1 = first retry)."""
        return self.base_delay_s * (2 ** (retry_index - 1))


def _raise_if_cancelled(cancel: Optional[threading.Event], context: str) -> None:
    if cancel is not None and cancel.is_set():
        raise RefinementCancelled(f"Cancelled while {context}")


def _sleep_with_backoff(
    *,
    delay_s: float,
    attempt: int,
    max_attempts: int,
    context: str,
    error: ServiceError,
    cancel: Optional[threading.Event],
) -> None:
    log.warning(
        f"⚠️ Retryable error while {context} ({error}); retrying in {delay_s:.2f}s "
        f"(attempt {attempt}/{max_attempts})"
    )
    if cancel is None:
        time.sleep(delay_s)
        return

    if cancel.wait(delay_s):
        raise RefinementCancelled(f"Cancelled while {context}")


def execute_with_retry(
    fn: Callable[[], T],
    *,
    context: str,
    retry: RetryConfig | None = None,
    cancel: Optional[threading.Event] = None,
) -> T:
    """Run `fn` with exponential backoff on retryable ServiceErrors.

    The value returned by `fn` is passed through untouched. The error of the
    final attempt is raised as-is.
    """

    retry = retry or RetryConfig()
    last_error: ServiceError | None = None

    for attempt in range(1, retry.max_attempts + 1):
        _raise_if_cancelled(cancel, context)
        try:
            result = fn()
            _raise_if_cancelled(cancel, context)
            return result

        except RefinementCancelled:
            raise

        except ServiceError as e:
            last_error = e
            if (not e.retryable) or attempt == retry.max_attempts:
                _raise_if_cancelled(cancel, context)
                log.error(
                    f"❌ Error while {context} "
                    f"(attempt {attempt}/{retry.max_attempts}): {e}"
                )
                raise

        except Exception as e:
            # Unclassified failures from the operation are treated as transport errors.
            wrapped = ServiceError.network_error(e)
            last_error = wrapped
            if attempt == retry.max_attempts:
                _raise_if_cancelled(cancel, context)
                log.error(
                    f"❌ Unclassified error while {context} "
                    f"(attempt {attempt}/{retry.max_attempts}): {e}"
                )
                raise wrapped from e

        _sleep_with_backoff(
            delay_s=retry.delay_for(attempt),
            attempt=attempt,
            max_attempts=retry.max_attempts,
            context=context,
            error=last_error,
            cancel=cancel,
        )

    # Defensive: should be unreachable
    if last_error:
        raise last_error
    raise ServiceError.no_response()
