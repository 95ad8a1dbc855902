from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from textrefiner.llm.errors import ServiceError


class ProcessingStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    QUEUED = "queued"


@dataclass(frozen=True)
class ProcessingResult:
    """Outcome of one refinement, as handed back to the application shell.

    `queued` marks text the shell has scheduled for another try later
    (e.g. the next batch run); `retry_attempt` counts those re-queues.
    """

    status: ProcessingStatus
    original_text: Optional[str] = None
    refined_text: Optional[str] = None
    error: Optional["ServiceError"] = None
    retry_attempt: int = 0

    @classmethod
    def success(cls, *, original_text: str, refined_text: str) -> "ProcessingResult":
        return cls(
            status=ProcessingStatus.SUCCESS,
            original_text=original_text,
            refined_text=refined_text,
        )

    @classmethod
    def failure(
        cls, *, error: "ServiceError", original_text: Optional[str] = None
    ) -> "ProcessingResult":
        return cls(
            status=ProcessingStatus.FAILURE, original_text=original_text, error=error
        )

    @classmethod
    def queued(
        cls, *, retry_attempt: int, original_text: Optional[str] = None
    ) -> "ProcessingResult":
        return cls(
            status=ProcessingStatus.QUEUED,
            original_text=original_text,
            retry_attempt=retry_attempt,
        )

    @property
    def is_success(self) -> bool:
        return self.status is ProcessingStatus.SUCCESS

    @property
    def error_message(self) -> str:
        return str(self.error) if self.error is not None else ""
