from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(role="assistant", content=content)

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class CompletionRequest:
    """Body of a chat-completion POST.

    `temperature` and `max_tokens` are always serialized, as null when unset.
    """

    model: str
    messages: tuple[ChatMessage, ...]
    temperature: Optional[float] = 0.7
    max_tokens: Optional[int] = None
    stream: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "messages", tuple(self.messages))

        if self.temperature is not None and not 0.0 <= self.temperature <= 2.0:
            raise ValueError(
                f"temperature must be within [0, 2], got {self.temperature}"
            )
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive, got {self.max_tokens}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [m.to_dict() for m in self.messages],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": self.stream,
        }


@dataclass(frozen=True)
class Choice:
    index: Optional[int] = None
    message: Optional[ChatMessage] = None
    finish_reason: Optional[str] = None


@dataclass(frozen=True)
class Usage:
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


@dataclass(frozen=True)
class CompletionResponse:
    """Decoded chat-completion response.

    Only the first choice's message content carries business value; the rest
    is kept for diagnostics.
    """

    choices: tuple[Choice, ...] = field(default_factory=tuple)
    id: Optional[str] = None
    object: Optional[str] = None
    created: Optional[int] = None
    model: Optional[str] = None
    usage: Optional[Usage] = None

    @property
    def assistant_message(self) -> Optional[str]:
        if not self.choices:
            return None
        message = self.choices[0].message
        return message.content if message is not None else None


@dataclass(frozen=True)
class APIErrorEnvelope:
    """The `error` object of a non-2xx response body."""

    message: str
    type: Optional[str] = None
    param: Optional[str] = None
    code: Optional[str] = None
