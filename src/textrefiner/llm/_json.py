from __future__ import annotations

import json
from typing import Any, Optional, Union

from jsonschema import validate
from jsonschema.exceptions import ValidationError as _SchemaValidationError

from .errors import ServiceError
from .types import (
    APIErrorEnvelope,
    ChatMessage,
    Choice,
    CompletionRequest,
    CompletionResponse,
    Usage,
)

_OPT_STRING = {"type": ["string", "null"]}
_OPT_INT = {"type": ["integer", "null"]}

COMPLETION_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["choices"],
    "properties": {
        "id": _OPT_STRING,
        "object": _OPT_STRING,
        "created": _OPT_INT,
        "model": _OPT_STRING,
        "choices": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "index": _OPT_INT,
                    "message": {
                        "type": ["object", "null"],
                        "properties": {
                            "role": {"type": "string"},
                            "content": _OPT_STRING,
                        },
                    },
                    "finish_reason": _OPT_STRING,
                },
            },
        },
        "usage": {
            "type": ["object", "null"],
            "properties": {
                "prompt_tokens": _OPT_INT,
                "completion_tokens": _OPT_INT,
                "total_tokens": _OPT_INT,
            },
        },
    },
}

API_ERROR_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["error"],
    "properties": {
        "error": {
            "type": "object",
            "required": ["message"],
            "properties": {
                "message": {"type": "string"},
                "type": _OPT_STRING,
                "param": _OPT_STRING,
                "code": {"type": ["string", "integer", "null"]},
            },
        }
    },
}


def encode_request(request: CompletionRequest) -> bytes:
    """Serialize a request body. NaN/inf temperatures are rejected."""

    try:
        return json.dumps(request.to_dict(), allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise ServiceError.encoding_error(e) from e


def _load(body: Union[bytes, str, None]) -> Any:
    if body is None or body == b"" or body == "":
        raise ValueError("empty response body")
    return json.loads(body)


def decode_response(body: Union[bytes, str, None]) -> CompletionResponse:
    """Parse and validate a 2xx chat-completion body."""

    try:
        data = _load(body)
        validate(instance=data, schema=COMPLETION_RESPONSE_SCHEMA)
    except _SchemaValidationError as e:
        raise ServiceError.decoding_error(e, message=e.message) from e
    except ValueError as e:
        raise ServiceError.decoding_error(e) from e

    choices = []
    for raw in data["choices"]:
        msg = raw.get("message")
        message = None
        if msg is not None:
            message = ChatMessage(
                role=msg.get("role", "assistant"), content=msg.get("content") or ""
            )
        choices.append(
            Choice(
                index=raw.get("index"),
                message=message,
                finish_reason=raw.get("finish_reason"),
            )
        )

    usage = None
    if data.get("usage") is not None:
        u = data["usage"]
        usage = Usage(
            prompt_tokens=u.get("prompt_tokens"),
            completion_tokens=u.get("completion_tokens"),
            total_tokens=u.get("total_tokens"),
        )

    return CompletionResponse(
        choices=tuple(choices),
        id=data.get("id"),
        object=data.get("object"),
        created=data.get("created"),
        model=data.get("model"),
        usage=usage,
    )


def decode_error_envelope(
    body: Union[bytes, str, None],
) -> Optional[APIErrorEnvelope]:
    """Best-effort parse of `{"error": {"message": ...}}`; None if absent."""

    try:
        data = _load(body)
        validate(instance=data, schema=API_ERROR_SCHEMA)
    except (ValueError, _SchemaValidationError):
        return None

    err = data["error"]
    code = err.get("code")
    return APIErrorEnvelope(
        message=err["message"],
        type=err.get("type"),
        param=err.get("param"),
        code=str(code) if code is not None else None,
    )
