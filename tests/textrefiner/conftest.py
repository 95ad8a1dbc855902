import json
import sys
from pathlib import Path

import pytest

# This repo uses a src/ layout, so when running tests without an editable
# install, we add <repo>/src to sys.path.
_SRC = str(Path(__file__).resolve().parents[2] / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)


class FakeResponse:
    """Just the parts of requests.Response the client reads."""

    def __init__(self, status_code: int, content=b""):
        self.status_code = status_code
        if isinstance(content, (dict, list)):
            content = json.dumps(content).encode("utf-8")
        elif isinstance(content, str):
            content = content.encode("utf-8")
        self.content = content


class FakeSession:
    """Scripted stand-in for requests.Session.

    Each `post` consumes the next outcome: a FakeResponse is returned, an
    exception is raised. The last outcome repeats once the script runs out.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []

    def post(self, url, data=None, headers=None, timeout=None):
        self.calls.append(
            {"url": url, "data": data, "headers": headers, "timeout": timeout}
        )
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(c["data"]) for c in self.calls]


@pytest.fixture
def completion_payload():
    """Fixture: factory for a chat-completion success body."""

    def _factory(*contents, usage=True):
        body = {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 1700000000,
            "model": "llama3.1:8b",
            "choices": [
                {
                    "index": i,
                    "message": {"role": "assistant", "content": c},
                    "finish_reason": "stop",
                }
                for i, c in enumerate(contents)
            ],
        }
        if usage:
            body["usage"] = {
                "prompt_tokens": 10,
                "completion_tokens": 5,
                "total_tokens": 15,
            }
        return body

    return _factory


@pytest.fixture
def ok_response(completion_payload):
    def _factory(content="Refined text."):
        return FakeResponse(200, completion_payload(content))

    return _factory


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def client_config():
    from textrefiner.llm.base import ClientConfig

    return ClientConfig(
        endpoint="http://localhost:11434/v1/chat/completions",
        model="llama3.1:8b",
        request_timeout_s=5.0,
        max_attempts=3,
        base_backoff_s=0.01,
    )


@pytest.fixture
def no_sleep(monkeypatch):
    """Record backoff delays instead of sleeping."""

    delays: list[float] = []
    monkeypatch.setattr("textrefiner.llm._retry.time.sleep", delays.append)
    return delays
