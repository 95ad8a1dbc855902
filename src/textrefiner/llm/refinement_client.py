from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Optional
from urllib.parse import urlparse

import requests

from textrefiner import logger as logger_mod
from textrefiner.result import ProcessingResult

from ._json import decode_error_envelope, decode_response, encode_request
from ._retry import RetryConfig, execute_with_retry
from .base import ClientConfig, RefinementService
from .errors import RefinementCancelled, ServiceError
from .types import ChatMessage, CompletionRequest, CompletionResponse

log = logger_mod.get_logger()

REFINEMENT_PROMPT = (
    "You are a text refinement assistant. Clean up the following text by "
    "correcting grammar, improving clarity, and fixing any voice dictation "
    "errors. Maintain the original meaning and tone. Return only the refined "
    "text without explanations."
)
REFINEMENT_TEMPERATURE = 0.7

CONNECTION_TEST_MESSAGES = (
    ChatMessage.system("You are a helpful assistant."),
    ChatMessage.user("Hello, are you working?"),
)
CONNECTION_TEST_TEMPERATURE = 0.1

CANCEL_POLL_INTERVAL_S = 0.02

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

_URL_ERRORS = (
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
)


def is_valid_endpoint(endpoint: str) -> bool:
    try:
        parsed = urlparse(endpoint)
    except (TypeError, ValueError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class RefinementClient(RefinementService):
    """Client for an OpenAI-compatible chat-completion endpoint.

    `refine` retries transient failures (network, timeouts, 429, 5xx) with
    exponential backoff; `test_connection` makes exactly one attempt. The
    client keeps no per-call state, so one instance can serve concurrent
    callers.
    """

    def __init__(
        self,
        config: ClientConfig,
        session: Optional[requests.Session] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self._cfg = config
        # An injected session is the caller's; otherwise each thread gets its own.
        self._shared_session = session
        self._session_factory = session_factory
        self._local = threading.local()
        self._owned_sessions: list[requests.Session] = []
        self._owned_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(thread_name_prefix="textrefiner-http")
        self._retry = RetryConfig(
            max_attempts=config.max_attempts, base_delay_s=config.base_backoff_s
        )

    @property
    def config(self) -> ClientConfig:
        return self._cfg

    def close(self) -> None:
        """Close sessions this client created and stop its worker threads."""

        self._executor.shutdown(wait=False)
        with self._owned_lock:
            sessions, self._owned_sessions = self._owned_sessions, []
        for session in sessions:
            session.close()

    def __enter__(self) -> "RefinementClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session

        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            self._local.session = session
            with self._owned_lock:
                self._owned_sessions.append(session)
        return session

    # --- public API ---------------------------------------------------

    def refine(self, text: str, *, cancel: Optional[threading.Event] = None) -> str:
        request = CompletionRequest(
            model=self._cfg.model,
            messages=(ChatMessage.system(REFINEMENT_PROMPT), ChatMessage.user(text)),
            temperature=REFINEMENT_TEMPERATURE,
            stream=False,
        )
        log.debug(f"Refining {len(text)} chars with model {self._cfg.model}")

        response = execute_with_retry(
            lambda: self._perform_chat_completion(request, cancel=cancel),
            context="refining text",
            retry=self._retry,
            cancel=cancel,
        )

        refined = response.assistant_message
        if not refined:
            raise ServiceError.invalid_response()
        return refined.strip()

    def refine_result(
        self, text: str, *, cancel: Optional[threading.Event] = None
    ) -> ProcessingResult:
        """Like `refine`, but reports service failures as a result value."""

        try:
            refined = self.refine(text, cancel=cancel)
        except ServiceError as e:
            return ProcessingResult.failure(original_text=text, error=e)
        return ProcessingResult.success(original_text=text, refined_text=refined)

    def test_connection(self, *, cancel: Optional[threading.Event] = None) -> bool:
        request = CompletionRequest(
            model=self._cfg.model,
            messages=CONNECTION_TEST_MESSAGES,
            temperature=CONNECTION_TEST_TEMPERATURE,
            stream=False,
        )
        response = self._perform_chat_completion(request, cancel=cancel)
        return bool(response.assistant_message)

    def is_available(self) -> bool:
        try:
            return self.test_connection()
        except Exception as e:  # noqa: BLE001
            log.debug(f"LLM service unavailable: {e}")
            return False

    # --- single attempt -----------------------------------------------

    def _post(self, body: bytes) -> Any:
        try:
            return self._session().post(
                self._cfg.endpoint,
                data=body,
                headers=JSON_HEADERS,
                timeout=self._cfg.request_timeout_s,
            )
        except _URL_ERRORS as e:
            raise ServiceError.invalid_url(self._cfg.endpoint) from e
        except requests.exceptions.Timeout as e:
            raise ServiceError.timeout(e) from e
        except (requests.exceptions.RequestException, OSError) as e:
            raise ServiceError.network_error(e) from e

    def _post_cancellable(self, body: bytes, cancel: threading.Event) -> Any:
        """Run the POST on a worker thread so a cancel does not wait for it.

        The abandoned request finishes in the background, bounded by the
        request timeout; its outcome is dropped.
        """

        if cancel.is_set():
            raise RefinementCancelled("Cancelled before chat completion request")

        future = self._executor.submit(self._post, body)
        while True:
            try:
                response = future.result(timeout=CANCEL_POLL_INTERVAL_S)
            except FutureTimeoutError:
                if cancel.is_set():
                    future.cancel()
                    raise RefinementCancelled(
                        "Cancelled during chat completion request"
                    ) from None
                continue

            if cancel.is_set():
                raise RefinementCancelled("Cancelled during chat completion request")
            return response

    def _perform_chat_completion(
        self,
        request: CompletionRequest,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> CompletionResponse:
        if not is_valid_endpoint(self._cfg.endpoint):
            raise ServiceError.invalid_url(self._cfg.endpoint)

        body = encode_request(request)
        if cancel is None:
            response = self._post(body)
        else:
            response = self._post_cancellable(body, cancel)

        if response is None:
            raise ServiceError.no_response()

        status = response.status_code
        if 200 <= status <= 299:
            return decode_response(response.content)
        if status in (401, 403):
            raise ServiceError.authentication_failed()
        if status == 429:
            raise ServiceError.rate_limit_exceeded()
        if 500 <= status <= 599:
            raise ServiceError.service_unavailable()

        envelope = decode_error_envelope(response.content)
        if envelope is not None:
            raise ServiceError.api_error(envelope.message)
        log.debug(f"Unexpected HTTP {status} without error envelope")
        raise ServiceError.invalid_response()
