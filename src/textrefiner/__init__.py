"""textrefiner

Resilient client for OpenAI-compatible chat-completion endpoints, used to
clean up dictated or rough text with a local LLM.

External code should only need:

    from textrefiner import build_client

    client = build_client()
    refined = client.refine("this is  some text i dictated")
"""

from .llm import ClientConfig, RefinementClient, ServiceError, build_client
from .result import ProcessingResult

__all__ = [
    "ClientConfig",
    "ProcessingResult",
    "RefinementClient",
    "ServiceError",
    "build_client",
]
