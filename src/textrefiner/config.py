import math
import os

from dotenv import load_dotenv

# Load from .env if it exists (useful for local development)
load_dotenv()


def _env_float(name: str, default: float) -> float:
    try:
        value = float(os.getenv(name, default))
    except ValueError:
        return default
    return value if math.isfinite(value) else default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


# Chat-completion endpoint (Ollama's OpenAI-compatible route by default)
REFINER_ENDPOINT = os.getenv(
    "REFINER_ENDPOINT", "http://localhost:11434/v1/chat/completions"
)
REFINER_MODEL = os.getenv("REFINER_MODEL", "llama3.1:8b")

# --- CONFIG --- request / retry
REFINER_REQUEST_TIMEOUT_S = _env_float("REFINER_REQUEST_TIMEOUT_S", 30.0)
REFINER_MAX_ATTEMPTS = _env_int("REFINER_MAX_ATTEMPTS", 3)
REFINER_BASE_BACKOFF_S = _env_float("REFINER_BASE_BACKOFF_S", 1.0)

LOGGING_LEVEL = os.getenv("LOGGING_LEVEL", "").upper()
