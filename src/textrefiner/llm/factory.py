from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional

import requests

from .base import ClientConfig
from .refinement_client import RefinementClient


def build_client(
    *, session: Optional[requests.Session] = None, **overrides: Any
) -> RefinementClient:
    """Build a RefinementClient from environment defaults.

    Keyword overrides map onto ClientConfig fields, e.g.
    `build_client(model="mistral:7b", max_attempts=5)`.
    """

    cfg = ClientConfig.from_env()
    if overrides:
        cfg = replace(cfg, **overrides)
    return RefinementClient(cfg, session=session)
