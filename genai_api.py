"""Gemini client plumbing shared by the narrative, image and critic services.

Every oracle accepts an injected client; when none is given it falls back to
a process-wide client built from ``GEMINI_API_KEY``.  :func:`require_client`
turns a missing key into the caller's own error type so each service can fail
in its own terms (degraded turn, failed image attempt, passing critic).
"""
from __future__ import annotations

import os
import logging
from google import genai
from google.genai import types, errors

from errors import RedGiantError
from utils import get_user_env_var

logger = logging.getLogger(__name__)

API_KEY_VAR = "GEMINI_API_KEY"

# Shared client and the key it was built with
client: genai.Client | None = None
_client_key: str | None = None


def resolve_api_key() -> str:
    """Process environment first, then the user-level variable.

    A key found at user level is exported so the SDK sees it too.
    """
    key = (os.environ.get(API_KEY_VAR) or get_user_env_var(API_KEY_VAR) or "").strip()
    if key:
        os.environ[API_KEY_VAR] = key
    return key


def _forget_client() -> None:
    global client, _client_key
    client = None
    _client_key = None


def ensure_client() -> genai.Client | None:
    """Shared client for the current key, or ``None`` while offline.

    Rotating the key rebuilds the client on the next call.
    """
    global client, _client_key
    key = resolve_api_key()
    if not key:
        logger.warning("%s is not set; Red Giant oracles are offline", API_KEY_VAR)
        _forget_client()
        return None
    if client is not None and key == _client_key:
        return client
    try:
        client = genai.Client(api_key=key)
    except Exception as exc:
        logger.error("Failed to create GenAI client: %s", exc)
        _forget_client()
        return None
    _client_key = key
    logger.info("Gemini client ready")
    return client


def require_client(explicit, error_cls: type[RedGiantError], service: str):
    """Return *explicit* or the shared client, raising *error_cls* if neither exists."""
    found = explicit if explicit is not None else ensure_client()
    if found is None:
        raise error_cls(f"No Gemini client available for the {service}")
    return found


__all__ = [
    "API_KEY_VAR",
    "client",
    "ensure_client",
    "require_client",
    "resolve_api_key",
    "types",
    "errors",
    "genai",
]
