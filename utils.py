"""Utility helpers shared by the Red Giant services."""

from collections.abc import Mapping, Sequence
import os
import sys
import unicodedata

if sys.platform.startswith("win"):
    import winreg
else:  # pragma: no cover - platform specific
    winreg = None


def get_user_env_var(name: str) -> str | None:
    r"""Retrieve a user-level environment variable.

    On Windows the ``HKCU\Environment`` registry key is consulted so that keys
    configured globally are found even when the current process environment
    lacks them.  Elsewhere this is just ``os.environ``.
    """
    if not sys.platform.startswith("win") or winreg is None:
        return os.environ.get(name)
    try:
        reg_key = winreg.OpenKey(winreg.HKEY_CURRENT_USER, "Environment")
        try:
            value, _ = winreg.QueryValueEx(reg_key, name)
            return value
        finally:
            winreg.CloseKey(reg_key)
    except FileNotFoundError:
        return os.environ.get(name)


def clean_unicode(obj):
    """Recursively strip Unicode control characters from nested structures.

    Newlines and tabs survive; the story text relies on them for layout.
    """
    if isinstance(obj, str):
        return "".join(
            ch for ch in obj if ch in "\n\t" or unicodedata.category(ch)[0] != "C"
        )
    if isinstance(obj, Mapping):
        return {k: clean_unicode(v) for k, v in obj.items()}
    if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes)):
        return type(obj)(clean_unicode(v) for v in obj)
    return obj


def strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence from a model reply."""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def get_prompt_tokens(usage) -> int:
    """Return the prompt token count from usage metadata, or ``0``."""
    if usage is None:
        return 0
    return getattr(usage, "prompt_token_count", None) or 0


def get_response_tokens(usage) -> int:
    """Return generated token count from a usage metadata object.

    The Google GenAI SDK exposes this as ``response_token_count`` on the
    newer surfaces and ``candidates_token_count`` on
    ``models.generate_content``.  Both are checked; ``0`` when neither is set.
    """
    if usage is None:
        return 0

    if getattr(usage, "response_token_count", None) is not None:
        return usage.response_token_count

    if getattr(usage, "candidates_token_count", None) is not None:
        return usage.candidates_token_count

    return 0
