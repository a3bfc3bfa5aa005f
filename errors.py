"""Exceptions raised by the turn pipeline.

None of these are fatal: the orchestrator, visual pipeline and critic each
turn them into a well formed :class:`models.TurnResult` at their own seam.
"""

from __future__ import annotations


class RedGiantError(Exception):
    """Base class for all game errors."""


class OracleUnavailable(RedGiantError):
    """The narrative model could not be reached or returned an error."""


class SchemaViolation(RedGiantError):
    """A model reply was missing a required field or could not be parsed."""


class ImageGenerationFailure(RedGiantError):
    """The image model returned no usable picture."""


class CriticUnavailable(RedGiantError):
    """The vision critic failed; callers treat this as a passing verdict."""


class TimeParseError(RedGiantError, ValueError):
    """A clock string was not in ``HH:MM`` form."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Malformed clock value: {value!r}")
        self.value = value


class TurnInProgress(RedGiantError):
    """A turn was submitted while another one is still resolving."""


class GameOver(RedGiantError):
    """Input was submitted after the session ended."""
