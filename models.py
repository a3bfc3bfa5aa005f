"""Data models exchanged with the Gemini services and returned per turn."""

import base64
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from state import GameState


class SoundCue(str, Enum):
    """Ambient sound chosen by the narrative model for a turn."""

    NONE = "NONE"
    FOOTSTEPS = "FOOTSTEPS"
    CLOTH_RUSTLE = "CLOTH_RUSTLE"
    DOOR_OPEN = "DOOR_OPEN"
    HEARTBEAT = "HEARTBEAT"
    ALARM = "ALARM"
    FIRE_CRACKLE = "FIRE_CRACKLE"
    BREATHING = "BREATHING"


class CritiqueError(str, Enum):
    """Failure categories reported by the vision critic."""

    THIRD_PERSON = "THIRD_PERSON"
    HALLUCINATION = "HALLUCINATION"
    CONTEXT_ERROR = "CONTEXT_ERROR"
    NONE = "NONE"


class NarrativeResponse(BaseModel):
    """Turn proposal returned by the narrative model.

    Every key is required; a reply missing any of them, or any
    :class:`state.GameState` field, fails validation.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    story: str
    image_prompt: str = Field(alias="imagePrompt")
    sound_cue: SoundCue = Field(alias="soundCue")
    game_state: GameState = Field(alias="gameState")


class CritiqueVerdict(BaseModel):
    """Structured verdict for a generated scene image."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    valid: bool
    error_type: CritiqueError = Field(default=CritiqueError.NONE, alias="errorType")
    fix_instruction: str = Field(default="", alias="fixInstruction")


class SceneImage(BaseModel):
    """An accepted scene picture, always JPEG encoded."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = "image/jpeg"

    @property
    def data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class TurnResult(BaseModel):
    """Everything the front-end needs to present one resolved turn."""

    model_config = ConfigDict(frozen=True)

    story: str
    image_prompt: str
    sound_cue: SoundCue
    game_state: GameState
    image: SceneImage | None = None
    degraded: bool = False

    @property
    def image_ref(self) -> str | None:
        return self.image.data_uri if self.image else None
