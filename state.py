from __future__ import annotations

"""Game state model and the fixed opening snapshot."""

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


RESOURCE_MIN = 0
RESOURCE_MAX = 100


class GamePhase(str, Enum):
    """Narrative stages, in the order the story moves through them."""

    AWAKENING = "awakening"
    GATHERING = "gathering"
    RUN_TO_BUNKER = "run_to_bunker"
    BUNKER_LIFE = "bunker_life"
    WASTELAND_EXPLORATION = "wasteland_exploration"
    BASE_LOOTING = "base_looting"
    SPACE_LAUNCH = "space_launch"
    MARS_COLONIZATION = "mars_colonization"


class GameState(BaseModel):
    """A single world snapshot.

    Instances are frozen; every turn produces a new snapshot via
    :meth:`pydantic.BaseModel.model_copy`.  Field aliases match the camelCase
    keys used by the narrative model's JSON replies.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    health: int
    oxygen: int
    hunger: int
    thirst: int
    temperature: int
    time: str
    location: str
    inventory: tuple[str, ...]
    knowledge_base: tuple[str, ...] = Field(alias="knowledgeBase")
    visual_context: str = Field(alias="visualContext")
    is_game_over: bool = Field(alias="isGameOver")
    game_phase: GamePhase = Field(alias="gamePhase")

    @field_validator("health", "oxygen", "hunger", "thirst", "temperature", mode="before")
    @classmethod
    def _truncate_fractional(cls, value):
        # Models sometimes answer 45.0 or 44.5; stats are whole numbers.
        if isinstance(value, float):
            if not math.isfinite(value):
                raise ValueError(f"stat must be a finite number, got {value}")
            return int(value)
        return value

    def to_wire(self) -> dict:
        """Return the camelCase mapping the narrative model understands."""

        return self.model_dump(mode="json", by_alias=True)


def clamp_resource(value: int | float) -> int:
    """Clamp *value* into the ``[0, 100]`` resource range."""

    return int(max(RESOURCE_MIN, min(RESOURCE_MAX, value)))


def initial_state() -> GameState:
    """Return the snapshot every session starts from: 03:00, in bed."""

    return GameState(
        health=100,
        oxygen=100,
        hunger=100,
        thirst=100,
        temperature=28,
        time="03:00",
        location="Спальня (Кровать)",
        inventory=("Смартфон",),
        knowledge_base=(
            "СТАТУС: Игрок проснулся в 03:00 ночи.",
            "ЛОР: 4 Миллиарда лет спустя. Красный Гигант занимает полнеба.",
            "ЛОР: Возраст игрока заморожен, но тело уязвимо.",
            "ЦЕЛЬ: Выжить до рассвета (05:00) и найти БУНКЕРА.",
            "ОКРУЖЕНИЕ: 03:00. Ночь. Темно, но горизонт светится красным.",
        ),
        visual_context=(
            "POV: Лежу в кровати. Видны мои ноги под одеялом. Темная спальня, "
            "слабый красный свет сквозь жалюзи. В руке смартфон."
        ),
        is_game_over=False,
        game_phase=GamePhase.AWAKENING,
    )
