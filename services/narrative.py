"""Prompt construction and response handling for the narrative model."""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from pydantic import ValidationError

import genai_api as ga
from billing import UsageTotals
from errors import OracleUnavailable, SchemaViolation
from models import NarrativeResponse, SoundCue
from state import GamePhase, GameState
from utils import clean_unicode, get_prompt_tokens, get_response_tokens, strip_code_fence

logger = logging.getLogger(__name__)


SYSTEM_INSTRUCTION = """
РОЛЬ: Ты — СЛОЖНЫЙ СИМУЛЯТОР ВЫЖИВАНИЯ (PHYSICS ENGINE & DM).
Твоя задача — управлять миром "Last Survivor: Red Giant".

РАЗДЕЛ 1: ЦИКЛ КРАСНОГО ГИГАНТА (СВЕТ И ВРЕМЯ)
1. НОЧЬ (03:00 - 03:59): очень темно, черные тени, слабое красное свечение
   на горизонте или сквозь щели окон. Тишина перед бурей.
2. ПРЕДРАССВЕТ (04:00 - 04:59): сумрак, небо багрово-фиолетовое, свет
   "больной". Невыносимо жарко, от пластика идет дым.
3. ВОСХОД / АД (05:00+): всё горит, слепящий красный свет. Прямые лучи
   поджигают дерево. Игрок получает урон, если не в бункере или скафандре.

РАЗДЕЛ 2: БИОЛОГИЯ И ЭНТРОПИЯ
1. Статы ВСЕГДА падают. Если температура > 50°C, здоровье падает (-5 за ход),
   а жажда падает двойными темпами.
2. Повышение статов ТОЛЬКО через предметы (еда, вода).
3. Время в формате ЧЧ:ММ (24 часа, с ведущим нулем) и никогда не идет назад.
4. knowledgeBase — постоянная память: только добавляй факты, не удаляй.

РАЗДЕЛ 3: ВИЗУАЛЬНЫЙ КОД (IMAGE PROMPT)
Ты пишешь ТЕХНИЧЕСКИЙ ПРОМПТ на английском. Всегда начинай с POV.
- 03:00 -> "Dark environment, dim red rim light".
- 05:00 -> "Blinding bright red light, burning atmosphere, smoke, fire particles".

ВЫВОД: JSON.
"""

_STATE_FIELDS = [
    "health", "oxygen", "hunger", "thirst", "temperature", "time", "location",
    "inventory", "knowledgeBase", "visualContext", "isGameOver", "gamePhase",
]

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "story": {"type": "STRING"},
        "imagePrompt": {"type": "STRING"},
        "soundCue": {"type": "STRING", "enum": [cue.value for cue in SoundCue]},
        "gameState": {
            "type": "OBJECT",
            "properties": {
                "health": {"type": "NUMBER"},
                "oxygen": {"type": "NUMBER"},
                "hunger": {"type": "NUMBER"},
                "thirst": {"type": "NUMBER"},
                "temperature": {"type": "NUMBER"},
                "time": {"type": "STRING"},
                "location": {"type": "STRING"},
                "inventory": {"type": "ARRAY", "items": {"type": "STRING"}},
                "knowledgeBase": {"type": "ARRAY", "items": {"type": "STRING"}},
                "visualContext": {"type": "STRING"},
                "isGameOver": {"type": "BOOLEAN"},
                "gamePhase": {"type": "STRING", "enum": [p.value for p in GamePhase]},
            },
            "required": _STATE_FIELDS,
        },
    },
    "required": ["story", "imagePrompt", "soundCue", "gameState"],
}


def build_prompt(state: GameState, action: str, history: Sequence[str] = ()) -> str:
    """Render the per-turn prompt for *state* and the player's *action*."""

    facts = "\n".join(f"- {fact}" for fact in state.knowledge_base) or "- (пусто)"
    recent = "\n".join(history) or "(начало игры)"
    return f"""
[[SYSTEM STATUS]]
TIME: {state.time}
STATS: HP={state.health}, O2={state.oxygen}, FOOD={state.hunger}, H2O={state.thirst}, TEMP={state.temperature}C
INV: {json.dumps(list(state.inventory), ensure_ascii=False)}
LOC: {state.location}
PHASE: {state.game_phase.value}
VISUAL: {state.visual_context}

[[KNOWLEDGE]]
{facts}

[[RECENT HISTORY]]
{recent}

[[USER INPUT]]
ACTION: "{action}"

[[TASK]]
1. Update Time (+5-15 mins).
2. CHECK TIME PHASE:
   - 03:00-04:00: Night. Dark + Red Radiation.
   - 04:00-05:00: Dawn. Heat rising.
   - 05:00+: INFERNO. Everything burns.
3. Generate "imagePrompt" (TECHNICAL KEYWORDS, POV).
   - If 05:00+, prompt MUST include "fire, smoke, blinding red light".
4. Generate "story" (Russian).
""".strip()


def finalize_to_model(json_text: str | None) -> NarrativeResponse:
    """Parse *json_text* into :class:`NarrativeResponse`.

    Raises :class:`errors.SchemaViolation` for empty, non-JSON or incomplete
    replies.
    """

    if json_text is None or not json_text.strip():
        raise SchemaViolation("Narrative model returned an empty reply")
    try:
        data: Any = json.loads(strip_code_fence(json_text))
    except json.JSONDecodeError as exc:
        raise SchemaViolation(f"Narrative reply is not JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SchemaViolation("Narrative reply is not a JSON object")
    try:
        return NarrativeResponse.model_validate(clean_unicode(data))
    except ValidationError as exc:
        raise SchemaViolation(f"Narrative reply failed validation: {exc}") from exc


class NarrativeOracle:
    """Asks the narrative model for the next story beat and state proposal."""

    def __init__(
        self,
        model: str,
        thinking_budget: int = 4096,
        client=None,
        usage: UsageTotals | None = None,
    ) -> None:
        self.model = model
        self.thinking_budget = thinking_budget
        self._client = client
        self.usage = usage

    def _get_client(self):
        return ga.require_client(self._client, OracleUnavailable, "narrative oracle")

    def _config(self):
        return ga.types.GenerateContentConfig(
            system_instruction=SYSTEM_INSTRUCTION,
            thinking_config=ga.types.ThinkingConfig(thinking_budget=self.thinking_budget),
            response_mime_type="application/json",
            response_schema=RESPONSE_SCHEMA,
        )

    async def generate(
        self, state: GameState, history: Sequence[str], action: str
    ) -> NarrativeResponse:
        client = self._get_client()
        prompt = build_prompt(state, action, history)
        logger.info("Narrative request: model=%s action=%r", self.model, action)
        try:
            response = await client.aio.models.generate_content(
                model=self.model, contents=prompt, config=self._config()
            )
        except Exception as exc:
            raise OracleUnavailable(f"Narrative model call failed: {exc}") from exc

        usage = getattr(response, "usage_metadata", None)
        if self.usage is not None:
            self.usage.record_text(self.model, get_prompt_tokens(usage), get_response_tokens(usage))
        return finalize_to_model(getattr(response, "text", None))
