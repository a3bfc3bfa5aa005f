"""Resolution of a single player turn.

narrative model -> physics correction -> visual pipeline -> TurnResult.
A narrative failure short-circuits to a degraded result that leaves the
previous state untouched, so model downtime never costs the player stats.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from billing import UsageTotals
from config import AppConfig
from errors import OracleUnavailable, SchemaViolation
from models import SoundCue, TurnResult
from physics.effort import RU_RULES, LocaleRules, rules_for
from physics.enforcer import correct
from state import GameState
from .critic import Critic
from .images import ImageOracle
from .narrative import NarrativeOracle
from .visual import VisualPipeline

logger = logging.getLogger(__name__)

SYSTEM_ERROR_STORY = "СИСТЕМА: Температурный сбой сенсоров... (Ошибка ИИ)"
SYSTEM_ERROR_IMAGE_PROMPT = "Red static noise, heat distortion, glitch screen"


def fallback_result(previous: GameState) -> TurnResult:
    """The degraded result used whenever the narrative model fails."""

    return TurnResult(
        story=SYSTEM_ERROR_STORY,
        image_prompt=SYSTEM_ERROR_IMAGE_PROMPT,
        sound_cue=SoundCue.ALARM,
        game_state=previous,
        image=None,
        degraded=True,
    )


class TurnOrchestrator:
    """Sequences the three model calls and the physics pass for one turn."""

    def __init__(
        self,
        narrative: NarrativeOracle,
        visuals: VisualPipeline | None = None,
        rules: LocaleRules = RU_RULES,
        history_window: int = 10,
        narrative_timeout: float | None = 90.0,
    ) -> None:
        self.narrative = narrative
        self.visuals = visuals
        self.rules = rules
        self.history_window = history_window
        self.narrative_timeout = narrative_timeout

    @classmethod
    def from_config(
        cls, cfg: AppConfig, client=None, usage: UsageTotals | None = None
    ) -> "TurnOrchestrator":
        narrative = NarrativeOracle(
            cfg.narrative_model, cfg.thinking_budget, client=client, usage=usage
        )
        visuals = None
        if cfg.enable_images:
            visuals = VisualPipeline(
                ImageOracle(cfg.image_model, client=client, usage=usage),
                Critic(cfg.critic_model, client=client, usage=usage),
                max_attempts=cfg.max_visual_attempts,
                aspect_ratio=cfg.aspect_ratio,
            )
        return cls(
            narrative,
            visuals,
            rules=rules_for(cfg.locale),
            history_window=cfg.history_window,
            narrative_timeout=cfg.narrative_timeout,
        )

    def recent_history(self, history: Sequence[str]) -> list[str]:
        if self.history_window <= 0:
            return []
        return list(history[-self.history_window:])

    async def resolve_turn(
        self, history: Sequence[str], previous: GameState, action: str
    ) -> TurnResult:
        """Resolve *action* against *previous* and return a fresh result."""

        try:
            proposal = await asyncio.wait_for(
                self.narrative.generate(previous, self.recent_history(history), action),
                timeout=self.narrative_timeout,
            )
        except asyncio.TimeoutError:
            logger.error("Narrative model timed out after %ss", self.narrative_timeout)
            return fallback_result(previous)
        except (OracleUnavailable, SchemaViolation) as exc:
            logger.error("Game logic crash: %s", exc)
            return fallback_result(previous)

        corrected = correct(previous, action, proposal.game_state, self.rules)

        image = None
        if self.visuals is not None:
            image = await self.visuals.render(proposal.image_prompt)

        return TurnResult(
            story=proposal.story,
            image_prompt=proposal.image_prompt,
            sound_cue=proposal.sound_cue,
            game_state=corrected,
            image=image,
        )
