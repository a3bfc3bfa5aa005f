"""A single play session: current state, message log and the turn guard."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field

from billing import UsageTotals
from config import AppConfig
from errors import GameOver, TurnInProgress
from models import TurnResult
from services.turns import TurnOrchestrator
from state import GameState, initial_state

logger = logging.getLogger(__name__)

INTRO_ACTION = (
    "СИТУАЦИЯ: 03:00 ночи. Я ЛЕЖУ в своей кровати. Комната ЦЕЛАЯ, порядок, но "
    "очень душно. Жалюзи на окнах закрыты, но сквозь щели пробивается зловещее "
    "темно-красное свечение с улицы. Я подношу Смартфон к лицу, чтобы проверить время."
)

SYSTEM_FAILURE_TEXT = "СБОЙ СИСТЕМЫ. ПОПРОБУЙТЕ ЕЩЕ РАЗ."


@dataclass
class Message:
    role: str  # "user", "ai" or "system" (turn crashed)
    text: str
    image_ref: str | None = None
    timestamp: float = field(default_factory=time.time)


class GameSession:
    """Owns the only live :class:`GameState` reference for one player.

    Turns are serialised: :meth:`submit` raises :class:`errors.TurnInProgress`
    instead of running a second turn against the same state.
    """

    def __init__(
        self,
        orchestrator: TurnOrchestrator,
        state: GameState | None = None,
        usage: UsageTotals | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.state = state or initial_state()
        self.usage = usage or UsageTotals()
        self.messages: list[Message] = []
        self.last_result: TurnResult | None = None
        self._turn_lock = threading.Lock()

    @classmethod
    def from_config(cls, cfg: AppConfig, client=None) -> "GameSession":
        usage = UsageTotals()
        return cls(TurnOrchestrator.from_config(cfg, client=client, usage=usage), usage=usage)

    @property
    def busy(self) -> bool:
        return self._turn_lock.locked()

    def history(self) -> list[str]:
        return [f"{m.role.upper()}: {m.text}" for m in self.messages]

    async def _run(self, history: list[str], action: str) -> TurnResult:
        if not self._turn_lock.acquire(blocking=False):
            raise TurnInProgress("A turn is already being resolved")
        try:
            result = await self.orchestrator.resolve_turn(history, self.state, action)
        except Exception:
            logger.exception("Turn crashed; state left at %s", self.state.time)
            self.messages.append(Message("system", SYSTEM_FAILURE_TEXT))
            raise
        finally:
            self._turn_lock.release()
        self.state = result.game_state
        self.last_result = result
        self.messages.append(Message("ai", result.story, result.image_ref))
        if result.game_state.is_game_over:
            logger.info("Game over at %s", result.game_state.time)
        return result

    async def start(self) -> TurnResult:
        """Play the scripted wake-up turn from the opening snapshot."""

        if self.busy:
            raise TurnInProgress("A turn is already being resolved")
        self.state = initial_state()
        self.messages = []
        return await self._run([], INTRO_ACTION)

    async def submit(self, action: str) -> TurnResult:
        """Resolve a player action and advance the session."""

        action = action.strip()
        if not action:
            raise ValueError("Empty action")
        if self.state.is_game_over:
            raise GameOver("The session has ended")
        if self.busy:
            raise TurnInProgress("A turn is already being resolved")
        history = self.history()
        self.messages.append(Message("user", action))
        return await self._run(history, action)
