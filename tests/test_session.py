import asyncio
import sys
import pathlib

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

import pytest

from helpers import FakeNarrative, make_response

from config import AppConfig
from errors import GameOver, OracleUnavailable, TurnInProgress
from services.turns import TurnOrchestrator
from session import INTRO_ACTION, SYSTEM_FAILURE_TEXT, GameSession
from state import initial_state


def _advance(state, action):
    return make_response(state.model_copy(update={"time": "03:10"}), story=f"ok: {action}")


def _session(narrative):
    return GameSession(TurnOrchestrator(narrative))


def test_start_plays_intro_from_initial_state():
    narrative = FakeNarrative(_advance)
    session = _session(narrative)
    result = asyncio.run(session.start())

    state, history, action = narrative.calls[0]
    assert state == initial_state()
    assert history == []
    assert action == INTRO_ACTION
    assert session.state is result.game_state
    assert [m.role for m in session.messages] == ["ai"]


def test_submit_threads_state_and_history():
    narrative = FakeNarrative(_advance)
    session = _session(narrative)
    asyncio.run(session.start())
    result = asyncio.run(session.submit("  пойти на кухню "))

    _, history, action = narrative.calls[1]
    assert action == "пойти на кухню"
    assert history == [f"AI: ok: {INTRO_ACTION}"]
    assert [m.role for m in session.messages] == ["ai", "user", "ai"]
    assert session.last_result is result
    # intro "подношу" is HIGH effort, "пойти" is MED
    assert session.state.oxygen == 93


def test_blank_input_is_rejected():
    with pytest.raises(ValueError):
        asyncio.run(_session(FakeNarrative(_advance)).submit("   "))


def test_input_after_game_over_is_rejected():
    session = _session(FakeNarrative(_advance))
    session.state = initial_state().model_copy(update={"is_game_over": True})
    with pytest.raises(GameOver):
        asyncio.run(session.submit("жду"))


def test_concurrent_turns_are_refused():
    session = _session(FakeNarrative(_advance, delay=0.05))

    async def race():
        return await asyncio.gather(
            session.submit("жду"), session.submit("бегу"), return_exceptions=True
        )

    first, second = asyncio.run(race())
    assert not isinstance(first, Exception)
    assert isinstance(second, TurnInProgress)
    assert not session.busy


def test_degraded_turn_keeps_state():
    session = _session(FakeNarrative(error=OracleUnavailable("down")))
    before = session.state
    result = asyncio.run(session.submit("жду"))
    assert result.degraded
    assert session.state is before
    assert session.messages[-1].text == result.story


def test_crashed_turn_posts_system_message():
    session = _session(FakeNarrative(error=RuntimeError("boom")))
    before = session.state
    with pytest.raises(RuntimeError, match="boom"):
        asyncio.run(session.submit("жду"))
    assert [m.role for m in session.messages] == ["user", "system"]
    assert session.messages[-1].text == SYSTEM_FAILURE_TEXT
    assert session.state is before
    assert not session.busy


def test_from_config_shares_usage_ledger():
    session = GameSession.from_config(AppConfig(), client=object())
    assert session.orchestrator.narrative.usage is session.usage
    assert session.orchestrator.visuals.images.usage is session.usage
