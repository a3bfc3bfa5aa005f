"""Deterministic correction of model-proposed game state.

The narrative model proposes a full :class:`state.GameState` every turn.  It
is trusted for the story-side fields (location, inventory, facts, phase) but
not for survival numbers: :func:`correct` recomputes the temperature from the
clock, applies heat damage and caps hunger, thirst and oxygen by what the
action actually cost.
"""

from __future__ import annotations

import logging

from errors import TimeParseError
from state import GameState, clamp_resource
from .effort import RU_RULES, EffortCost, LocaleRules
from .temperature import REFERENCE_MINUTES, elapsed_minutes, format_clock, temperature_at

logger = logging.getLogger(__name__)

HAZARD_TEMPERATURE = 50
HAZARD_HEALTH_DAMAGE = 5
HAZARD_THIRST_PENALTY = 5
HAZARD_HUNGER_PENALTY = 2


def _safe_elapsed(clock: str) -> int | None:
    try:
        return elapsed_minutes(clock)
    except TimeParseError:
        return None


def resolve_clock(previous: GameState, proposed: GameState) -> tuple[str, int]:
    """Return the corrected ``(clock, elapsed_minutes)`` for a turn.

    A malformed proposal falls back to the previous clock, and to 03:00 when
    that is malformed too.  A proposal earlier than the previous clock is
    ignored so that time never runs backwards.  The returned clock is always
    zero-padded ``HH:MM``.
    """

    before = _safe_elapsed(previous.time)
    after = _safe_elapsed(proposed.time)
    if after is None:
        logger.warning("Discarding malformed clock %r from model", proposed.time)
        if before is None:
            return format_clock(REFERENCE_MINUTES), 0
        return format_clock(before + REFERENCE_MINUTES), before
    if before is not None and after < before:
        logger.warning("Model moved clock backwards (%s -> %s); keeping %s",
                       previous.time, proposed.time, previous.time)
        return format_clock(before + REFERENCE_MINUTES), before
    return format_clock(after + REFERENCE_MINUTES), after


def _decay(proposed: int, previous: int, cost: int) -> int:
    """Cap *proposed* at what is left after paying *cost* from *previous*."""

    return max(0, min(proposed, previous - cost))


def _merge_knowledge(previous: tuple[str, ...], proposed: tuple[str, ...]) -> tuple[str, ...]:
    if previous == proposed[: len(previous)]:
        return proposed
    known = set(previous)
    return previous + tuple(fact for fact in proposed if fact not in known)


def correct(
    previous: GameState,
    action: str,
    proposed: GameState,
    rules: LocaleRules = RU_RULES,
) -> GameState:
    """Return *proposed* reconciled with the survival physics.

    Neither input is modified.  See the module docstring for which fields
    are adjudicated and which pass through.
    """

    clock, elapsed = resolve_clock(previous, proposed)
    temperature = temperature_at(elapsed)

    effort: EffortCost = rules.effort.classify(action)
    health = proposed.health
    if temperature >= HAZARD_TEMPERATURE:
        health = max(0, health - HAZARD_HEALTH_DAMAGE)
        effort = effort.plus(hunger=HAZARD_HUNGER_PENALTY, thirst=HAZARD_THIRST_PENALTY)

    intents = rules.consumption.detect(action)
    hunger = proposed.hunger if intents.eating else _decay(proposed.hunger, previous.hunger, effort.hunger)
    thirst = proposed.thirst if intents.drinking else _decay(proposed.thirst, previous.thirst, effort.thirst)
    oxygen = _decay(proposed.oxygen, previous.oxygen, effort.oxygen)

    health = clamp_resource(health)
    is_game_over = previous.is_game_over or proposed.is_game_over or health <= 0

    logger.debug(
        "Physics at %s (%s min): temp=%s effort=%s eating=%s drinking=%s",
        clock, elapsed, temperature, effort, intents.eating, intents.drinking,
    )

    return proposed.model_copy(
        update={
            "time": clock,
            "temperature": temperature,
            "health": health,
            "hunger": clamp_resource(hunger),
            "thirst": clamp_resource(thirst),
            "oxygen": clamp_resource(oxygen),
            "is_game_over": is_game_over,
            "knowledge_base": _merge_knowledge(previous.knowledge_base, proposed.knowledge_base),
        }
    )
