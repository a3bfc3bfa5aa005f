"""Keyword tables that map free-text actions to physiological cost.

Each locale provides an :class:`EffortTable` (how tiring an action is) and
:class:`ConsumptionRules` (whether it eats or drinks).  Both are plain data,
so a different language only needs a new :class:`LocaleRules` entry.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable


class EffortLevel(str, Enum):
    HIGH = "HIGH"
    MED = "MED"
    LOW = "LOW"


@dataclass(frozen=True)
class EffortCost:
    """Resource points drained by one turn."""

    hunger: int
    thirst: int
    oxygen: int

    def plus(self, hunger: int = 0, thirst: int = 0, oxygen: int = 0) -> "EffortCost":
        return replace(
            self,
            hunger=self.hunger + hunger,
            thirst=self.thirst + thirst,
            oxygen=self.oxygen + oxygen,
        )


@dataclass(frozen=True)
class KeywordFamily:
    """A set of word stems matched case-insensitively anywhere in a text.

    With ``word_start`` the stem must begin a word, which keeps short English
    stems such as ``eat`` from firing inside ``heat``.
    """

    stems: tuple[str, ...]
    word_start: bool = False
    _pattern: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        prefix = r"\b" if self.word_start else ""
        body = "|".join(re.escape(s) for s in self.stems)
        object.__setattr__(self, "_pattern", re.compile(f"{prefix}(?:{body})", re.IGNORECASE))

    def matches(self, text: str) -> bool:
        return bool(self.stems) and self._pattern.search(text) is not None


@dataclass(frozen=True)
class EffortTier:
    level: EffortLevel
    cost: EffortCost
    keywords: KeywordFamily


@dataclass(frozen=True)
class EffortTable:
    """Ordered tiers; the first matching tier wins, else ``base``."""

    tiers: tuple[EffortTier, ...]
    base: EffortTier

    def tier_for(self, action: str) -> EffortTier:
        for tier in self.tiers:
            if tier.keywords.matches(action):
                return tier
        return self.base

    def classify(self, action: str) -> EffortCost:
        return self.tier_for(action).cost


@dataclass(frozen=True)
class Intents:
    eating: bool = False
    drinking: bool = False


@dataclass(frozen=True)
class ConsumptionRules:
    eating: KeywordFamily
    drinking: KeywordFamily

    def detect(self, action: str) -> Intents:
        return Intents(eating=self.eating.matches(action), drinking=self.drinking.matches(action))


@dataclass(frozen=True)
class LocaleRules:
    effort: EffortTable
    consumption: ConsumptionRules


HIGH_COST = EffortCost(hunger=5, thirst=8, oxygen=5)
MED_COST = EffortCost(hunger=3, thirst=4, oxygen=2)
BASE_COST = EffortCost(hunger=1, thirst=2, oxygen=1)


def _table(high: Iterable[str], med: Iterable[str], word_start: bool = False) -> EffortTable:
    return EffortTable(
        tiers=(
            EffortTier(EffortLevel.HIGH, HIGH_COST, KeywordFamily(tuple(high), word_start)),
            EffortTier(EffortLevel.MED, MED_COST, KeywordFamily(tuple(med), word_start)),
        ),
        base=EffortTier(EffortLevel.LOW, BASE_COST, KeywordFamily(())),
    )


RU_RULES = LocaleRules(
    effort=_table(
        high=("беж", "бег", "быстро", "рывок", "лом", "тащ", "подн", "дра", "удар"),
        med=("идт", "пойти", "иска", "оде", "взят", "откр"),
    ),
    consumption=ConsumptionRules(
        eating=KeywordFamily(("ест", "съел", "куша", "хава", "жра")),
        drinking=KeywordFamily(("пил", "выпил", "глот")),
    ),
)

EN_RULES = LocaleRules(
    effort=_table(
        high=("run", "sprint", "rush", "dash", "break", "smash", "drag", "lift", "fight", "hit", "punch", "climb"),
        med=("walk", "go", "search", "look for", "dress", "put on", "take", "grab", "open"),
        word_start=True,
    ),
    consumption=ConsumptionRules(
        eating=KeywordFamily(("eat", "ate", "chew", "bite"), word_start=True),
        drinking=KeywordFamily(("drink", "drank", "sip", "swallow", "gulp"), word_start=True),
    ),
)

LOCALES: dict[str, LocaleRules] = {"ru": RU_RULES, "en": EN_RULES}


def rules_for(locale: str) -> LocaleRules:
    """Return the keyword rules registered for *locale*."""

    try:
        return LOCALES[locale.lower()]
    except KeyError:
        raise ValueError(f"No action keyword rules for locale {locale!r}") from None
