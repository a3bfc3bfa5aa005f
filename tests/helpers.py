"""Shared fakes for the Red Giant tests."""

import sys
import pathlib
from io import BytesIO
from types import SimpleNamespace

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from PIL import Image

from models import CritiqueVerdict, NarrativeResponse, SoundCue
from state import GameState, initial_state


def make_state(**overrides) -> GameState:
    return initial_state().model_copy(update=overrides)


def make_response(state: GameState | None = None, **overrides) -> NarrativeResponse:
    data = {
        "story": "Жарко.",
        "image_prompt": "POV, dark bedroom, dim red rim light",
        "sound_cue": SoundCue.BREATHING,
        "game_state": state or make_state(time="03:10"),
    }
    data.update(overrides)
    return NarrativeResponse(**data)


def png_bytes(color=(200, 30, 30)) -> bytes:
    out = BytesIO()
    Image.new("RGB", (16, 9), color).save(out, format="PNG")
    return out.getvalue()


def fake_client(generate_content):
    """Client exposing ``aio.models.generate_content`` like the Gemini SDK."""
    return SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))


class FakeNarrative:
    def __init__(self, reply=None, error: Exception | None = None, delay: float = 0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls = []

    async def generate(self, state, history, action):
        import asyncio

        self.calls.append((state, list(history), action))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply(state, action) if callable(self.reply) else self.reply


class FakeImages:
    def __init__(self, payloads):
        self.payloads = list(payloads)
        self.prompts = []

    async def generate(self, prompt, aspect_ratio="16:9"):
        self.prompts.append(prompt)
        payload = self.payloads.pop(0) if len(self.payloads) > 1 else self.payloads[0]
        if isinstance(payload, Exception):
            raise payload
        return payload


class FakeCritic:
    def __init__(self, verdicts):
        self.verdicts = list(verdicts)
        self.calls = []

    async def evaluate(self, image, prompt):
        self.calls.append((image, prompt))
        if len(self.verdicts) > 1:
            return self.verdicts.pop(0)
        return self.verdicts[0]


ACCEPT = CritiqueVerdict(valid=True)
