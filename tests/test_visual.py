import asyncio
import sys
import pathlib

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from helpers import ACCEPT, FakeCritic, FakeImages, png_bytes

from models import CritiqueError, CritiqueVerdict
from services.visual import (
    BASE_VISUAL_STYLE,
    CAMERA_CONSTRAINT,
    GLOBAL_NEGATIVE_PROMPT,
    MAX_ATTEMPTS,
    Correction,
    VisualPipeline,
    build_engineered_prompt,
)

SCENE = "POV, dark hallway, dim red rim light"
REJECT = CritiqueVerdict(valid=False, error_type=CritiqueError.THIRD_PERSON, fix_instruction="Show only hands")


def _render(images, critic, **kwargs):
    pipeline = VisualPipeline(images, critic, **kwargs)
    return asyncio.run(pipeline.render(SCENE))


def test_engineered_prompt_layout():
    plain = build_engineered_prompt(SCENE)
    assert plain.startswith(BASE_VISUAL_STYLE)
    assert f"SCENE: {SCENE}" in plain
    assert plain.endswith(GLOBAL_NEGATIVE_PROMPT)

    fixed = build_engineered_prompt(SCENE, Correction("THIRD_PERSON", "Show only hands"))
    assert fixed.startswith("!!! CORRECTION MODE !!!")
    assert "PREVIOUS ERROR: THIRD_PERSON" in fixed
    assert "MANDATORY FIX: Show only hands" in fixed
    assert CAMERA_CONSTRAINT in fixed
    assert fixed.endswith(plain)


def test_first_accepted_image_is_returned():
    images, critic = FakeImages([png_bytes()]), FakeCritic([ACCEPT])
    image = _render(images, critic)
    assert image is not None
    assert image.data[:2] == b"\xff\xd8"
    assert images.prompts == [build_engineered_prompt(SCENE)]
    # the critic judges against the scene, not the engineered prompt
    assert critic.calls[0][1] == SCENE


def test_rejection_retries_with_critic_fix():
    images, critic = FakeImages([png_bytes()]), FakeCritic([REJECT, ACCEPT])
    assert _render(images, critic) is not None
    assert len(images.prompts) == 2
    assert images.prompts[1] == build_engineered_prompt(SCENE, Correction("THIRD_PERSON", "Show only hands"))


def test_rejection_without_fix_uses_default():
    bare = CritiqueVerdict(valid=False, error_type=CritiqueError.HALLUCINATION)
    images = FakeImages([png_bytes()])
    _render(images, FakeCritic([bare, ACCEPT]))
    assert "MANDATORY FIX: Force POV" in images.prompts[1]


def test_exhaustion_returns_none_after_three_attempts():
    images, critic = FakeImages([png_bytes()]), FakeCritic([REJECT])
    assert _render(images, critic) is None
    assert len(images.prompts) == MAX_ATTEMPTS == 3


def test_attempt_bound_cannot_be_raised():
    images = FakeImages([png_bytes()])
    assert _render(images, FakeCritic([REJECT]), max_attempts=10) is None
    assert len(images.prompts) == 3


def test_empty_payload_retries_after_crash():
    images, critic = FakeImages([None, b"", png_bytes()]), FakeCritic([ACCEPT])
    assert _render(images, critic) is not None
    assert len(images.prompts) == 3
    assert "PREVIOUS ERROR: GENERATION_FAILURE" in images.prompts[1]
    assert "MANDATORY FIX: Retry after crash" in images.prompts[2]
    assert len(critic.calls) == 1


def test_oracle_errors_and_garbage_degrade_to_none():
    images = FakeImages([RuntimeError("500"), b"garbage", None])
    critic = FakeCritic([ACCEPT])
    assert _render(images, critic) is None
    assert len(images.prompts) == 3
    assert critic.calls == []


def test_blank_scene_skips_generation():
    images = FakeImages([png_bytes()])
    pipeline = VisualPipeline(images, FakeCritic([ACCEPT]))
    assert asyncio.run(pipeline.render("   ")) is None
    assert images.prompts == []


def test_slow_generation_counts_as_failed_attempt():
    class SlowImages(FakeImages):
        async def generate(self, prompt, aspect_ratio="16:9"):
            self.prompts.append(prompt)
            await asyncio.sleep(1)

    images = SlowImages([None])
    assert _render(images, FakeCritic([ACCEPT]), attempt_timeout=0.01) is None
    assert len(images.prompts) == 3
