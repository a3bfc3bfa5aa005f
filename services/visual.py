"""Bounded generate-and-critique loop for first-person scene images.

Each attempt moves through GENERATING and CRITIQUING and ends ACCEPTED,
REJECTED (retry with the critic's fix) or, once attempts run out, EXHAUSTED.
Running out of attempts is not an error: the turn just has no picture.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from models import SceneImage
from errors import ImageGenerationFailure
from .critic import Critic
from .images import ImageOracle, to_jpeg

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3

BASE_VISUAL_STYLE = """Style: REALISTIC BODYCAM FOOTAGE (Unreal Engine 5).
Perspective: STRICT FIRST PERSON (POV).
Lens: Wide Angle GoPro.
Lighting: Volumetric Red Fog, High Contrast, Sweaty."""

GLOBAL_NEGATIVE_PROMPT = """Avoid: nsfw, nude, third person, back view, selfie, multiple people, two people, portrait,
character face, mirror reflection, text, hud, ui, watermark, low quality,
cartoon, anime, drawing, sketch, split screen, collage, floating objects,
glitch, distorted hands, bad anatomy, extra fingers, missing limbs,
bright blue sky, happy atmosphere, green grass, camera on tripod,
cinematic shot of actor, looking at character."""

CAMERA_CONSTRAINT = "FORCE CAMERA TO EYE LEVEL. DO NOT SHOW CHARACTER BODY."


@dataclass(frozen=True)
class Correction:
    """What went wrong on the previous attempt and how to fix it."""

    error: str
    fix: str


CRASH_CORRECTION = Correction(error="GENERATION_FAILURE", fix="Retry after crash")
DEFAULT_FIX = "Force POV"


def build_engineered_prompt(scene: str, correction: Correction | None = None) -> str:
    """Wrap *scene* in the style and negative blocks, plus any correction."""

    body = f"{BASE_VISUAL_STYLE}\nSCENE: {scene}\n{GLOBAL_NEGATIVE_PROMPT}"
    if correction is None:
        return body
    header = (
        "!!! CORRECTION MODE !!!\n"
        f"PREVIOUS ERROR: {correction.error}\n"
        f"MANDATORY FIX: {correction.fix}\n"
        f"{CAMERA_CONSTRAINT}"
    )
    return f"{header}\n\n{body}"


class VisualPipeline:
    def __init__(
        self,
        images: ImageOracle,
        critic: Critic,
        max_attempts: int = MAX_ATTEMPTS,
        aspect_ratio: str = "16:9",
        attempt_timeout: float = 120.0,
    ) -> None:
        self.images = images
        self.critic = critic
        self.max_attempts = max(1, min(max_attempts, MAX_ATTEMPTS))
        self.aspect_ratio = aspect_ratio
        self.attempt_timeout = attempt_timeout

    async def _generate(self, prompt: str) -> bytes:
        raw = await asyncio.wait_for(
            self.images.generate(prompt, self.aspect_ratio), timeout=self.attempt_timeout
        )
        if not raw:
            raise ImageGenerationFailure("No image data returned")
        return to_jpeg(raw)

    async def render(self, scene_prompt: str) -> SceneImage | None:
        """Return an accepted image for *scene_prompt*, or ``None``."""

        if not scene_prompt or not scene_prompt.strip():
            return None

        correction: Correction | None = None
        for attempt in range(1, self.max_attempts + 1):
            prompt = build_engineered_prompt(scene_prompt, correction)
            logger.info("[GEN] Attempt %d/%d | Prompt: %.50s...", attempt, self.max_attempts, scene_prompt)
            try:
                image = await self._generate(prompt)
            except Exception as exc:
                logger.warning("Visual pipeline attempt %d failed: %s", attempt, exc)
                correction = CRASH_CORRECTION
                continue

            verdict = await self.critic.evaluate(image, scene_prompt)
            if verdict.valid:
                return SceneImage(data=image)

            logger.warning(
                "[REJECT] Reason: %s | Fix: %s", verdict.error_type.value, verdict.fix_instruction
            )
            correction = Correction(
                error=verdict.error_type.value, fix=verdict.fix_instruction or DEFAULT_FIX
            )

        logger.warning("Visual pipeline: max retries exhausted")
        return None
