"""Vision quality control for generated first-person scenes."""

from __future__ import annotations

import asyncio
import json
import logging

from pydantic import ValidationError

import genai_api as ga
from billing import UsageTotals
from errors import CriticUnavailable
from models import CritiqueVerdict
from utils import get_prompt_tokens, get_response_tokens, strip_code_fence

logger = logging.getLogger(__name__)

CRITIC_INSTRUCTION = """
ROLE: Quality Control AI for a First-Person Survival Game.
INPUT PROMPT: "{prompt}"

TASK: Check if the image matches the prompt and POV rules.

STRICT FAIL CONDITIONS:
1. [THIRD_PERSON]: Visible back, head, or full body.
2. [HALLUCINATION]: Multiple people, floating items.
3. [CONTEXT_ERROR]: Prompt says "holding item" but hands are empty.

Return JSON: {{ "valid": boolean, "errorType": "THIRD_PERSON" | "HALLUCINATION" | "CONTEXT_ERROR" | "NONE", "fixInstruction": string }}
"""

PASS = CritiqueVerdict(valid=True)


class Critic:
    """Judges a scene image against its prompt.

    :meth:`evaluate` fails open: when the vision model cannot give a usable
    verdict the image is accepted.
    """

    def __init__(
        self,
        model: str,
        client=None,
        usage: UsageTotals | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.model = model
        self._client = client
        self.usage = usage
        self.timeout = timeout

    async def _request_verdict(self, image: bytes, prompt: str) -> CritiqueVerdict:
        client = ga.require_client(self._client, CriticUnavailable, "critic")
        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=self.model,
                    contents=[
                        ga.types.Part.from_bytes(data=image, mime_type="image/jpeg"),
                        CRITIC_INSTRUCTION.format(prompt=prompt),
                    ],
                    config=ga.types.GenerateContentConfig(response_mime_type="application/json"),
                ),
                timeout=self.timeout,
            )
        except Exception as exc:
            raise CriticUnavailable(f"Critic call failed: {exc}") from exc

        usage = getattr(response, "usage_metadata", None)
        if self.usage is not None:
            self.usage.record_text(self.model, get_prompt_tokens(usage), get_response_tokens(usage))

        text = getattr(response, "text", None) or ""
        try:
            return CritiqueVerdict.model_validate(json.loads(strip_code_fence(text)))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise CriticUnavailable(f"Malformed critic verdict: {exc}") from exc

    async def evaluate(self, image: bytes, prompt: str) -> CritiqueVerdict:
        try:
            return await self._request_verdict(image, prompt)
        except CriticUnavailable as exc:
            logger.warning("Critic offline, bypassing: %s", exc)
            return PASS
