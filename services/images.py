"""Scene image generation through the Gemini image model."""

from __future__ import annotations

import base64
import logging
from io import BytesIO

from PIL import Image, UnidentifiedImageError

import genai_api as ga
from billing import UsageTotals
from errors import ImageGenerationFailure

logger = logging.getLogger(__name__)


def to_jpeg(data: bytes, quality: int = 90) -> bytes:
    """Re-encode any image payload Pillow understands as JPEG bytes."""

    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            rgb = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageGenerationFailure(f"Undecodable image payload: {exc}") from exc
    out = BytesIO()
    rgb.save(out, format="JPEG", quality=quality)
    return out.getvalue()


def _first_inline_image(response) -> bytes | None:
    candidates = getattr(response, "candidates", None) or []
    for candidate in candidates:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is None or not inline.data:
                continue
            data = inline.data
            if isinstance(data, str):
                data = base64.b64decode(data)
            return data
    return None


class ImageOracle:
    """Thin async wrapper around ``generate_content`` with image output."""

    def __init__(self, model: str, client=None, usage: UsageTotals | None = None) -> None:
        self.model = model
        self._client = client
        self.usage = usage

    async def generate(self, prompt: str, aspect_ratio: str = "16:9") -> bytes | None:
        """Return raw image bytes for *prompt*, or ``None`` when none came back.

        SDK errors propagate; an empty reply is not an exception.
        """

        client = ga.require_client(self._client, ImageGenerationFailure, "image oracle")
        config = ga.types.GenerateContentConfig(
            response_modalities=["IMAGE"],
            image_config=ga.types.ImageConfig(aspect_ratio=aspect_ratio),
        )
        response = await client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )
        data = _first_inline_image(response)
        if data is None:
            logger.warning("Image model returned no image payload")
            return None
        if self.usage is not None:
            self.usage.record_images(self.model)
        return data
