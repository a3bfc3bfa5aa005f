import asyncio
import base64
import sys
import pathlib
from io import BytesIO
from types import SimpleNamespace

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

import pytest
from PIL import Image

from helpers import fake_client, png_bytes

from billing import UsageTotals
from errors import ImageGenerationFailure
from services.images import ImageOracle, to_jpeg


def _response(*parts):
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


def test_to_jpeg_converts_png():
    jpeg = to_jpeg(png_bytes())
    assert jpeg[:2] == b"\xff\xd8"
    assert Image.open(BytesIO(jpeg)).format == "JPEG"


def test_to_jpeg_rejects_garbage():
    with pytest.raises(ImageGenerationFailure):
        to_jpeg(b"definitely not an image")


def test_generate_returns_first_inline_payload():
    seen = {}
    payload = png_bytes()

    async def generate_content(**kwargs):
        seen.update(kwargs)
        return _response(
            SimpleNamespace(inline_data=None, text="here you go"),
            SimpleNamespace(inline_data=SimpleNamespace(data=payload)),
        )

    usage = UsageTotals()
    oracle = ImageOracle("image-model", client=fake_client(generate_content), usage=usage)
    assert asyncio.run(oracle.generate("POV, bedroom", "16:9")) == payload
    assert seen["config"].response_modalities == ["IMAGE"]
    assert seen["config"].image_config.aspect_ratio == "16:9"
    assert usage.by_model["image-model"].images == 1


def test_generate_decodes_base64_strings():
    payload = png_bytes()

    async def generate_content(**kwargs):
        encoded = base64.b64encode(payload).decode("ascii")
        return _response(SimpleNamespace(inline_data=SimpleNamespace(data=encoded)))

    oracle = ImageOracle("image-model", client=fake_client(generate_content))
    assert asyncio.run(oracle.generate("POV")) == payload


def test_generate_without_payload_returns_none():
    async def generate_content(**kwargs):
        return SimpleNamespace(candidates=None)

    oracle = ImageOracle("image-model", client=fake_client(generate_content))
    assert asyncio.run(oracle.generate("POV")) is None
