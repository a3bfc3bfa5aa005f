from __future__ import annotations

"""Application configuration handling."""

from dataclasses import dataclass, asdict
import json
from pathlib import Path


@dataclass
class AppConfig:
    """User adjustable settings for the application."""

    narrative_model: str = "gemini-3-pro-preview"
    image_model: str = "gemini-2.5-flash-image"
    critic_model: str = "gemini-2.5-flash"
    enable_images: bool = True
    max_visual_attempts: int = 3
    history_window: int = 10
    narrative_timeout: float = 90.0
    thinking_budget: int = 4096
    aspect_ratio: str = "16:9"
    locale: str = "ru"


def load_config(path: str | Path) -> AppConfig:
    """Load configuration from *path*.

    Returns a default :class:`AppConfig` if the file is missing.  Unknown keys
    are ignored so that older config files keep loading.
    """

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return AppConfig()
    known = AppConfig.__dataclass_fields__
    return AppConfig(**{k: v for k, v in data.items() if k in known})


def save_config(cfg: AppConfig, path: str | Path) -> None:
    """Persist *cfg* to *path* as JSON."""

    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(cfg), f, indent=2)
