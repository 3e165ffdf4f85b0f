from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv

_env_path = Path(__file__).resolve().parents[1] / ".env"
if _env_path.is_file():
    load_dotenv(_env_path, override=False)

Representation = Literal["cartoon", "ball-and-stick", "space-filling", "ribbon"]
ColorScheme = Literal["chain", "residue", "structure", "custom"]

REPRESENTATIONS: tuple[str, ...] = ("cartoon", "ball-and-stick", "space-filling", "ribbon")
COLOR_SCHEMES: tuple[str, ...] = ("chain", "residue", "structure", "custom")


@dataclass
class MolviewSettings:
    """Configuration loaded from MOLVIEW_* environment variables.

    Logging:
      MOLVIEW_LOG_LEVEL=INFO

    Viewer defaults:
      MOLVIEW_REPRESENTATION=cartoon
      MOLVIEW_COLOR_SCHEME=structure
      MOLVIEW_BACKGROUND_COLOR=#F8F9FA

    Summarizer endpoint:
      MOLVIEW_SUMMARY_URL=https://toolkit.rork.com/text/llm/
      MOLVIEW_SUMMARY_TIMEOUT=30
    """

    log_level: str = "INFO"

    representation: Representation = "cartoon"
    color_scheme: ColorScheme = "structure"
    background_color: str = "#F8F9FA"

    summary_url: str = "https://toolkit.rork.com/text/llm/"
    summary_timeout: float = 30.0


def _choice(value: str, allowed: tuple[str, ...], default: str) -> str:
    value = value.strip().lower()
    return value if value in allowed else default


def _seconds(value: str, default: float) -> float:
    try:
        seconds = float(value)
    except ValueError:
        return default
    return seconds if seconds > 0 and math.isfinite(seconds) else default


def load_settings() -> MolviewSettings:
    """Load settings from environment variables; unknown or malformed values fall back to defaults."""
    defaults = MolviewSettings()
    return MolviewSettings(
        log_level=os.environ.get("MOLVIEW_LOG_LEVEL", defaults.log_level).upper(),
        representation=_choice(
            os.environ.get("MOLVIEW_REPRESENTATION", defaults.representation),
            REPRESENTATIONS,
            defaults.representation,
        ),
        color_scheme=_choice(
            os.environ.get("MOLVIEW_COLOR_SCHEME", defaults.color_scheme),
            COLOR_SCHEMES,
            defaults.color_scheme,
        ),
        background_color=os.environ.get("MOLVIEW_BACKGROUND_COLOR", defaults.background_color),
        summary_url=os.environ.get("MOLVIEW_SUMMARY_URL", defaults.summary_url),
        summary_timeout=_seconds(os.environ.get("MOLVIEW_SUMMARY_TIMEOUT", ""), defaults.summary_timeout),
    )
