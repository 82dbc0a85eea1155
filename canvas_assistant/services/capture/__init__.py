"""Screen capture collaborators and analysis."""

from .frames import ScreenFrame
from .adapter import ScreenCaptureAdapter, StaticCaptureAdapter, UnavailableCaptureAdapter
from .analyzer import (
    CaptureError,
    ScreenAnalyzer,
    analysis_prompt_descriptions,
    get_analysis_prompt,
)

__all__ = [
    "CaptureError",
    "ScreenAnalyzer",
    "ScreenCaptureAdapter",
    "ScreenFrame",
    "StaticCaptureAdapter",
    "UnavailableCaptureAdapter",
    "analysis_prompt_descriptions",
    "get_analysis_prompt",
]
