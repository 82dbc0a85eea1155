from __future__ import annotations

from dataclasses import dataclass
from textwrap import dedent
from typing import Any, Dict, List, Optional

from ...logging_config import logger
from ...providers import ImagePart, PromptMessage, PromptPayload, ProviderClient, TextPart
from ...providers.base import encode_json
from ...providers.errors import ProviderError
from ..conversation.streaming import StreamAggregator
from .frames import ScreenFrame


class CaptureError(RuntimeError):
    """Raised when a capture or its analysis could not be produced."""


@dataclass(frozen=True)
class AnalysisPrompt:
    text: str
    description: str


ANALYSIS_PROMPTS: List[AnalysisPrompt] = [
    AnalysisPrompt(
        text=(
            "What do you see in the canvas? Ignore the UI, the chat, the tabs and other "
            "unwanted elements and only describe what is in the canvas."
        ),
        description="General analysis of the screen content",
    ),
    AnalysisPrompt(
        text="Describe the layout and UI elements visible in this screenshot.",
        description="UI/UX analysis",
    ),
    AnalysisPrompt(
        text="What text content is visible in this screenshot? Please list all readable text.",
        description="Text content analysis",
    ),
    AnalysisPrompt(
        text="Are there any images, icons, or visual elements in this screenshot? Please describe them.",
        description="Visual elements analysis",
    ),
    AnalysisPrompt(
        text="What is the main purpose or function of what's shown in this screenshot?",
        description="Purpose analysis",
    ),
]


def get_analysis_prompt(description: Optional[str]) -> str:
    """Return the prompt text for *description*, defaulting to the general analysis."""
    for prompt in ANALYSIS_PROMPTS:
        if prompt.description == description:
            return prompt.text
    return ANALYSIS_PROMPTS[0].text


def analysis_prompt_descriptions() -> List[str]:
    return [prompt.description for prompt in ANALYSIS_PROMPTS]


CANVAS_ANALYSIS_SYSTEM_PROMPT = dedent(
    """
    You are an AI assistant specialized in analyzing the content of a drawing canvas. Your sole task is
    to identify and describe the shapes, text, and overall structure of the diagram presented in the image.

    Ignore all elements that are not part of the canvas itself. This includes any operating system UI,
    browser elements, or anything outside the drawing area. Focus exclusively on the user's drawing.

    Based on the provided image and the accompanying canvas shape data, extract the following:

    1. Overall Diagram Type: what kind of diagram or sketch is present (flowchart, mind map, circuit
       diagram, geometry sketch, freeform drawing, equation setup). If unclear, state "Unclear/Mixed".
    2. Key Elements: distinct text labels and their approximate locations, geometric shapes and their
       labels, and connectors (arrows, lines) with the shapes they connect.
    3. Inferred Relationships/Structure: how the elements are connected or spatially related.
    4. Completeness/Status Assessment: whether the diagram looks complete, in progress, or has
       missing or misplaced elements.

    Respond concisely in a structured JSON format, adhering strictly to the canvas content.
    """
).strip()


def build_analysis_payload(
    frame: ScreenFrame,
    canvas_snapshot: Optional[Dict[str, Any]],
    prompt_text: str,
) -> PromptPayload:
    snapshot_json = encode_json(canvas_snapshot) if canvas_snapshot else ""
    parts = [
        TextPart(prompt_text),
        ImagePart(url=frame.as_data_url(), detail="high"),
        TextPart(f"Canvas JSON Data: {snapshot_json}"),
    ]
    return PromptPayload(
        system=CANVAS_ANALYSIS_SYSTEM_PROMPT,
        messages=[PromptMessage(role="user", content=parts)],
        query=prompt_text,
    )


class ScreenAnalyzer:
    """Turns a frame and canvas snapshot into a textual analysis via a provider."""

    def __init__(self, provider: ProviderClient, analysis_type: Optional[str] = None) -> None:
        self.provider = provider
        self.analysis_type = analysis_type

    async def analyze(
        self,
        frame: ScreenFrame,
        canvas_snapshot: Optional[Dict[str, Any]] = None,
        *,
        analysis_type: Optional[str] = None,
    ) -> str:
        prompt_text = get_analysis_prompt(analysis_type or self.analysis_type)
        payload = build_analysis_payload(frame, canvas_snapshot, prompt_text)

        try:
            self.provider.ensure_configured()
            if self.provider.streaming_enabled:
                result = await StreamAggregator().collect(self.provider.stream_complete(payload))
                if result.error is not None and not result.text:
                    raise result.error
                text = result.text
            else:
                text = await self.provider.complete(payload)
        except ProviderError as exc:
            raise CaptureError(f"Screen analysis failed: {exc}") from exc

        text = text.strip()
        if not text:
            raise CaptureError("Screen analysis returned no content")

        logger.info("screen analysis completed", extra={"analysis_length": len(text)})
        return text


__all__ = [
    "ANALYSIS_PROMPTS",
    "AnalysisPrompt",
    "CANVAS_ANALYSIS_SYSTEM_PROMPT",
    "CaptureError",
    "ScreenAnalyzer",
    "analysis_prompt_descriptions",
    "build_analysis_payload",
    "get_analysis_prompt",
]
