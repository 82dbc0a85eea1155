from __future__ import annotations

from dataclasses import dataclass
from textwrap import dedent
from typing import Optional, Sequence

from ....providers import PromptMessage, PromptPayload
from ..state import Turn


@dataclass(frozen=True)
class SummaryPrompt:
    system_prompt: str
    content: str

    def as_payload(self) -> PromptPayload:
        return PromptPayload(
            system=self.system_prompt,
            messages=[PromptMessage(role="user", content=self.content)],
            query=self.content,
        )


_SYSTEM_PROMPT = dedent(
    """
    You maintain the running memory of a chat assistant that helps a user build diagrams on a
    drawing canvas. Produce a compact digest of the conversation round you are given.

    FORMAT - Always output using this structure:

    Goals:
    - <what the user is trying to build or understand>

    Canvas Progress:
    - <shapes, labels, connections or structure the user has added or changed, per the screen analyses>

    Advice Given:
    - <concrete suggestions or answers the assistant provided>

    Open Questions:
    - <anything unresolved that the next turns should pick up>

    If a section has no content, output a single bullet "- No items."

    RULES:
    1. Carry forward still-relevant facts from the previous summary; drop what is obsolete.
    2. Do not invent facts; only use the previous summary and the turns provided.
    3. Keep language concise yet information-dense.
    """
).strip()


def _format_previous_summary(previous_summary: Optional[str]) -> str:
    summary = (previous_summary or "").strip()
    return summary if summary else "None"


def _format_turns(turns: Sequence[Turn]) -> str:
    lines = []
    for position, turn in enumerate(turns, start=1):
        lines.append(f"[{position}] user: {turn.user_message.strip() or '(empty)'}")
        lines.append(f"[{position}] assistant: {turn.ai_response.strip() or '(empty)'}")
        analysis = (turn.screen_analysis or "").strip()
        lines.append(f"[{position}] screen analysis: {analysis or 'No analysis'}")
    return "\n".join(lines) if lines else "(no turns)"


def build_summarization_prompt(
    round_number: int,
    turns: Sequence[Turn],
    previous_summary: Optional[str] = None,
) -> SummaryPrompt:
    content = "\n\n".join(
        [
            f"Previous summary:\n{_format_previous_summary(previous_summary)}",
            f"Conversation round {round_number} to summarise:\n{_format_turns(turns)}",
        ]
    )
    return SummaryPrompt(system_prompt=_SYSTEM_PROMPT, content=content)


__all__ = ["SummaryPrompt", "build_summarization_prompt"]
