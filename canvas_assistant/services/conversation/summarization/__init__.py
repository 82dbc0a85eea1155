"""Summarization service package."""

from .scheduler import DEFAULT_SUMMARY_INTERVAL, SummarizationScheduler
from .summarizer import SummarizationError, fallback_summary_text, summarize_turns

__all__ = [
    "DEFAULT_SUMMARY_INTERVAL",
    "SummarizationError",
    "SummarizationScheduler",
    "fallback_summary_text",
    "summarize_turns",
]
