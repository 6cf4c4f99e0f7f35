"""API clients for row research."""

from .base import BaseResearcher
from .gemini_client import (
    GeminiResearcher,
    ResearchSuggestion,
    suggest_research_config,
    build_research_prompt,
)

__all__ = [
    "BaseResearcher",
    "GeminiResearcher",
    "ResearchSuggestion",
    "suggest_research_config",
    "build_research_prompt",
]
