"""
Gemini Python SDK client for grounded row research.

Uses the google-genai library with the Google Search tool enabled so every
answer can carry web citations. Two tiers are available: a fast model for
bulk work and a thinking model with a large reasoning budget.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from google import genai

from ..config.settings import settings
from ..exceptions import ConfigError
from ..models import ResearchResult, ResearchTask, Source, NOT_FOUND_TEXT
from .base import BaseResearcher

logger = logging.getLogger(__name__)

MISSING_KEY_ERROR = "No API key found. Set GEMINI_API_KEY or GOOGLE_API_KEY in .env"


def _get_client() -> genai.Client:
    """Get authenticated Gemini client."""
    api_key = settings.get_api_key()
    if not api_key:
        raise ConfigError([MISSING_KEY_ERROR])
    return genai.Client(api_key=api_key)


def build_research_prompt(subject: str, task_prompt: str, context: str = "") -> str:
    """Build the per-cell prompt, asking for answers short enough for a spreadsheet cell."""
    context_line = f"Additional context from other columns: {context}\n" if context else ""
    return (
        "I have a table of items (companies, people or URLs) and need one research "
        "task performed for a single row.\n\n"
        f'Subject / Entity: "{subject}"\n'
        f"{context_line}"
        f"\nTask: {task_prompt}\n\n"
        "Rules:\n"
        "1. Use the Google Search tool to find the most current information.\n"
        "2. If the subject is a URL, or the context contains a specific URL (a profile "
        "or a website), search for content associated with that page.\n"
        "3. If the task asks for a specific fact (a name, revenue, website), return ONLY "
        "the value, not a sentence.\n"
        "4. If the task asks for a description, summary or bio, return a concise paragraph "
        "of at most 2-3 sentences.\n"
        "5. If the requested value is a URL, return the full URL starting with http or https.\n"
        f'6. If the information cannot be found, return "{NOT_FOUND_TEXT}".\n'
        "7. If a page is behind a login wall or rate limited, answer from the search result "
        "titles, snippets and metadata instead of giving up.\n"
    )


def extract_sources(response: Any) -> List[Source]:
    """Collect web citations from the grounding metadata of the first candidate."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []

    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web is None:
            continue
        sources.append(Source(
            title=getattr(web, "title", None) or "Source",
            uri=getattr(web, "uri", None) or "",
        ))
    return sources


class GeminiResearcher(BaseResearcher):
    """Research invoker backed by Gemini with Google Search grounding."""

    name = "gemini"

    def __init__(
        self,
        fast_model: Optional[str] = None,
        thinking_model: Optional[str] = None,
        client: Optional[genai.Client] = None,
    ):
        self.fast_model = fast_model or settings.FAST_MODEL
        self.thinking_model = thinking_model or settings.THINKING_MODEL
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = _get_client()
        return self._client

    def validate(self) -> List[str]:
        if self._client is None and settings.validate_required_settings():
            return [MISSING_KEY_ERROR]
        return []

    def model_for(self, use_high_quality: bool) -> str:
        return self.thinking_model if use_high_quality else self.fast_model

    def _build_config(self, use_high_quality: bool) -> dict:
        config = {"tools": [{"google_search": {}}]}
        if use_high_quality:
            config["thinking_config"] = {"thinking_budget": settings.THINKING_BUDGET}
        else:
            config["temperature"] = settings.FAST_TEMPERATURE
        return config

    async def research(
        self,
        subject: str,
        prompt: str,
        context: str = "",
        use_high_quality: bool = False,
    ) -> ResearchResult:
        """
        Research one question about a subject.

        Raises:
            ConfigError: If no API key is configured
        """
        client = self.client
        model = self.model_for(use_high_quality)

        try:
            response = await client.aio.models.generate_content(
                model=model,
                contents=build_research_prompt(subject, prompt, context),
                config=self._build_config(use_high_quality),
            )
        except Exception as e:
            logger.error(f"Gemini API error for '{subject}' ({model}): {str(e)[:200]}")
            return ResearchResult.error()

        text = (response.text or "").strip() or NOT_FOUND_TEXT
        return ResearchResult(text=text, sources=extract_sources(response))


@dataclass
class ResearchSuggestion:
    """Identity columns and tasks proposed by the configuration assistant."""
    target_columns: List[str] = field(default_factory=list)
    tasks: List[ResearchTask] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.target_columns and not self.tasks


def build_assistant_prompt(request: str, columns: Sequence[str]) -> str:
    return (
        "You are a data enrichment assistant.\n"
        f"The user has a table with these columns: {json.dumps(list(columns))}.\n\n"
        f'User request: "{request}"\n\n'
        "Configure a research agent to fulfil the request:\n"
        "1. Pick the existing columns that best identify the subject of each row "
        '(for example "Company", "URL", "Name", "Email") as "targetColumns".\n'
        "2. Propose new columns to add, each with a specific instruction for finding "
        "the value with Google Search.\n\n"
        "Return ONLY raw JSON in this structure:\n"
        "{\n"
        '  "targetColumns": ["Existing Column"],\n'
        '  "tasks": [{"newColumnName": "Short Column Name", "prompt": "Instruction..."}]\n'
        "}\n"
    )


async def suggest_research_config(
    request: str,
    columns: Sequence[str],
    use_pro_model: bool = False,
    client: Optional[genai.Client] = None,
) -> ResearchSuggestion:
    """
    Draft identity columns and research tasks from a natural language request.

    Suggested identity columns that do not exist in `columns` are dropped, as
    are tasks missing a name or prompt. Provider failures return an empty
    suggestion.

    Raises:
        ConfigError: If no API key is configured
    """
    client = client or _get_client()
    model = settings.THINKING_MODEL if use_pro_model else settings.FAST_MODEL

    try:
        response = await client.aio.models.generate_content(
            model=model,
            contents=build_assistant_prompt(request, columns),
            config={"response_mime_type": "application/json"},
        )
        data = json.loads(response.text or "{}")
    except Exception as e:
        logger.error(f"Research config suggestion failed: {e}")
        return ResearchSuggestion()

    if not isinstance(data, dict):
        logger.warning(f"Unexpected suggestion format: {type(data)}")
        return ResearchSuggestion()

    targets = [c for c in data.get("targetColumns") or [] if c in columns]
    tasks = [
        ResearchTask(new_column_name=str(t["newColumnName"]).strip(), prompt=str(t["prompt"]).strip())
        for t in data.get("tasks") or []
        if isinstance(t, dict) and t.get("newColumnName") and t.get("prompt")
    ]
    return ResearchSuggestion(target_columns=targets, tasks=tasks)
