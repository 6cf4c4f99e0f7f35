"""Ready-made research tasks for common enrichment columns."""

from dataclasses import dataclass
from typing import Dict, List

from .models import ResearchTask


@dataclass(frozen=True)
class TaskPreset:
    id: str
    label: str
    column: str
    prompt: str

    def to_task(self) -> ResearchTask:
        return ResearchTask(new_column_name=self.column, prompt=self.prompt)


PRESETS: List[TaskPreset] = [
    TaskPreset(
        "ceo_name", "Find CEO Name", "CEO Name",
        "Who is the current CEO? Return just the name.",
    ),
    TaskPreset(
        "ceo_linkedin", "Find CEO LinkedIn", "CEO LinkedIn",
        "Find the public LinkedIn profile URL of the current CEO. Return ONLY the URL starting with https://",
    ),
    TaskPreset(
        "web_screenshot", "Screenshot Web Presence", "Web Screenshot",
        "Find the most visual public page for this entity (personal website, company team page "
        "or about page). Avoid LinkedIn and Facebook URLs, screenshot tools are blocked there. "
        'Return ONLY a URL in this exact format: "https://image.thum.io/get/width/1200/crop/800/[INSERT_URL_HERE]".',
    ),
    TaskPreset(
        "linkedin_summary", "Summarize LinkedIn Profile", "LinkedIn Bio",
        "Search for the LinkedIn profile and use the search result snippets and metadata to summarize "
        "the person's professional background, current role and key skills, even if the page itself is blocked.",
    ),
    TaskPreset(
        "url_summary", "Summarize Specific URL", "Page Summary",
        "Analyze the specific URL given in the identity or context columns and summarize the main content of that page.",
    ),
    TaskPreset(
        "company_website", "Find Company Website", "Website",
        "What is the official website URL? Return only the URL.",
    ),
    TaskPreset(
        "headquarters", "Find Headquarters", "Headquarters",
        'City and country of the headquarters, e.g. "San Francisco, USA".',
    ),
    TaskPreset(
        "revenue", "Find Latest Revenue", "Revenue",
        "What is the most recent annual revenue? Return the amount with currency and year.",
    ),
    TaskPreset(
        "summary", "Company Summary", "Summary",
        "Write a concise one-sentence summary of what this company does.",
    ),
    TaskPreset(
        "news", "Latest News", "Latest News",
        "Find the most recent major news headline about this entity.",
    ),
]

PRESETS_BY_ID: Dict[str, TaskPreset] = {p.id: p for p in PRESETS}


def get_preset(preset_id: str) -> TaskPreset:
    try:
        return PRESETS_BY_ID[preset_id]
    except KeyError:
        raise KeyError(
            f"Unknown preset '{preset_id}'. Available: {', '.join(PRESETS_BY_ID)}"
        ) from None
