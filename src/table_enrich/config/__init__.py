"""Settings and research configuration loading."""

from .settings import settings, Settings
from .research import load_research_config

__all__ = ["settings", "Settings", "load_research_config"]
