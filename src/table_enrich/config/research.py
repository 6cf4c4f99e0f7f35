"""
Loading research configurations from JSON files.

Expected shape:
  {
    "targetColumns": ["Company"],
    "tasks": [{"newColumnName": "CEO", "prompt": "Who is the CEO?"}],
    "useThinkingModel": false,
    "rowLimit": 50
  }
snake_case keys are accepted as well.
"""

import json
from pathlib import Path
from typing import Union

from ..exceptions import ConfigError
from ..models import ResearchConfig


def load_research_config(path: Union[str, Path]) -> ResearchConfig:
    """
    Load a research configuration from a JSON file.

    Raises:
        ConfigError: If the file is missing or not a valid config document
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError([f"Config file not found: {path}"])

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError([f"Invalid JSON in {path}: {e}"]) from e

    if not isinstance(data, dict):
        raise ConfigError([f"Config root must be an object in {path}"])

    try:
        return ResearchConfig.from_dict(data)
    except (TypeError, ValueError, AttributeError) as e:
        raise ConfigError([f"Malformed config {path}: {e}"]) from e
