"""
Output file helpers: atomic JSON writes and provenance export.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union

from ..provenance import ProvenanceMap


def write_json_atomic(path: Union[str, Path], data: Any) -> Path:
    """
    Write `data` as pretty JSON so readers never see a half-written file.

    The payload goes to a sibling temp file first and is then moved over
    `path` with `os.replace`.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".part")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, ensure_ascii=False)
        os.replace(tmp_path, target)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return target


def write_provenance(path: Union[str, Path], provenance: ProvenanceMap) -> Path:
    """Write cell sources as {"<row>-<column>": [{"title", "uri"}]}."""
    return write_json_atomic(path, provenance.to_dict())
