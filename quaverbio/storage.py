from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".tmp")
    tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    tmp_path.replace(path)


def read_json(path: Path) -> Any:
    """Return the decoded JSON document at ``path``.

    Unlike a cache read, a missing or undecodable file is not an empty
    result here: ``FileNotFoundError``, ``OSError`` and
    ``json.JSONDecodeError`` propagate so the caller can decide what a
    broken file means.
    """
    return json.loads(path.read_text(encoding="utf-8"))
