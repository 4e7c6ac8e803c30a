"""IO helpers for reading and writing the JSON data files."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Union

from .logging import get_logger

LOGGER = get_logger("utils.io")

PathLike = Union[str, Path]


def load_json(path: PathLike, default: Any = None) -> Any:
    """Load a JSON document, returning ``default`` if the file does not exist."""

    path = Path(path)
    if not path.exists():
        LOGGER.debug("json_missing path=%s", path)
        return default
    LOGGER.debug("loading_json path=%s", path)
    with open(path, "r", encoding="utf-8") as infile:
        return json.load(infile)


def write_json(path: PathLike, document: Any) -> None:
    """Rewrite a JSON document in full, creating parent directories as needed."""

    path = Path(path)
    os.makedirs(path.parent, exist_ok=True)
    LOGGER.debug("writing_json path=%s", path)
    with open(path, "w", encoding="utf-8") as outfile:
        json.dump(document, outfile, indent=2, ensure_ascii=False)
        outfile.write("\n")


__all__ = ["load_json", "write_json"]
