"""Document store: every JSON file of one property directory, keyed by id."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from factsheet.errors import DocumentParseError, PropertyLoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """One loaded JSON file.

    ``id`` is the filename without ``.json`` and is what links resolve to.
    """
    id: str
    path: Path
    content: Any

    def get(self, key: str, default: Any = None) -> Any:
        """Top-level field lookup that tolerates non-object content."""
        if isinstance(self.content, dict):
            return self.content.get(key, default)
        return default

    def has(self, key: str) -> bool:
        return isinstance(self.content, dict) and key in self.content


def document_id(filename: str) -> str:
    """'sales_1.json' -> 'sales_1'."""
    return filename[: -len(".json")] if filename.endswith(".json") else filename


def read_document(path: Path) -> Document:
    """Parse a single JSON file. Raises DocumentParseError on failure."""
    try:
        content = json.loads(path.read_text(encoding="utf-8"))
    except (ValueError, OSError, RecursionError) as e:
        raise DocumentParseError(path, str(e)) from e
    return Document(id=document_id(path.name), path=path, content=content)


def load_documents(directory: Path, property_id: Optional[str] = None) -> Dict[str, Document]:
    """Load every ``*.json`` file in directory.

    Files are read in sorted filename order, so iteration order of the
    returned dict is the same on every filesystem. Non-JSON siblings
    (images etc.) are ignored. A file that fails to parse is logged and
    left out.

    Raises:
        PropertyLoadError: directory is missing or cannot be listed.
    """
    pid = property_id or directory.name
    if not directory.is_dir():
        raise PropertyLoadError(pid, directory, "directory not found")

    try:
        json_files = sorted(p for p in directory.iterdir() if p.suffix == ".json" and p.is_file())
    except OSError as e:
        raise PropertyLoadError(pid, directory, str(e)) from e

    documents: Dict[str, Document] = {}
    for path in json_files:
        try:
            doc = read_document(path)
        except DocumentParseError as e:
            logger.warning("[%s] %s", pid, e)
            continue
        documents[doc.id] = doc

    logger.debug("[%s] Loaded %d of %d JSON documents", pid, len(documents), len(json_files))
    return documents
