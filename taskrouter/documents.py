"""Document creation for ``create_document`` tasks.

The orchestrator hands document-creation tasks to a DocumentCreator instead
of routing them to a model. LocalDocumentCreator writes each document as a
Markdown file under a configurable directory.
"""

from __future__ import annotations

import logging
import re
import uuid
from abc import ABC, abstractmethod
from pathlib import Path

from taskrouter.schemas.messages import DocumentInfo

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")


class DocumentCreator(ABC):
    """Creates a document and reports where it can be opened."""

    @abstractmethod
    async def create_document(
        self, title: str, content: str, folder: str | None = None,
    ) -> DocumentInfo:
        """Create a document.

        Args:
            title: Document title.
            content: Document body.
            folder: Optional folder to place the document in.

        Returns:
            DocumentInfo with the new document's id, title and url.
        """


class LocalDocumentCreator(DocumentCreator):
    """Writes documents as Markdown files and returns ``file://`` URLs."""

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir).expanduser()

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    async def create_document(
        self, title: str, content: str, folder: str | None = None,
    ) -> DocumentInfo:
        target_dir = self._base_dir
        if folder:
            target_dir = target_dir / _slugify(folder)
        target_dir.mkdir(parents=True, exist_ok=True)

        doc_id = uuid.uuid4().hex
        path = target_dir / f"{_slugify(title)}-{doc_id[:8]}.md"
        path.write_text(f"# {title}\n\n{content}\n", encoding="utf-8")

        logger.info("Created document '%s' at %s", title, path)
        return DocumentInfo(id=doc_id, title=title, url=path.resolve().as_uri())


def _slugify(text: str) -> str:
    slug = _SLUG_RE.sub("-", text.lower()).strip("-")
    return slug[:60] or "untitled"
