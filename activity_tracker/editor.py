"""Editor context accessors.

``EditorContext`` is what the snapshot extractor reads. ``ContextFileEditor``
binds it to a small JSON file that an editor plugin keeps up to date::

    {"workspace": "proj", "file": "/src/proj/app.py", "language": "python",
     "line": 12, "column": 4}

Document text is read from disk on every refresh.
"""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from activity_tracker.config import language_for_path
from activity_tracker.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Cursor:
    line: int = 0
    character: int = 0


class Document(ABC):
    """The document shown in the active editor."""

    @property
    @abstractmethod
    def file_name(self) -> str: ...

    @property
    @abstractmethod
    def language_id(self) -> str: ...

    @property
    @abstractmethod
    def line_count(self) -> int: ...

    @abstractmethod
    def get_text(self, start: int, stop: int) -> str:
        """Return the text of lines ``[start, stop)``."""


class EditorContext(ABC):
    """Read-only view of the host editor's current state."""

    def refresh(self) -> None:
        """Pull fresh state from the host; a no-op for live accessors."""

    @property
    @abstractmethod
    def workspace_name(self) -> str: ...

    @abstractmethod
    def active_document(self) -> Optional[Document]:
        """The active document, or None when no editor is focused."""

    @abstractmethod
    def cursor(self) -> Cursor: ...


class TextDocument(Document):
    """In-memory document split into lines that keep their terminators."""

    def __init__(self, file_name: str, text: str, language_id: Optional[str] = None):
        self._file_name = file_name
        self._language_id = language_id or language_for_path(file_name)
        self._lines: List[str] = text.splitlines(keepends=True)

    @classmethod
    def from_path(cls, path: Path, language_id: Optional[str] = None) -> "TextDocument":
        text = path.read_text(encoding="utf-8", errors="replace")
        return cls(str(path), text, language_id)

    @property
    def file_name(self) -> str:
        return self._file_name

    @property
    def language_id(self) -> str:
        return self._language_id

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def get_text(self, start: int, stop: int) -> str:
        return "".join(self._lines[max(0, start):max(0, stop)])


class StaticEditor(EditorContext):
    """Editor context with explicitly assigned state."""

    def __init__(self, workspace: str, document: Optional[Document] = None, cursor: Optional[Cursor] = None):
        self.workspace = workspace
        self.document = document
        self.position = cursor or Cursor()

    @property
    def workspace_name(self) -> str:
        return self.workspace

    def active_document(self) -> Optional[Document]:
        return self.document

    def cursor(self) -> Cursor:
        return self.position


def _as_non_negative_int(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


class ContextFileEditor(EditorContext):
    """Editor context backed by a JSON file written by an editor plugin."""

    def __init__(self, context_file: Path):
        self.context_file = Path(context_file)
        self._workspace = ""
        self._document: Optional[Document] = None
        self._cursor = Cursor()

    def _read_context(self) -> Optional[Dict[str, Any]]:
        try:
            with self.context_file.open("r", encoding="utf-8") as f:
                obj = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"[editor] Unreadable context file {self.context_file}: {e}")
            return None
        if not isinstance(obj, dict):
            logger.warning(f"[editor] Context file {self.context_file} does not hold an object")
            return None
        return obj

    def refresh(self) -> None:
        self._document = None
        ctx = self._read_context()
        if ctx is None:
            return

        file_name = str(ctx.get("file") or "").strip()
        self._cursor = Cursor(
            line=_as_non_negative_int(ctx.get("line")),
            character=_as_non_negative_int(ctx.get("column")),
        )
        self._workspace = self._workspace_for(ctx, file_name)
        if not file_name:
            return

        path = Path(file_name)
        try:
            self._document = TextDocument.from_path(path, ctx.get("language") or None)
        except OSError as e:
            logger.debug(f"[editor] Cannot read active file {path}: {e}")

    @staticmethod
    def _workspace_for(ctx: Dict[str, Any], file_name: str) -> str:
        workspace = str(ctx.get("workspace") or "").strip()
        if workspace:
            return workspace
        root = str(ctx.get("root") or "").strip()
        if root:
            return Path(root).name
        if file_name:
            return Path(file_name).parent.name
        return ""

    @property
    def workspace_name(self) -> str:
        return self._workspace

    def active_document(self) -> Optional[Document]:
        return self._document

    def cursor(self) -> Cursor:
        return self._cursor
