"""Activity snapshots and change detection."""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Tuple

from activity_tracker.config import VIEW_RADIUS
from activity_tracker.editor import EditorContext
from activity_tracker.logger import NoActiveDocumentError


@dataclass(frozen=True)
class State:
    """What the developer is looking at during one tick."""

    workspace: str = ""
    file_name: str = ""
    language: str = ""
    row: int = 0
    col: int = 0
    view_chunk: str = ""

    def to_payload(self) -> Dict[str, Any]:
        return {
            "workspace": self.workspace,
            "fileName": self.file_name,
            "language": self.language,
            "row": self.row,
            "col": self.col,
            "viewChunk": self.view_chunk,
        }


EMPTY_STATE = State()

_STATE_FIELDS = tuple(f.name for f in fields(State))


def view_range(line: int, line_count: int, radius: int = VIEW_RADIUS) -> Tuple[int, int]:
    """Half-open line range of the text window around ``line``.

    Documents shorter than the window are returned whole. Otherwise the window
    is exactly ``2 * radius + 1`` lines, centred on the cursor and shifted back
    when it would run past the last line.
    """
    total = radius * 2 + 1
    if line_count < total:
        return 0, line_count

    start = max(0, line - radius)
    if line_count - start >= total:
        return start, start + total

    start = start - abs(line_count - start - total)
    return start, start + total


def capture(editor: EditorContext) -> State:
    doc = editor.active_document()
    if doc is None:
        raise NoActiveDocumentError("no active document")
    cursor = editor.cursor()
    start, stop = view_range(cursor.line, doc.line_count)
    return State(
        workspace=editor.workspace_name,
        file_name=doc.file_name,
        language=doc.language_id,
        row=cursor.line,
        col=cursor.character,
        view_chunk=doc.get_text(start, stop),
    )


def changed(prev: Any, cur: Any) -> bool:
    """True unless both snapshots agree on every field."""
    if not isinstance(prev, State) or not isinstance(cur, State):
        return True
    return any(getattr(prev, k) != getattr(cur, k) for k in _STATE_FIELDS)
