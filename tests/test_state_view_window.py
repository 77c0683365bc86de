import pytest

from activity_tracker.editor import Cursor, StaticEditor
from activity_tracker.logger import NoActiveDocumentError
from activity_tracker.state import State, capture, view_range

from conftest import make_document, make_editor

pytestmark = pytest.mark.unit


@pytest.mark.parametrize("line_count", [11, 12, 20, 57])
def test_window_is_always_eleven_lines_for_long_documents(line_count):
    for line in range(line_count):
        start, stop = view_range(line, line_count)
        assert stop - start == 11
        assert 0 <= start < line_count
        assert 0 < stop <= line_count
        assert start <= line < stop


@pytest.mark.parametrize("line_count", [0, 1, 5, 10])
def test_short_document_is_returned_whole(line_count):
    for line in range(max(line_count, 1)):
        assert view_range(line, line_count) == (0, line_count)


def test_window_centres_on_cursor_in_the_middle():
    assert view_range(10, 30) == (5, 16)


def test_window_shifts_back_at_end_of_document():
    # cursor on the last line of a 30-line document
    assert view_range(29, 30) == (19, 30)
    assert view_range(27, 30) == (19, 30)


def test_window_clamps_at_start_of_document():
    assert view_range(2, 30) == (0, 11)


def test_capture_builds_state_from_editor():
    editor = make_editor(workspace="proj", path="/src/proj/app.py", lines=30, line=10, col=4)
    state = capture(editor)

    assert state == State(
        workspace="proj",
        file_name="/src/proj/app.py",
        language="python",
        row=10,
        col=4,
        view_chunk="".join(f"line {i}\n" for i in range(5, 16)),
    )


def test_capture_short_document_includes_everything():
    editor = StaticEditor("proj", make_document(lines=3), Cursor(1, 0))
    assert capture(editor).view_chunk == "line 0\nline 1\nline 2\n"


def test_capture_without_active_document_raises():
    with pytest.raises(NoActiveDocumentError):
        capture(StaticEditor("proj", None))


def test_state_payload_uses_wire_names():
    state = State("proj", "/a.py", "python", 1, 2, "x\n")
    assert state.to_payload() == {
        "workspace": "proj",
        "fileName": "/a.py",
        "language": "python",
        "row": 1,
        "col": 2,
        "viewChunk": "x\n",
    }
