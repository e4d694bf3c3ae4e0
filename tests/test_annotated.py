import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pygments.token import Token

from idcolors.backends import profiles
from idcolors.backends.annotated import AnnotatedString, MarkerSet, PygmentsAnnotatedText
from idcolors.backends.session import ColorSession, refresh, render


def test_pygments_faces_keep_raw_offsets():
    src = "\n\nx = x + y\r\n"
    text = PygmentsAnnotatedText(src, "python")
    assert text.text == src
    assert text.face_at(2) == Token.Name
    assert text.face_at(3) is profiles.UNCLASSIFIED
    assert text.face_at(6) == Token.Name
    assert text.face_at(10) == Token.Name


def test_pygments_unknown_lexer_leaves_text_unclassified():
    text = PygmentsAnnotatedText("a b", "definitely-not-a-lexer")
    assert text.lexer is None
    assert text.face_at(0) is profiles.UNCLASSIFIED


def test_python_profile_colors_names_but_not_attributes():
    src = "count = 0\nfor item in items:\n    count = count + item.size\n"
    text = PygmentsAnnotatedText(src, "python")
    session = ColorSession(profiles.get_profile("py"))
    index = refresh(session, text)
    assert list(index)[:3] == ["count", "item", "items"]
    assert "size" not in index
    spans = render(session, text, 0, len(src), 70, 20)
    counts = [s for s in spans if s.identifier == "count"]
    assert len(counts) == 3
    assert len({s.color for s in counts}) == 1


def test_next_face_change_stops_at_marker_edges():
    text = AnnotatedString("abcdefgh", [(0, 8, "X")], markers=MarkerSet([(3, 5)]))
    assert text.next_face_change(0, 8) == 3
    assert text.next_face_change(3, 8) == 5
    assert text.next_face_change(5, 8) == 8
    assert text.next_face_change(5, 6) == 6


def test_marker_offset_maps_block_positions():
    marks = MarkerSet([(12, 14)])
    text = AnnotatedString("ab cd", markers=marks, marker_offset=10)
    assert not text.has_marker(0)
    assert text.has_marker(2)
    text.mark_fontified(0, 2)
    assert marks.spans() == [(10, 14)]


def test_marker_set_merges_touching_ranges():
    marks = MarkerSet([(0, 2), (5, 7)])
    marks.add(2, 5)
    assert marks.spans() == [(0, 7)]
    marks.add(9, 9)
    assert marks.spans() == [(0, 7)]


def test_marker_set_follows_edits():
    marks = MarkerSet([(0, 3), (5, 8), (10, 12)])
    # replace text at 6..7 with 4 chars: middle mark is touched, last moves by +3
    marks.shift(6, 1, 4)
    assert marks.spans() == [(0, 3), (13, 15)]
    # insert 2 chars at 0: everything moves
    marks.shift(0, 0, 2)
    assert marks.spans() == [(2, 5), (15, 17)]
    marks.clear()
    assert len(marks) == 0
