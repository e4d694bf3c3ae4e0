import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtGui = pytest.importorskip("PySide6.QtGui")

from idcolors.ui import highlighters
from idcolors.utils.config import Settings


@pytest.fixture(scope="module")
def app():
    return QtGui.QGuiApplication.instance() or QtGui.QGuiApplication([])


def make_document(text=""):
    doc = QtGui.QTextDocument()
    # Blocks only get layouts and contentsChange only fires once the document has a layout
    doc.documentLayout()
    doc.setPlainText(text)
    return doc


def colored_ranges(block):
    return [(r.start, r.length, r.format.foreground().color().name()) for r in block.layout().formats()]


def test_unknown_language_gets_no_highlighter(app):
    doc = make_document()
    assert highlighters.create_identifier_highlighter(doc, "no-such-language", Settings()) is None


def test_identifiers_colored_after_refresh(app):
    doc = make_document("total = 1\ntotal = total + step\n")
    hl = highlighters.create_identifier_highlighter(doc, "python", Settings(idle_delay=10))
    hl.rehighlight()
    assert colored_ranges(doc.firstBlock()) == []

    hl.refresh_now()
    assert list(hl.session.index) == ["total", "step"]
    first = colored_ranges(doc.firstBlock())
    second = colored_ranges(doc.firstBlock().next())
    assert [(start, length) for start, length, _ in first] == [(0, 5)]
    assert [(start, length) for start, length, _ in second] == [(0, 5), (8, 5), (16, 4)]
    assert first[0][2] == second[0][2] == second[1][2]
    assert second[2][2] != first[0][2]
    assert (10, 15) in hl.markers.spans()


def test_edits_schedule_refresh_and_move_marks(app):
    doc = make_document("alpha = beta\n")
    hl = highlighters.create_identifier_highlighter(doc, "python", Settings(idle_delay=10))
    hl.refresh_now()
    assert hl.markers.spans() == [(0, 5), (8, 12)]

    cursor = QtGui.QTextCursor(doc)
    cursor.insertText("# \n")
    assert hl._timer.isActive()
    assert (11, 15) in hl.markers.spans()


def test_words_inside_python_docstring_stay_plain(app):
    doc = make_document('total = 1\n"""\ntotal is documented here\n"""\n')
    hl = highlighters.create_identifier_highlighter(doc, "python", Settings(idle_delay=10))
    hl.refresh_now()
    assert "total" in hl.session.index
    assert "documented" not in hl.session.index
    assert colored_ranges(doc.findBlockByNumber(0)) != []
    assert colored_ranges(doc.findBlockByNumber(2)) == []


def test_words_inside_c_block_comment_stay_plain(app):
    doc = make_document("int count = 0;\n/*\n count here\n*/\n")
    hl = highlighters.create_identifier_highlighter(doc, "c", Settings(idle_delay=10))
    hl.refresh_now()
    assert "count" in hl.session.index
    assert "here" not in hl.session.index
    assert colored_ranges(doc.findBlockByNumber(0)) != []
    assert colored_ranges(doc.findBlockByNumber(2)) == []


def test_edit_reclassifies_following_blocks(app):
    doc = make_document("total = 1\nstep = total\n")
    hl = highlighters.create_identifier_highlighter(doc, "python", Settings(idle_delay=10))
    hl.refresh_now()
    assert colored_ranges(doc.findBlockByNumber(1)) != []

    # Opening a docstring above turns the following lines into string text
    cursor = QtGui.QTextCursor(doc)
    cursor.setPosition(doc.findBlockByNumber(1).position())
    cursor.insertText('"""\n')
    hl.markers.clear()
    hl.rehighlight()
    assert colored_ranges(doc.findBlockByNumber(2)) == []


def test_palette_change_recolors_document(app, monkeypatch):
    doc = make_document("total = 1\n")
    hl = highlighters.create_identifier_highlighter(doc, "python", Settings(idle_delay=10))
    hl.refresh_now()
    before = colored_ranges(doc.firstBlock())
    fg, _bg = highlighters.theme_lightness()

    swapped = (45.0, 30.0) if fg > 60 else (80.0, 60.0)
    monkeypatch.setattr(highlighters, "theme_lightness", lambda: swapped)
    app.paletteChanged.emit(app.palette())
    after = colored_ranges(doc.firstBlock())
    assert [(s, n) for s, n, _ in after] == [(s, n) for s, n, _ in before]
    assert after[0][2] != before[0][2]


def test_theme_lightness_reads_palette(app):
    fg, bg = highlighters.theme_lightness()
    assert 0.0 <= fg <= 100.0
    assert 0.0 <= bg <= 100.0
