"""
Identifier coloring: give every distinct identifier of a document its own
stable, theme-aware color.

Core (no Qt needed):
- backends.profiles: per-language lexical profiles (register / get_profile)
- backends.scanner: incremental identifier scanner over annotated text
- backends.session: ColorIndex, refresh() and render()
- backends.palette: L*a*b* based palette generation

Host:
- ui.highlighters: QSyntaxHighlighter driving refresh on idle and render per block

launch_standalone() opens a small editor window for trying it out; it needs
PySide6 (or PySide2).
"""

from __future__ import annotations

import os
import sys
from typing import Optional

from .backends.profiles import UNCLASSIFIED, LexicalProfile, ProfileError, get_profile, register
from .backends.scanner import IdentifierSpan, scan
from .backends.session import ColorIndex, ColorSession, ScanInProgressError, refresh, render
from .backends.palette import identifier_color

__all__ = [
    "UNCLASSIFIED",
    "LexicalProfile",
    "ProfileError",
    "get_profile",
    "register",
    "IdentifierSpan",
    "scan",
    "ColorIndex",
    "ColorSession",
    "ScanInProgressError",
    "refresh",
    "render",
    "identifier_color",
    "launch_standalone",
]


def _guess_language(path: str) -> str:
    from pygments.lexers import get_lexer_for_filename
    from pygments.util import ClassNotFound

    try:
        lexer = get_lexer_for_filename(path)
    except ClassNotFound:
        return "python"
    for alias in lexer.aliases:
        if get_profile(alias) is not None:
            return alias
    return lexer.aliases[0] if lexer.aliases else "python"


def launch_standalone(path: Optional[str] = None, language: Optional[str] = None):
    """Open a plain-text editor with identifier coloring attached.

    ``path`` defaults to the first command-line argument; the language is
    guessed from the file name when not given.
    """
    try:
        from PySide6.QtWidgets import QApplication, QPlainTextEdit  # type: ignore
    except ImportError:
        try:
            from PySide2.QtWidgets import QApplication, QPlainTextEdit  # type: ignore
        except ImportError as exc:
            print("[IdColors] PySide6/PySide2 is required for standalone launch:", exc)
            sys.exit(1)

    from .ui.highlighters import create_identifier_highlighter

    if path is None and len(sys.argv) > 1:
        path = sys.argv[1]
    app = QApplication.instance() or QApplication(sys.argv)
    editor = QPlainTextEdit()
    editor.setWindowTitle(os.path.basename(path) if path else "Identifier colors")
    if path:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            editor.setPlainText(f.read())
    lang = language or (_guess_language(path) if path else "python")
    editor._idcolors_highlighter = create_identifier_highlighter(editor.document(), language=lang)
    if editor._idcolors_highlighter is None:
        print(f"[IdColors] No lexical profile for {lang!r}; showing plain text")
    editor.resize(900, 700)
    editor.show()
    try:
        rc = app.exec()
    except AttributeError:
        rc = app.exec_()
    sys.exit(rc)
