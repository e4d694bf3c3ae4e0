from __future__ import annotations

"""
Qt host for identifier coloring.

IdentifierColorHighlighter plugs the coloring core into a QTextDocument:

- Pygments classifies the whole document once per edit; each block renders
  its slice of that cached classification, so identifiers inside multi-line
  strings and comments keep their real token type.
- A single-shot QTimer restarted by every edit refreshes the whole-document
  index once typing pauses for ``idle_delay`` seconds, then rehighlights.
- Foreground/background lightness is sampled from the application palette
  on every block, and a palette change rehighlights the document.

Factory helper:
- create_identifier_highlighter(document, language, settings=None) -> highlighter | None
"""

try:
    from PySide6.QtCore import QTimer
    from PySide6.QtGui import QColor, QGuiApplication, QPalette, QSyntaxHighlighter, QTextCharFormat
except ImportError:
    from PySide2.QtCore import QTimer  # type: ignore
    from PySide2.QtGui import QColor, QGuiApplication, QPalette, QSyntaxHighlighter, QTextCharFormat  # type: ignore

from ..backends.annotated import MarkerSet, PygmentsAnnotatedText, make_lexer
from ..backends.palette import RGB, hex_to_rgb, lightness_of
from ..backends.profiles import get_profile, load_profiles
from ..backends.session import ColorSession, ScanInProgressError, refresh, render
from ..utils.config import Settings, get_settings

# --------------------------
# Theme helpers
# --------------------------

_FALLBACK_TEXT = "#dddddd"
_FALLBACK_BASE = "#1e1e1e"


def _theme_palette():
    app = QGuiApplication.instance()
    return app.palette() if app else None


def _rgb_of(color: QColor) -> RGB:
    return RGB(color.redF(), color.greenF(), color.blueF())


def theme_lightness() -> tuple[float, float]:
    """(foreground, background) L* of the current application palette."""
    pal = _theme_palette()
    fg = bg = None
    if pal is not None:
        text = pal.color(QPalette.Text)
        base = pal.color(QPalette.Base)
        if text.isValid():
            fg = _rgb_of(text)
        if base.isValid():
            bg = _rgb_of(base)
    fg = fg or hex_to_rgb(_FALLBACK_TEXT)
    bg = bg or hex_to_rgb(_FALLBACK_BASE)
    return lightness_of(fg), lightness_of(bg)

# --------------------------
# Highlighter
# --------------------------

class _DocumentText:
    """Whole-document classification shared by refresh and per-block render.

    Pygments runs over the full text so multi-line strings and comments keep
    their token types; the result is cached until the next edit.
    """

    def __init__(self):
        self.markers = MarkerSet()
        self.lexer = None
        self._snapshot = None
        self._key = None

    def on_change(self, position: int, removed: int, added: int) -> None:
        self.markers.shift(position, removed, added)
        self._snapshot = None

    def invalidate(self) -> None:
        self._snapshot = None

    def snapshot(self, document) -> PygmentsAnnotatedText:
        key = (document.revision(), document.characterCount())
        if self._snapshot is None or self._key != key:
            self._snapshot = PygmentsAnnotatedText(document.toPlainText(), self.lexer, markers=self.markers)
            self._key = key
        return self._snapshot


class IdentifierColorHighlighter(QSyntaxHighlighter):
    """Colors each identifier of a document by its slot in the ColorIndex."""

    def __init__(self, document, language: str = "python", settings: Settings | None = None):
        # Marks and the cached classification must follow an edit before the
        # base class re-highlights the touched blocks, so this connection has
        # to exist first.
        doc_text = _DocumentText()
        document.contentsChange.connect(doc_text.on_change)
        QSyntaxHighlighter.__init__(self, document)
        self._doc_text = doc_text

        self.settings = settings or get_settings()
        self.session = ColorSession(None, palette_size=self.settings.palette_size, debug=self.settings.debug)
        self.language = ""
        self._formats: dict = {}

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(int(self.settings.idle_delay * 1000))
        self._timer.timeout.connect(self.refresh_now)
        document.contentsChange.connect(self._on_contents_change)

        app = QGuiApplication.instance()
        if app is not None:
            app.paletteChanged.connect(self._on_palette_changed)

        self.set_language(language)

    @property
    def markers(self) -> MarkerSet:
        return self._doc_text.markers

    def set_language(self, language: str) -> bool:
        """Switch lexical profile and lexer; False when the language is unknown."""
        profile = get_profile(language)
        self.language = (language or "").lower()
        self.session.profile = profile
        self.session.reset()
        self._doc_text.markers.clear()
        lexer = make_lexer(self.language) if profile else None
        if profile is not None and lexer is None:
            lexer = make_lexer(profile.language)
        self._doc_text.lexer = lexer
        self._doc_text.invalidate()
        if self.settings.debug:
            print(f"[IdColors] Highlighter: language={self.language} profile={'yes' if profile else 'none'}")
        self.schedule_refresh()
        return profile is not None

    def schedule_refresh(self) -> None:
        if self.session.profile is not None:
            self._timer.start()

    def _on_contents_change(self, _position: int, _removed: int, _added: int) -> None:
        self.schedule_refresh()

    def _on_palette_changed(self, _palette=None) -> None:
        if self.session.profile is not None and len(self.session.index):
            self.rehighlight()

    def refresh_now(self) -> None:
        """Rebuild the ColorIndex from the whole document and repaint."""
        self._timer.stop()
        doc = self.document()
        if doc is None or self.session.profile is None:
            return
        revision = doc.revision()
        snapshot = self._doc_text.snapshot(doc)
        try:
            refresh(self.session, snapshot, continue_p=lambda: doc.revision() == revision)
        except ScanInProgressError:
            self.schedule_refresh()
            return
        self.rehighlight()

    def _format_for(self, color: RGB) -> QTextCharFormat:
        key = color.hex()
        fmt = self._formats.get(key)
        if fmt is None:
            fmt = QTextCharFormat()
            fmt.setForeground(QColor(key))
            self._formats[key] = fmt
        return fmt

    def highlightBlock(self, text: str) -> None:  # type: ignore
        if not text or self.session.profile is None or not len(self.session.index):
            return
        base = self.currentBlock().position()
        annotated = self._doc_text.snapshot(self.document())
        fg, bg = theme_lightness()
        try:
            spans = render(self.session, annotated, base, base + len(text), fg, bg)
        except ScanInProgressError:
            return
        setFormat = self.setFormat
        for sp in spans:
            setFormat(sp.start - base, sp.end - sp.start, self._format_for(sp.color))


# --------------------------
# Factories
# --------------------------

def create_identifier_highlighter(document, language: str = "python", settings: Settings | None = None):
    """Attach an IdentifierColorHighlighter; None when no profile covers ``language``.

    Extra lexical profiles from the settings file are registered first.
    """
    settings = settings or get_settings()
    if settings.profiles:
        load_profiles(settings.profiles, debug=settings.debug)
    if get_profile(language) is None:
        if settings.debug:
            print(f"[IdColors] No lexical profile for {language!r}")
        return None
    return IdentifierColorHighlighter(document, language=language, settings=settings)
