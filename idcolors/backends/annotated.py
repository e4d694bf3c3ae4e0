from __future__ import annotations

"""
Annotated text providers for the identifier scanner.

The scanner only needs a narrow view of the host text:

- ``text``: the raw string
- ``face_at(pos)``: the host's face class at a position (None = unclassified)
- ``next_face_change(pos, limit)``: next position where the face class or the
  fontified marker changes, always ``> pos`` and ``<= limit``
- ``has_marker(pos)`` / ``mark_fontified(start, end)``: the fontified marker

AnnotatedString takes explicit face runs (tests, hosts with their own
classification). PygmentsAnnotatedText classifies with a Pygments lexer.
"""

from bisect import bisect_left, bisect_right
from typing import Hashable, Iterable, List, Optional, Tuple

from pygments.lexers import get_lexer_by_name
from pygments.token import Token
from pygments.util import ClassNotFound

from .profiles import UNCLASSIFIED


class MarkerSet:
    """Sorted, non-overlapping [start, end) ranges carrying the fontified marker."""

    def __init__(self, spans: Iterable[Tuple[int, int]] = ()):
        self._starts: List[int] = []
        self._ends: List[int] = []
        for a, b in spans:
            self.add(a, b)

    def __len__(self) -> int:
        return len(self._starts)

    def spans(self) -> List[Tuple[int, int]]:
        return list(zip(self._starts, self._ends))

    def clear(self) -> None:
        self._starts = []
        self._ends = []

    def add(self, start: int, end: int) -> None:
        if end <= start:
            return
        # Merge with every range touching [start, end)
        i = bisect_left(self._ends, start)
        j = bisect_right(self._starts, end)
        if i < j:
            start = min(start, self._starts[i])
            end = max(end, self._ends[j - 1])
        self._starts[i:j] = [start]
        self._ends[i:j] = [end]

    def covers(self, pos: int) -> bool:
        i = bisect_right(self._starts, pos) - 1
        return i >= 0 and pos < self._ends[i]

    def next_change(self, pos: int, limit: int) -> int:
        """First position after ``pos`` where coverage flips, capped at ``limit``."""
        i = bisect_right(self._starts, pos) - 1
        if i >= 0 and pos < self._ends[i]:
            return min(self._ends[i], limit)
        if i + 1 < len(self._starts):
            return min(self._starts[i + 1], limit)
        return limit

    def shift(self, position: int, removed: int, added: int) -> None:
        """Follow an edit: drop marks the edit touches, move later marks."""
        delta = added - removed
        edit_end = position + removed
        starts: List[int] = []
        ends: List[int] = []
        for a, b in zip(self._starts, self._ends):
            if b <= position:
                starts.append(a); ends.append(b)
            elif a >= edit_end:
                starts.append(a + delta); ends.append(b + delta)
            # anything else overlaps the edit and loses its mark
        self._starts = starts
        self._ends = ends


class _RunText:
    """Shared face-run bookkeeping: run starts plus the face of each run."""

    def __init__(self, text: str, markers: MarkerSet | None = None, marker_offset: int = 0):
        self.text = text
        self.markers = markers if markers is not None else MarkerSet()
        self.marker_offset = int(marker_offset)
        self._starts: List[int] = [0]
        self._faces: List[Optional[Hashable]] = [UNCLASSIFIED]

    def __len__(self) -> int:
        return len(self.text)

    def _set_runs(self, runs: Iterable[Tuple[int, Optional[Hashable]]]) -> None:
        starts: List[int] = []
        faces: List[Optional[Hashable]] = []
        for start, face in runs:
            if faces and faces[-1] == face:
                continue
            starts.append(start); faces.append(face)
        if not starts or starts[0] != 0:
            starts.insert(0, 0); faces.insert(0, UNCLASSIFIED)
        self._starts = starts
        self._faces = faces

    def face_at(self, pos: int) -> Optional[Hashable]:
        if pos < 0 or pos >= len(self.text):
            return UNCLASSIFIED
        return self._faces[bisect_right(self._starts, pos) - 1]

    def has_marker(self, pos: int) -> bool:
        return self.markers.covers(pos + self.marker_offset)

    def mark_fontified(self, start: int, end: int) -> None:
        off = self.marker_offset
        self.markers.add(start + off, end + off)

    def next_face_change(self, pos: int, limit: int) -> int:
        i = bisect_right(self._starts, pos)
        face_next = self._starts[i] if i < len(self._starts) else limit
        off = self.marker_offset
        mark_next = self.markers.next_change(pos + off, limit + off) - off
        return max(min(face_next, mark_next, limit), pos + 1)


class AnnotatedString(_RunText):
    """In-memory annotated text built from explicit ``(start, end, face)`` runs.

    Text outside every run is unclassified. Runs may be given in any order;
    later runs win where they overlap.
    """

    def __init__(
        self,
        text: str,
        faces: Iterable[Tuple[int, int, Optional[Hashable]]] = (),
        markers: MarkerSet | None = None,
        marker_offset: int = 0,
    ):
        _RunText.__init__(self, text, markers, marker_offset)
        cells: List[Optional[Hashable]] = [UNCLASSIFIED] * len(text)
        for start, end, face in faces:
            for k in range(max(0, start), min(len(text), end)):
                cells[k] = face
        self._set_runs((k, f) for k, f in enumerate(cells))


def _face_for_token(ttype) -> Optional[Hashable]:
    if ttype is Token or ttype in Token.Text or ttype in Token.Whitespace:
        return UNCLASSIFIED
    return ttype


def make_lexer(lexer_name: str):
    """Pygments lexer that keeps raw offsets intact; None when unknown."""
    try:
        return get_lexer_by_name(lexer_name, stripnl=False, stripall=False, ensurenl=False)
    except ClassNotFound:
        return None


class PygmentsAnnotatedText(_RunText):
    """Annotated text whose face classes are Pygments token types.

    Whitespace and plain text tokens count as unclassified. Offsets come from
    ``get_tokens_unprocessed`` so they index the raw string.
    """

    def __init__(
        self,
        text: str,
        lexer,
        markers: MarkerSet | None = None,
        marker_offset: int = 0,
    ):
        _RunText.__init__(self, text, markers, marker_offset)
        if isinstance(lexer, str):
            lexer = make_lexer(lexer)
        self.lexer = lexer
        if lexer is None or not text:
            return
        self._set_runs(
            (index, _face_for_token(ttype))
            for index, ttype, value in lexer.get_tokens_unprocessed(text)
            if value
        )
