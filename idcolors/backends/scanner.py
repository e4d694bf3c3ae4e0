from __future__ import annotations

from typing import Callable, Iterator, NamedTuple, Optional

from .profiles import LexicalProfile


class IdentifierSpan(NamedTuple):
    start: int
    end: int


class Scan:
    """One pass of the identifier scanner over ``[start, limit)``.

    Iterating yields IdentifierSpan values in text order. Positions whose
    face class is not accepted by the profile (and that carry no fontified
    marker) are skipped a whole face run at a time. ``continue_p`` is polled
    before every step; once it returns False the pass stops and
    ``cancelled`` is set. Each iteration starts over from ``start``.
    """

    def __init__(
        self,
        text,
        profile: Optional[LexicalProfile],
        start: int = 0,
        limit: Optional[int] = None,
        continue_p: Optional[Callable[[], bool]] = None,
    ):
        self.text = text
        self.profile = profile
        self.start = max(0, int(start))
        self.limit = len(text.text) if limit is None else min(int(limit), len(text.text))
        self.continue_p = continue_p
        self.cancelled = False

    def __iter__(self) -> Iterator[IdentifierSpan]:
        self.cancelled = False
        profile = self.profile
        if profile is None:
            return
        text = self.text
        s = text.text
        limit = self.limit
        continue_p = self.continue_p
        faces = profile.face_classes()
        ident_rx = profile.identifier_rx
        face_at = text.face_at
        has_marker = text.has_marker

        pos = self.start
        while pos < limit:
            if continue_p is not None and not continue_p():
                self.cancelled = True
                return
            if face_at(pos) not in faces and not has_marker(pos):
                pos = text.next_face_change(pos, limit)
                continue
            if profile.context_matches(s, pos):
                m = ident_rx.match(s, pos)
                if m is not None and m.end(1) > m.start(1):
                    yield IdentifierSpan(m.start(1), m.end(1))
                    pos = max(m.end(1), pos + 1)
                    continue
            # False start: resynchronise on the next identifier-looking text
            m = ident_rx.search(s, pos + 1, limit)
            if m is None:
                return
            pos = m.start()


def scan(text, profile, start=0, limit=None, continue_p=None) -> Scan:
    return Scan(text, profile, start=start, limit=limit, continue_p=continue_p)
