from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, NamedTuple, Optional

from .palette import RGB, identifier_color
from .profiles import LexicalProfile
from .scanner import scan


DEFAULT_PALETTE_SIZE = 8


class ScanInProgressError(RuntimeError):
    """refresh/render was entered while another scan of the session was running."""


class ColorIndex:
    """Identifier -> palette slot, in first-seen order.

    Slots are handed out round-robin over ``[0, palette_size)`` by discovery
    order; they never depend on the identifier's characters.
    """

    def __init__(self, palette_size: int = DEFAULT_PALETTE_SIZE):
        self.palette_size = max(1, int(palette_size))
        self.slots: Dict[str, int] = {}
        self._counter = 0

    def __len__(self) -> int:
        return len(self.slots)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self.slots

    def __iter__(self):
        return iter(self.slots)

    def get(self, identifier: str) -> Optional[int]:
        return self.slots.get(identifier)

    def add(self, identifier: str) -> int:
        slot = self.slots.get(identifier)
        if slot is None:
            slot = self._counter % self.palette_size
            self.slots[identifier] = slot
            self._counter += 1
        return slot

    def items(self):
        return self.slots.items()


class StyledSpan(NamedTuple):
    start: int
    end: int
    identifier: str
    slot: int
    color: RGB


@dataclass
class ColorSession:
    """Coloring state of one document: its profile and live ColorIndex."""

    profile: Optional[LexicalProfile]
    palette_size: int = DEFAULT_PALETTE_SIZE
    debug: bool = False
    index: ColorIndex = field(init=False)
    _scanning: bool = field(default=False, init=False, repr=False)

    def __post_init__(self):
        self.palette_size = max(1, int(self.palette_size))
        self.index = ColorIndex(self.palette_size)

    @contextmanager
    def _exclusive(self, what: str) -> Iterator[None]:
        if self._scanning:
            raise ScanInProgressError(f"{what} requested while a scan is running")
        self._scanning = True
        try:
            yield
        finally:
            self._scanning = False

    def reset(self) -> None:
        self.index = ColorIndex(self.palette_size)


def refresh(session: ColorSession, text, continue_p: Optional[Callable[[], bool]] = None) -> ColorIndex:
    """Rebuild the session's ColorIndex from a whole-document scan.

    The new index is built aside and only swapped in when the scan runs to
    completion; a cancelled scan leaves the previous index in place. Returns
    the live index after the attempt.
    """
    with session._exclusive("refresh"):
        fresh = ColorIndex(session.palette_size)
        src = text.text
        run = scan(text, session.profile, continue_p=continue_p)
        for span in run:
            fresh.add(src[span.start:span.end])
        if run.cancelled:
            if session.debug:
                print(f"[IdColors] refresh cancelled; keeping {len(session.index)} identifiers")
            return session.index
        session.index = fresh
        if session.debug:
            print(f"[IdColors] refresh: {len(fresh)} identifiers")
        return fresh


def render(
    session: ColorSession,
    text,
    start: int,
    limit: int,
    fg_lightness: float,
    bg_lightness: float,
    continue_p: Optional[Callable[[], bool]] = None,
) -> List[StyledSpan]:
    """Color identifiers in ``[start, limit)`` that the last refresh indexed.

    Identifiers missing from the index are left alone. Every colored span is
    stamped with the fontified marker so it stays recognisable after the
    host reclassifies the text.
    """
    with session._exclusive("render"):
        out: List[StyledSpan] = []
        index = session.index
        src = text.text
        for span in scan(text, session.profile, start=start, limit=limit, continue_p=continue_p):
            ident = src[span.start:span.end]
            slot = index.get(ident)
            if slot is None:
                continue
            color = identifier_color(slot, index.palette_size, fg_lightness, bg_lightness)
            text.mark_fontified(span.start, span.end)
            out.append(StyledSpan(span.start, span.end, ident, slot, color))
        return out
