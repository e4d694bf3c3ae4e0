from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Hashable, Iterable, List, Optional, Pattern, Tuple, Union

from pygments.token import Token, string_to_tokentype


# Face class meaning "text the host left unclassified"
UNCLASSIFIED = None

# How far back the context pattern may look from the identifier start
CONTEXT_LOOKBEHIND = 120

FaceClasses = Union[Iterable[Optional[Hashable]], Callable[[], Iterable[Optional[Hashable]]]]


class ProfileError(ValueError):
    """A lexical profile could not be registered (bad pattern, bad faces)."""


@dataclass(frozen=True)
class LexicalProfile:
    language: str
    identifier_rx: Pattern[str]
    faces: Union[FrozenSet[Optional[Hashable]], Callable[[], Iterable[Optional[Hashable]]]]
    context_rx: Optional[Pattern[str]] = None
    aliases: Tuple[str, ...] = field(default_factory=tuple)

    def face_classes(self) -> FrozenSet[Optional[Hashable]]:
        if callable(self.faces):
            return frozenset(self.faces())
        return self.faces

    def context_matches(self, text: str, pos: int) -> bool:
        """True when the text right before ``pos`` satisfies the context pattern."""
        if self.context_rx is None:
            return True
        # The window always reaches one character past the whitespace run
        # before ``pos``, however long that run is.
        k = pos
        while k > 0 and text[k - 1].isspace():
            k -= 1
        lo = max(0, min(pos - CONTEXT_LOOKBEHIND, k - 1))
        return self.context_rx.search(text, lo, pos) is not None


_REGISTRY: Dict[str, LexicalProfile] = {}
_ALIASES: Dict[str, str] = {}


def _key(language: str) -> str:
    return (language or "").strip().lower()


def _compile(kind: str, language: str, pattern: str) -> Pattern[str]:
    try:
        return re.compile(pattern)
    except (re.error, TypeError) as exc:
        raise ProfileError(f"{language}: invalid {kind} pattern {pattern!r}: {exc}") from exc


def register(
    language: str,
    identifier_pattern: str,
    face_classes: FaceClasses,
    context_pattern: str | None = None,
    aliases: Iterable[str] = (),
) -> LexicalProfile:
    """Compile and store the lexical profile for ``language``.

    ``identifier_pattern`` must carry exactly one capture group, which
    delimits the identifier. ``context_pattern`` is matched against the text
    preceding the identifier and must end exactly where the identifier
    starts. ``face_classes`` is a collection of host face classes (include
    ``UNCLASSIFIED`` to accept unclassified text) or a zero-argument callable
    returning one, resolved at every scan.

    Raises ProfileError without touching the registry when a pattern does
    not compile.
    """
    key = _key(language)
    if not key:
        raise ProfileError("language id must not be empty")
    ident_rx = _compile("identifier", key, identifier_pattern)
    if ident_rx.groups != 1:
        raise ProfileError(f"{key}: identifier pattern needs exactly one capture group, has {ident_rx.groups}")
    ctx_rx = None
    if context_pattern:
        ctx_rx = _compile("context", key, f"(?:{context_pattern})\\Z")
    if callable(face_classes):
        faces: Any = face_classes
    else:
        try:
            faces = frozenset(face_classes)
        except TypeError as exc:
            raise ProfileError(f"{key}: face classes must be hashable: {exc}") from exc
    alias_keys = tuple(a for a in (_key(x) for x in aliases) if a and a != key)
    profile = LexicalProfile(language=key, identifier_rx=ident_rx, faces=faces, context_rx=ctx_rx, aliases=alias_keys)
    _REGISTRY[key] = profile
    for a in alias_keys:
        _ALIASES[a] = key
    return profile


def unregister(language: str) -> None:
    key = _ALIASES.get(_key(language), _key(language))
    profile = _REGISTRY.pop(key, None)
    if profile is None:
        return
    for a in profile.aliases:
        if _ALIASES.get(a) == key:
            del _ALIASES[a]


def get_profile(language: str | None) -> Optional[LexicalProfile]:
    """Profile for a language id or alias; None when the language is unknown."""
    key = _key(language or "")
    key = _ALIASES.get(key, key)
    return _REGISTRY.get(key)


def registered_languages() -> List[str]:
    return sorted(_REGISTRY)


# --------------------------
# Built-in profiles
# --------------------------

# Names Pygments lexers hand out for plain identifiers
_NAME_FACES = (Token.Name, Token.Name.Other, Token.Name.Variable)

# Reject member access (obj.foo, obj->foo, Mod::foo) but allow the document start
_NOT_MEMBER = r"\A\s*|[^.\s>:]\s*|[^-]>\s*"

BUILTIN_PROFILES: List[Dict[str, Any]] = [
    {
        "language": "python",
        "aliases": ("py", "python3"),
        "identifier_pattern": r"\b([A-Za-z_][A-Za-z0-9_]*)",
        "context_pattern": r"\A\s*|[^.\s]\s*",
        "face_classes": _NAME_FACES + (Token.Name.Variable.Magic,),
    },
    {
        "language": "javascript",
        "aliases": ("js", "jsx"),
        "identifier_pattern": r"(?<![\w$])([A-Za-z_$][\w$]*)",
        "context_pattern": r"\A\s*|[^.\s]\s*",
        "face_classes": _NAME_FACES,
    },
    {
        "language": "typescript",
        "aliases": ("ts", "tsx"),
        "identifier_pattern": r"(?<![\w$])([A-Za-z_$][\w$]*)",
        "context_pattern": r"\A\s*|[^.\s]\s*",
        "face_classes": _NAME_FACES,
    },
    {
        "language": "go",
        "aliases": ("golang",),
        "identifier_pattern": r"\b([A-Za-z_][A-Za-z0-9_]*)",
        "context_pattern": r"\A\s*|[^.\s]\s*",
        "face_classes": _NAME_FACES,
    },
    {
        "language": "rust",
        "aliases": ("rs",),
        "identifier_pattern": r"\b([a-z_][A-Za-z0-9_]*)",
        "context_pattern": _NOT_MEMBER,
        "face_classes": _NAME_FACES,
    },
    {
        "language": "c",
        "aliases": ("cpp", "c++", "h", "hpp"),
        "identifier_pattern": r"\b([A-Za-z_][A-Za-z0-9_]*)",
        "context_pattern": _NOT_MEMBER,
        "face_classes": _NAME_FACES,
    },
    {
        "language": "java",
        "aliases": (),
        "identifier_pattern": r"\b([A-Za-z_$][\w$]*)",
        "context_pattern": r"\A\s*|[^.\s]\s*",
        "face_classes": _NAME_FACES,
    },
    {
        "language": "ruby",
        "aliases": ("rb",),
        "identifier_pattern": r"(?<![\w@$])([a-z_][A-Za-z0-9_]*)",
        "context_pattern": r"\A\s*|[^.\s:]\s*",
        "face_classes": _NAME_FACES + (Token.Name.Variable.Instance,),
    },
    {
        "language": "scala",
        "aliases": (),
        "identifier_pattern": r"\b([a-z_][A-Za-z0-9_]*)",
        "context_pattern": r"\A\s*|[^.\s]\s*",
        "face_classes": _NAME_FACES,
    },
]


def faces_from_names(names: Iterable[Optional[str]]) -> FrozenSet[Optional[Hashable]]:
    """Map Pygments token names ("Name.Variable") to token types; null -> UNCLASSIFIED."""
    out = set()
    for nm in names:
        if nm is None:
            out.add(UNCLASSIFIED)
            continue
        s = str(nm).strip()
        if s.startswith("Token."):
            s = s[len("Token."):]
        out.add(string_to_tokentype(s) if s else Token)
    return frozenset(out)


def load_profiles(entries: Iterable[Dict[str, Any]], debug: bool = False) -> List[str]:
    """Register each entry, skipping and reporting the broken ones.

    Entries carry ``language``, ``identifier_pattern``, optional
    ``context_pattern``, ``aliases`` and ``face_classes``. String face names
    are resolved as Pygments token types. Returns the languages registered.
    """
    done: List[str] = []
    for row in entries:
        try:
            faces = row.get("face_classes", ())
            if not callable(faces) and any(isinstance(f, str) or f is None for f in faces):
                faces = faces_from_names(faces)
            profile = register(
                row.get("language", ""),
                row.get("identifier_pattern", ""),
                faces,
                context_pattern=row.get("context_pattern"),
                aliases=row.get("aliases", ()),
            )
        except (ProfileError, AttributeError, TypeError) as exc:
            print(f"[IdColors] Skipping lexical profile: {exc}")
            continue
        done.append(profile.language)
        if debug:
            print(f"[IdColors] Registered lexical profile: {profile.language}")
    return done


load_profiles(BUILTIN_PROFILES)
