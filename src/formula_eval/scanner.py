"""Character-level helpers shared by the parser.

There is no token stream: the parser works on raw strings and these
helpers answer depth-aware questions about them.
"""

from __future__ import annotations

from typing import Final

ESCAPE_MARKER: Final[str] = "\\"
OPEN_BRACKETS: Final[str] = "([{"
CLOSE_BRACKETS: Final[str] = ")]}"
_NAME_METACHARS: Final[frozenset[str]] = frozenset("?+-&*/^#=,()[]")


def strip_whitespace(text: str) -> str:
    return "".join(text.split())


def is_name_start(ch: str) -> bool:
    return ch.isalpha() or ch == ESCAPE_MARKER


def is_valid_name(name: str) -> bool:
    """Names start with a letter or `\\`; digits and operator characters
    are only allowed inside a `{}` subscript, digits also right after `_`."""
    if not name or not is_name_start(name[0]):
        return False
    curly_open = 0
    previous = ESCAPE_MARKER
    for ch in name:
        if ch == "{":
            curly_open += 1
        elif ch == "}":
            curly_open -= 1
            if curly_open < 0:
                return False
        if curly_open == 0 and ch in _NAME_METACHARS:
            return False
        if ch.isdigit() and curly_open == 0 and previous != "_":
            return False
        previous = ch
    return curly_open == 0


def round_depth_profile(text: str) -> tuple[int, bool]:
    """Final round-bracket depth, and whether one outer pair wraps all of `text`.

    A negative depth means a closing bracket had no partner.
    """
    depth = 0
    wrapped = True
    last = len(text) - 1
    for idx, ch in enumerate(text):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0 and idx != last:
                wrapped = False
            if depth < 0:
                return depth, False
    return depth, wrapped


def split_args(text: str) -> list[str]:
    """Split on commas that are not nested inside any bracket pair.

    An empty `text` has no arguments; otherwise empty slots are kept so
    callers can reject them.
    """
    if not text:
        return []
    args: list[str] = []
    depth = 0
    start = 0
    for idx, ch in enumerate(text):
        if ch in OPEN_BRACKETS:
            depth += 1
        elif ch in CLOSE_BRACKETS:
            depth -= 1
        elif ch == "," and depth == 0:
            args.append(text[start:idx])
            start = idx + 1
    args.append(text[start:])
    return args


def split_call(text: str) -> tuple[str, str] | None:
    """`name(args)` -> (name, args) when the first `(` is not leading and
    the text ends with the matching `)`."""
    first = text.find("(")
    if first <= 0 or not text.endswith(")"):
        return None
    return text[:first], text[first + 1 : -1]
