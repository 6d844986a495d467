"""IRCv3 message-tag value escaping."""

from __future__ import annotations

import unicodedata
from collections.abc import Iterator

# Order matters: the backslash must be escaped first.
TAG_ESCAPES: tuple[tuple[str, str], ...] = (
    ("\\", "\\\\"),
    (" ", "\\s"),
    (";", "\\:"),
    ("\r", "\\r"),
    ("\n", "\\n"),
)
_UNESCAPE_PAIRS = {escaped: raw for raw, escaped in TAG_ESCAPES}

_ZWJ = "\u200d"


def _extends_element(ch: str) -> bool:
    if unicodedata.combining(ch):
        return True
    # Variation selectors and zero-width joiner glue onto the previous element.
    return ch == _ZWJ or "\ufe00" <= ch <= "\ufe0f" or unicodedata.category(ch) == "Me"


def iter_text_elements(value: str) -> Iterator[str]:
    """Yield user-perceived characters: a base char plus its combining marks."""
    i = 0
    n = len(value)
    while i < n:
        j = i + 1
        while j < n and _extends_element(value[j]):
            j += 1
            # A ZWJ also pulls in the character it joins.
            if value[j - 1] == _ZWJ and j < n:
                j += 1
        yield value[i:j]
        i = j


def escape_tag_value(value: str) -> str:
    for raw, escaped in TAG_ESCAPES:
        value = value.replace(raw, escaped)
    return value


def unescape_tag_value(value: str) -> str:
    """Undo tag escaping, leniently.

    Unknown escape pairs keep the escaped element and drop the backslash; a
    lone trailing backslash is dropped.
    """
    out: list[str] = []
    elements = iter_text_elements(value)
    for current in elements:
        if current != "\\":
            out.append(current)
            continue
        nxt = next(elements, None)
        if nxt is None:
            break
        out.append(_UNESCAPE_PAIRS.get(current + nxt, nxt))
    return "".join(out)
