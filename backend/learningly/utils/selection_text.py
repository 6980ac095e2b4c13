"""
Text rules for selected highlight text.

Whitespace follows the browser's definition (the set String.prototype.trim
and the \\s regex class use), so text is trimmed and collapsed the same way
on both sides of the API. It differs from str.isspace(): U+FEFF counts as
whitespace, the U+001C-U+001F separators do not.
"""

import re

MIN_SELECTION_LENGTH = 2

WHITESPACE_CHARS = (
    "\t\n\v\f\r \u00a0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000\ufeff"
)

_WHITESPACE_CLASS = "[" + re.escape(WHITESPACE_CHARS) + "]"
_WHITESPACE_RUN = re.compile(_WHITESPACE_CLASS + "+")
_NON_WHITESPACE = re.compile("[^" + re.escape(WHITESPACE_CHARS) + "]")


def trim(text: str) -> str:
    return text.strip(WHITESPACE_CHARS)


def sanitize_highlight_text(text: str) -> str:
    """Collapse whitespace runs to a single space and trim"""
    return trim(_WHITESPACE_RUN.sub(" ", text))


def is_valid_selection_text(text: str | None) -> bool:
    """Check the minimum length and non-whitespace content of selected text"""
    if text is None:
        return False

    trimmed = trim(text)
    if len(trimmed) < MIN_SELECTION_LENGTH:
        return False

    return bool(_NON_WHITESPACE.search(trimmed))
