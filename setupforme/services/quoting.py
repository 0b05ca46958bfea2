"""
PowerShell literal quoting.

Everything user-supplied that ends up in a generated script passes through
quote_literal(). Inside a PowerShell single-quoted string the only special
character is the single quote itself (which PowerShell also recognizes in
its typographic forms), so doubling it is sufficient.
"""

import re
from typing import Optional

# ASCII apostrophe plus the curly/low-9 variants PowerShell treats as quotes
SINGLE_QUOTES = "'\u2018\u2019\u201a\u201b"

_QUOTE_RE = re.compile(f"([{SINGLE_QUOTES}])")
_DOUBLED_QUOTE_RE = re.compile(f"([{SINGLE_QUOTES}])\\1")
_LINE_BREAK_RE = re.compile("[\r\n\x0b\x0c\x85\u2028\u2029]+")


def quote_literal(text: Optional[str]) -> str:
    """
    Wrap text in a PowerShell single-quoted string literal.

    Examples:
        "Firefox" -> "'Firefox'"
        "Bob's App" -> "'Bob''s App'"
        None -> "''"
    """
    if text is None:
        text = ""
    return "'" + _QUOTE_RE.sub(r"\1\1", text) + "'"


def unquote_literal(literal: str) -> str:
    """Inverse of quote_literal()."""
    if len(literal) < 2 or literal[0] != "'" or literal[-1] != "'":
        raise ValueError(f"Not a single-quoted literal: {literal!r}")
    return _DOUBLED_QUOTE_RE.sub(r"\1", literal[1:-1])


def comment_text(text: Optional[str]) -> str:
    """
    Flatten text so it can follow a `#` on a single script line.

    Comments cannot be quoted, so line breaks are the only way out of them.
    """
    return _LINE_BREAK_RE.sub(" ", text or "")
