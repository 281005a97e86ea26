"""Query normalization and highlight markup helpers."""

import re
from typing import List, Pattern

MARK_OPEN = "<mark>"
MARK_CLOSE = "</mark>"

_REGEX_SPECIALS = re.compile(r"[.*+?^${}()|\[\]\\]")


def tokenize(text: str) -> List[str]:
    """Lower-case text and split it into non-empty whitespace-delimited tokens."""
    if not text:
        return []
    return [token for token in text.lower().split() if token]


def escape_regex(fragment: str) -> str:
    """Escape regex metacharacters so fragment matches literally.

    Only ``. * + ? ^ $ { } ( ) | [ ] \\`` are escaped; everything else is left
    as-is so the result stays readable inside larger patterns.
    """
    return _REGEX_SPECIALS.sub(lambda m: "\\" + m.group(0), fragment)


def highlight(text: str, pattern: Pattern[str]) -> str:
    """Wrap every non-empty match of pattern in <mark> tags."""
    if not text:
        return text

    def _wrap(match: "re.Match[str]") -> str:
        if not match.group(0):
            return match.group(0)
        return f"{MARK_OPEN}{match.group(0)}{MARK_CLOSE}"

    return pattern.sub(_wrap, text)


def highlight_terms(text: str, terms: List[str]) -> str:
    """Highlight every case-insensitive literal occurrence of any term.

    All terms go into one alternation applied in a single pass, longest
    first, so a term never matches inside markup added for another.
    """
    unique = sorted({term.lower() for term in terms if term}, key=len, reverse=True)
    if not unique:
        return text
    pattern = re.compile("|".join(escape_regex(term) for term in unique), re.IGNORECASE)
    return highlight(text, pattern)
