"""locates delimited math expressions inside plain text."""

import re
from typing import NamedTuple

# \( ... \) and $$ ... $$, non-greedy and spanning lines
INLINE_MATH_PATTERN = re.compile(r"\\\((.+?)\\\)", re.DOTALL)
DISPLAY_MATH_PATTERN = re.compile(r"\$\$(.+?)\$\$", re.DOTALL)

MATH_PATTERNS = (INLINE_MATH_PATTERN, DISPLAY_MATH_PATTERN)

# either delimiter style, used to shield math from the markdown parser
PROTECT_PATTERN = re.compile(r"(\$\$.+?\$\$)|(\\\(.+?\\\))", re.DOTALL)

PLACEHOLDER = "╣{}╣"
PLACEHOLDER_PATTERN = re.compile("╣(\\d+)╣")


class MathSpan(NamedTuple):
    """half-open offset range of a math expression and its raw source."""

    start: int
    end: int
    text: str


def find_math_spans(text: str) -> list[MathSpan]:
    """
    finds inline and display math expressions in text.

    All inline matches come first, then all display matches; each group is in
    document order. Overlaps between the two groups are not resolved.

    Args:
        text: plain text to scan

    Returns:
        list of math spans including their delimiters
    """
    spans: list[MathSpan] = []
    for pattern in MATH_PATTERNS:
        spans.extend(
            MathSpan(match.start(), match.end(), match.group(0))
            for match in pattern.finditer(text)
        )
    return spans


def strip_math_delimiters(raw: str) -> str:
    """removes every \\(, \\) and $$ occurrence from a matched expression."""
    return raw.replace("\\(", "").replace("\\)", "").replace("$$", "")


def protect_math(text: str) -> tuple[str, list[str]]:
    """
    replaces math expressions with placeholders.

    Args:
        text: markdown source

    Returns:
        tuple of (protected text, list of original expressions)
    """
    matches: list[str] = []

    def replacer(match: re.Match[str]) -> str:
        matches.append(match.group(0))
        return PLACEHOLDER.format(len(matches) - 1)

    return PROTECT_PATTERN.sub(replacer, text), matches


def restore_math(text: str, matches: list[str]) -> str:
    """puts the original expressions back in place of their placeholders."""
    if not matches:
        return text

    def replacer(match: re.Match[str]) -> str:
        index = int(match.group(1))
        return matches[index] if index < len(matches) else match.group(0)

    return PLACEHOLDER_PATTERN.sub(replacer, text)
