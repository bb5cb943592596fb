"""minimal parser for single inline HTML tags."""

import re
from dataclasses import dataclass
from typing import Optional

TAG_PATTERN = re.compile(
    r"^<\s*/?\s*([A-Za-z][A-Za-z0-9-]*)(?:\s+[^<>]*?)?\s*/?\s*>$",
    re.DOTALL,
)


@dataclass(frozen=True)
class HTMLTag:
    """name of a single HTML tag such as ``<br>``, ``<br/>`` or ``</b>``."""

    name: str

    @classmethod
    def parse(cls, html: str) -> Optional["HTMLTag"]:
        """
        parses a raw inline HTML fragment holding exactly one tag.

        Args:
            html: raw HTML, e.g. ``<br/>`` or ``<span class="x">``

        Returns:
            parsed tag, or None when the fragment is not a single tag
        """
        match = TAG_PATTERN.match(html.strip())
        if not match:
            return None
        return cls(name=match.group(1))
