"""Data models for parsed inline markdown content."""

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Union

from rich.console import Console
from rich.style import Style, StyleType


@dataclass(frozen=True)
class Text:
    """plain text leaf."""

    content: str


@dataclass(frozen=True)
class SoftBreak:
    """single newline in the source that does not force a line break."""


@dataclass(frozen=True)
class LineBreak:
    """hard line break."""


@dataclass(frozen=True)
class Code:
    """inline code span."""

    content: str


@dataclass(frozen=True)
class HTML:
    """raw inline HTML fragment."""

    content: str


@dataclass(frozen=True)
class Emphasis:
    """emphasized children."""

    children: tuple["InlineNode", ...] = ()


@dataclass(frozen=True)
class Strong:
    """strongly emphasized children."""

    children: tuple["InlineNode", ...] = ()


@dataclass(frozen=True)
class Strikethrough:
    """struck-through children."""

    children: tuple["InlineNode", ...] = ()


@dataclass(frozen=True)
class Link:
    """hyperlink wrapping its children."""

    destination: str
    children: tuple["InlineNode", ...] = ()


@dataclass(frozen=True)
class Image:
    """image reference; children hold the alt text."""

    source: str
    children: tuple["InlineNode", ...] = ()


InlineNode = Union[
    Text,
    SoftBreak,
    LineBreak,
    Code,
    HTML,
    Emphasis,
    Strong,
    Strikethrough,
    Link,
    Image,
]


class SoftBreakMode(Enum):
    """how soft breaks are rendered."""

    SPACE = "space"
    LINE_BREAK = "line-break"


@dataclass(frozen=True)
class InlineTextStyles:
    """
    style table applied by the renderers, one entry per styled node kind.

    Entries are merged onto the enclosing style, so nested nodes accumulate
    (``**_x_**`` is bold and italic). Values may be concrete rich styles,
    style definitions ("bold red") or theme names ("markdown.code").
    """

    emphasis: StyleType = "markdown.emph"
    strong: StyleType = "markdown.strong"
    strikethrough: StyleType = "markdown.s"
    link: StyleType = "markdown.link"
    code: StyleType = "markdown.code"

    def resolve(self, console: Console) -> "InlineTextStyles":
        """
        resolves symbolic style names to concrete styles.

        Args:
            console: console whose theme is used for name lookup

        Returns:
            copy of the table holding only Style instances (unknown names
            resolve to the null style)
        """
        resolved: dict[str, Style] = {
            f.name: console.get_style(getattr(self, f.name), default="none")
            for f in fields(self)
        }
        return replace(self, **resolved)

