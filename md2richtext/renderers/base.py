"""shared inline tree walker for the styled-text renderers."""

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar, cast
from urllib.parse import urljoin

from rich.console import Console
from rich.style import Style, StyleType

from md2richtext.core.html_tag import HTMLTag
from md2richtext.core.models import (
    HTML,
    Code,
    Emphasis,
    Image,
    InlineNode,
    InlineTextStyles,
    LineBreak,
    Link,
    SoftBreak,
    SoftBreakMode,
    Strikethrough,
    Strong,
    Text,
)

logger = logging.getLogger(__name__)

LEADING_WHITESPACE = re.compile(r"^\s+")

OutputT = TypeVar("OutputT")


@dataclass
class RenderState(Generic[OutputT]):
    """mutable state of a single render call."""

    output: OutputT
    # set after a forced line break, cleared by the next text or soft break
    skip_next_whitespace: bool = False


def resolve_link(destination: str, base_url: Optional[str]) -> Optional[str]:
    """
    resolves a link destination against the base URL.

    Args:
        destination: raw destination from the markdown source
        base_url: URL relative destinations are resolved against

    Returns:
        resolved URL, or None if the destination is not a valid URL
    """
    if not destination or any(ch.isspace() for ch in destination):
        return None
    if not base_url:
        return destination
    try:
        return urljoin(base_url, destination)
    except ValueError:
        return None


class InlineRenderer(ABC, Generic[OutputT]):
    """
    walks an inline node tree and produces styled output.

    The style in effect is passed down the recursion, so leaving a node never
    needs to restore anything. Subclasses decide the output type and how text
    leaves and images are rendered.
    """

    # whether a soft break rendered as a line break swallows following whitespace
    soft_line_break_skips_whitespace = False

    def __init__(
        self,
        base_url: Optional[str] = None,
        text_styles: Optional[InlineTextStyles] = None,
        soft_break_mode: SoftBreakMode = SoftBreakMode.SPACE,
        style: StyleType = "none",
        console: Optional[Console] = None,
    ) -> None:
        """
        Initialize the renderer.

        Args:
            base_url: URL relative link destinations are resolved against
            text_styles: styles for emphasis, strong, strikethrough, link, code
            soft_break_mode: render soft breaks as spaces or line breaks
            style: base style of all output
            console: console whose theme resolves symbolic style names
        """
        console = console or Console()
        self.base_url = base_url
        self.text_styles = (text_styles or InlineTextStyles()).resolve(console)
        self.soft_break_mode = soft_break_mode
        self.style = console.get_style(style, default="none")
        self._renderers: dict[
            type, Callable[[RenderState[OutputT], Any, Style], None]
        ] = {
            Text: self._render_text,
            SoftBreak: self._render_soft_break,
            LineBreak: self._render_line_break,
            Code: self._render_code,
            HTML: self._render_html,
            Emphasis: self._render_emphasis,
            Strong: self._render_strong,
            Strikethrough: self._render_strikethrough,
            Link: self._render_link,
            Image: self._render_image,
        }

    def render(self, inlines: Iterable[InlineNode]) -> OutputT:
        """
        renders a sequence of inline nodes.

        Args:
            inlines: parsed inline nodes

        Returns:
            the rendered output
        """
        state = RenderState(output=self._new_output())
        for inline in inlines:
            self._render_node(state, inline, self.style)
        return state.output

    def _render_node(
        self, state: RenderState[OutputT], inline: InlineNode, style: Style
    ) -> None:
        """dispatches a node to its renderer."""
        renderer = self._renderers.get(type(inline))
        if renderer is None:
            raise TypeError(f"unsupported inline node: {inline!r}")
        renderer(state, inline, style)

    def _merge(self, style: Style, kind_style: StyleType) -> Style:
        """layers a kind style over the enclosing style."""
        return style + cast(Style, kind_style)

    def _render_children(
        self,
        state: RenderState[OutputT],
        children: Iterable[InlineNode],
        style: Style,
    ) -> None:
        for child in children:
            self._render_node(state, child, style)

    def _strip_skipped_whitespace(self, state: RenderState[OutputT], text: str) -> str:
        """drops leading whitespace once after a forced line break."""
        if state.skip_next_whitespace:
            state.skip_next_whitespace = False
            return LEADING_WHITESPACE.sub("", text)
        return text

    def _render_text(self, state: RenderState[OutputT], node: Text, style: Style) -> None:
        text = self._strip_skipped_whitespace(state, node.content)
        self._render_text_leaf(state, text, style)

    def _render_soft_break(
        self, state: RenderState[OutputT], _node: SoftBreak, style: Style
    ) -> None:
        if self.soft_break_mode is SoftBreakMode.LINE_BREAK:
            if self.soft_line_break_skips_whitespace:
                state.skip_next_whitespace = True
            self._append(state, "\n", style)
        elif state.skip_next_whitespace:
            state.skip_next_whitespace = False
        else:
            self._append(state, " ", style)

    def _render_line_break(
        self, state: RenderState[OutputT], _node: LineBreak, style: Style
    ) -> None:
        self._append(state, "\n", style)

    def _render_code(self, state: RenderState[OutputT], node: Code, style: Style) -> None:
        self._append(state, node.content, self._merge(style, self.text_styles.code))

    def _render_html(self, state: RenderState[OutputT], node: HTML, style: Style) -> None:
        tag = HTMLTag.parse(node.content)
        if tag is not None and tag.name.lower() == "br":
            self._append(state, "\n", style)
            state.skip_next_whitespace = True
        else:
            # verbatim, without whitespace skipping or math
            self._append(state, node.content, style)

    def _render_emphasis(
        self, state: RenderState[OutputT], node: Emphasis, style: Style
    ) -> None:
        self._render_children(
            state, node.children, self._merge(style, self.text_styles.emphasis)
        )

    def _render_strong(self, state: RenderState[OutputT], node: Strong, style: Style) -> None:
        self._render_children(
            state, node.children, self._merge(style, self.text_styles.strong)
        )

    def _render_strikethrough(
        self, state: RenderState[OutputT], node: Strikethrough, style: Style
    ) -> None:
        self._render_children(
            state, node.children, self._merge(style, self.text_styles.strikethrough)
        )

    def _render_link(self, state: RenderState[OutputT], node: Link, style: Style) -> None:
        link_style = self._merge(style, self.text_styles.link)
        target = resolve_link(node.destination, self.base_url)
        if target is not None:
            link_style += Style(link=target)
        else:
            logger.debug("ignoring invalid link destination %r", node.destination)
        self._render_children(state, node.children, link_style)

    @abstractmethod
    def _new_output(self) -> OutputT:
        """returns an empty output value."""

    @abstractmethod
    def _append(self, state: RenderState[OutputT], text: str, style: Style) -> None:
        """appends a styled text run."""

    @abstractmethod
    def _render_text_leaf(
        self, state: RenderState[OutputT], text: str, style: Style
    ) -> None:
        """renders the content of a text node after whitespace skipping."""

    @abstractmethod
    def _render_image(self, state: RenderState[OutputT], node: Image, style: Style) -> None:
        """renders an image node."""

