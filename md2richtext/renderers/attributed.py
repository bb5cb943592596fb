"""inline markdown to rich Text rendering."""

from collections.abc import Iterable
from typing import Any

from rich.style import Style
from rich.text import Text as RichText

from md2richtext.core.models import Image, InlineNode
from md2richtext.renderers.base import InlineRenderer, RenderState


class AttributedStringRenderer(InlineRenderer[RichText]):
    """renders inline nodes to a single styled rich Text."""

    def _new_output(self) -> RichText:
        return RichText()

    def _append(self, state: RenderState[RichText], text: str, style: Style) -> None:
        state.output.append(text, style=style)

    def _render_text_leaf(
        self, state: RenderState[RichText], text: str, style: Style
    ) -> None:
        self._append(state, text, style)

    def _render_image(self, state: RenderState[RichText], node: Image, style: Style) -> None:
        # styled text cannot hold images
        pass


def render_attributed_string(inlines: Iterable[InlineNode], **options: Any) -> RichText:
    """
    renders inline nodes to styled text.

    Args:
        inlines: parsed inline nodes
        **options: AttributedStringRenderer options

    Returns:
        rich Text with one span per styled run
    """
    return AttributedStringRenderer(**options).render(inlines)
