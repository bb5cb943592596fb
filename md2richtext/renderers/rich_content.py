"""inline markdown rendering with embedded images and typeset math."""

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Optional, Union

from PIL import Image as PILImage
from rich.style import Style
from rich.text import Text as RichText

from md2richtext.core.models import Image, InlineNode
from md2richtext.latex.spans import MathSpan, find_math_spans, strip_math_delimiters
from md2richtext.latex.typesetter import InlineImage, LatexRenderer, MathRenderer
from md2richtext.renderers.base import InlineRenderer, RenderState

logger = logging.getLogger(__name__)

Run = Union[RichText, InlineImage]

# stands in for an image when content is flattened to text
OBJECT_REPLACEMENT = "\ufffc"


class _UseDefault:  # pylint: disable=too-few-public-methods
    """marks an omitted latex_renderer argument."""


_DEFAULT = _UseDefault()


class InlineContent:
    """ordered runs of styled text and inline images."""

    def __init__(self) -> None:
        self._runs: list[Run] = []

    def __iter__(self) -> Iterator[Run]:
        return iter(self._runs)

    def __len__(self) -> int:
        return len(self._runs)

    @property
    def runs(self) -> list[Run]:
        """copy of the runs in order."""
        return list(self._runs)

    @property
    def images(self) -> list[InlineImage]:
        """inline images in order."""
        return [run for run in self._runs if isinstance(run, InlineImage)]

    @property
    def plain(self) -> str:
        """text content with images left out."""
        return "".join(run.plain for run in self._runs if isinstance(run, RichText))

    def append_text(self, text: RichText) -> None:
        """appends styled text, merging it into a preceding text run."""
        if not text:
            return
        if self._runs and isinstance(self._runs[-1], RichText):
            self._runs[-1].append_text(text)
        else:
            run = RichText()
            run.append_text(text)
            self._runs.append(run)

    def append_image(self, image: InlineImage) -> None:
        """appends an inline image."""
        self._runs.append(image)

    def to_text(self, placeholder: str = OBJECT_REPLACEMENT) -> RichText:
        """
        flattens the content to a single rich Text.

        Args:
            placeholder: string inserted for each image

        Returns:
            styled text with images replaced by the placeholder
        """
        result = RichText()
        for run in self._runs:
            if isinstance(run, RichText):
                result.append_text(run)
            else:
                result.append(placeholder)
        return result

    def __rich__(self) -> RichText:
        return self.to_text()


class InlineContentRenderer(InlineRenderer[InlineContent]):
    """renders inline nodes to text runs interleaved with images."""

    soft_line_break_skips_whitespace = True

    def __init__(
        self,
        images: Optional[Mapping[str, Union[PILImage.Image, InlineImage]]] = None,
        latex_renderer: Union[MathRenderer, None, _UseDefault] = _DEFAULT,
        **options: Any,
    ) -> None:
        """
        Initialize the renderer.

        Args:
            images: pre-resolved images keyed by image source
            latex_renderer: renders math found in text; defaults to a
                LatexRenderer, None leaves math as plain text
            **options: InlineRenderer options
        """
        super().__init__(**options)
        self.images = images or {}
        self.latex_renderer: Optional[MathRenderer] = (
            LatexRenderer()
            if isinstance(latex_renderer, _UseDefault)
            else latex_renderer
        )

    def _new_output(self) -> InlineContent:
        return InlineContent()

    def _append(self, state: RenderState[InlineContent], text: str, style: Style) -> None:
        run = RichText()
        run.append(text, style=style)
        state.output.append_text(run)

    def _render_text_leaf(
        self, state: RenderState[InlineContent], text: str, style: Style
    ) -> None:
        if self.latex_renderer is None:
            self._append(state, text, style)
            return

        index = 0
        for span in _ordered_spans(find_math_spans(text)):
            if span.start < index:
                logger.debug("skipping overlapping math %r", span.text)
                continue

            self._append(state, text[index : span.start], style)
            index = span.end

            image = self.latex_renderer.render(strip_math_delimiters(span.text))
            if image is not None:
                state.output.append_image(image)

        self._append(state, text[index:], style)

    def _render_image(
        self, state: RenderState[InlineContent], node: Image, style: Style
    ) -> None:
        image = self.images.get(node.source)
        if image is None:
            logger.debug("no image for source %r", node.source)
            return
        if not isinstance(image, InlineImage):
            image = InlineImage(image)
        state.output.append_image(image)


def _ordered_spans(spans: list[MathSpan]) -> list[MathSpan]:
    """orders math spans by position; the locator groups them by delimiter."""
    return sorted(spans, key=lambda span: (span.start, -span.end))


def render_inline_content(inlines: Iterable[InlineNode], **options: Any) -> InlineContent:
    """
    renders inline nodes to text and images.

    Args:
        inlines: parsed inline nodes
        **options: InlineContentRenderer options

    Returns:
        rendered runs
    """
    return InlineContentRenderer(**options).render(inlines)
