"""LaTeX to inline bitmap rendering through MathJax and an SVG rasterizer."""

import logging
import math
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, Optional, Protocol

from PIL import Image, UnidentifiedImageError

from md2richtext.latex.geometry import GeometryError, SVGGeometry

logger = logging.getLogger(__name__)

# height of one x-height unit in points
DEFAULT_X_HEIGHT = 10.0


class TypesetError(RuntimeError):
    """raised when an expression cannot be typeset or rasterized."""


@dataclass(frozen=True)
class InlineImage:
    """bitmap placed inline with text."""

    image: Image.Image
    # distance in points the image sits below the text baseline
    baseline_offset: float = 0.0

    @property
    def size(self) -> tuple[int, int]:
        """pixel size of the bitmap."""
        return self.image.size


class Typesetter(Protocol):  # pylint: disable=too-few-public-methods
    """converts LaTeX source to an SVG document."""

    def typeset(self, latex: str) -> str:
        """returns SVG markup, raising TypesetError on failure."""


class Rasterizer(Protocol):  # pylint: disable=too-few-public-methods
    """converts an SVG document to a bitmap."""

    def rasterize(
        self, svg: str, size: tuple[float, float], scale: float
    ) -> Image.Image:
        """returns a bitmap of size * scale pixels, raising TypesetError on failure."""


class MathRenderer(Protocol):  # pylint: disable=too-few-public-methods
    """renders a math expression to an inline image."""

    def render(self, latex: str) -> Optional[InlineImage]:
        """returns the rendered image, or None if rendering failed."""


class MathJaxTypesetter:  # pylint: disable=too-few-public-methods
    """typesets LaTeX with the MathJax ``tex2svg`` command line tool."""

    def __init__(
        self,
        command: Sequence[str] = ("tex2svg",),
        timeout: Optional[float] = None,
    ) -> None:
        self.command = tuple(command)
        self.timeout = timeout

    def typeset(self, latex: str) -> str:
        """
        runs tex2svg on a single expression.

        Args:
            latex: LaTeX math source without delimiters

        Returns:
            SVG document

        Raises:
            TypesetError: if the tool is missing, fails, times out or emits
                invalid UTF-8
        """
        try:
            result = subprocess.run(
                [*self.command, latex],
                capture_output=True,
                encoding="utf-8",
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            raise TypesetError(
                f"tex2svg failed: {e.stderr.strip() or e.returncode}"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise TypesetError(f"tex2svg timed out after {e.timeout}s") from e
        except UnicodeError as e:
            raise TypesetError(f"tex2svg output is not valid UTF-8: {e}") from e
        except OSError as e:
            raise TypesetError(f"cannot run {self.command[0]}: {e}") from e

        svg = result.stdout.strip()
        if not svg:
            raise TypesetError("tex2svg produced no output")
        return svg


class RsvgRasterizer:  # pylint: disable=too-few-public-methods
    """rasterizes SVG with the ``rsvg-convert`` command line tool."""

    def __init__(self, command: Sequence[str] = ("rsvg-convert",)) -> None:
        self.command = tuple(command)

    def rasterize(
        self, svg: str, size: tuple[float, float], scale: float
    ) -> Image.Image:
        """
        renders SVG to a PNG and loads it with Pillow.

        Args:
            svg: SVG document
            size: target size in points
            scale: pixels per point

        Returns:
            RGBA bitmap

        Raises:
            TypesetError: if conversion or decoding fails
        """
        if not all(math.isfinite(value) for value in (*size, scale)):
            raise TypesetError(f"invalid raster size {size} at scale {scale}")
        width = max(1, round(size[0] * scale))
        height = max(1, round(size[1] * scale))
        try:
            result = subprocess.run(
                [
                    *self.command,
                    "--format",
                    "png",
                    "--width",
                    str(width),
                    "--height",
                    str(height),
                ],
                input=svg.encode("utf-8"),
                capture_output=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode("utf-8", "replace").strip()
            raise TypesetError(f"rsvg-convert failed: {stderr or e.returncode}") from e
        except OSError as e:
            raise TypesetError(f"cannot run {self.command[0]}: {e}") from e

        try:
            img = Image.open(BytesIO(result.stdout))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise TypesetError(f"invalid rasterizer output: {e}") from e
        return img.convert("RGBA")


class LatexRenderer:  # pylint: disable=too-few-public-methods
    """renders math expressions to inline images sized to the surrounding text."""

    def __init__(
        self,
        typesetter: Optional[Typesetter] = None,
        rasterizer: Optional[Rasterizer] = None,
        x_height: float = DEFAULT_X_HEIGHT,
        scale: float = 1.0,
        on_error: Optional[Callable[[str, Exception], None]] = None,
    ) -> None:
        """
        Initialize the renderer.

        Args:
            typesetter: LaTeX to SVG converter (defaults to MathJax tex2svg)
            rasterizer: SVG to bitmap converter (defaults to rsvg-convert)
            x_height: points per x-height unit of the body font
            scale: pixel density (pixels per point)
            on_error: called with the source and exception of every failure
        """
        self.typesetter = typesetter or MathJaxTypesetter()
        self.rasterizer = rasterizer or RsvgRasterizer()
        self.x_height = x_height
        self.scale = scale
        self.on_error = on_error

    def render(self, latex: str) -> Optional[InlineImage]:
        """
        typesets and rasterizes one expression.

        Args:
            latex: math source without delimiters

        Returns:
            inline image, or None if the source is blank or rendering failed
        """
        if not latex.strip():
            logger.debug("skipping empty math expression")
            return None

        try:
            svg = self.typesetter.typeset(latex)
            geometry = SVGGeometry.from_svg(svg)
            size = geometry.size_in_points(self.x_height)
            image = self.rasterizer.rasterize(svg, size, self.scale)
        except (TypesetError, GeometryError) as e:
            logger.warning("MathJax error for %r: %s", latex, e)
            if self.on_error is not None:
                self.on_error(latex, e)
            return None

        return InlineImage(
            image=image,
            baseline_offset=-geometry.vertical_alignment * self.x_height,
        )
