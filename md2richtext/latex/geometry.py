"""sizing metadata recovered from MathJax SVG output."""

import math
import re
from dataclasses import dataclass
from typing import NamedTuple, Optional

# a unit of length equal to the height of the font's "x" glyph
XHeight = float

SVG_ELEMENT_PATTERN = re.compile(r"<svg.*?>")
ATTRIBUTE_PATTERN = re.compile(r'\w*:*\w+=".*?"')


class GeometryError(ValueError):
    """raised when an SVG document lacks the geometry needed to size it."""


class MissingRootElementError(GeometryError):
    """the document has no <svg ...> element."""


class MissingGeometryError(GeometryError):
    """the root element lacks one of style, width, height or viewBox."""


class Frame(NamedTuple):
    """view box rectangle."""

    x: float
    y: float
    width: float
    height: float


def parse_x_height(value: str) -> Optional[XHeight]:
    """
    parses an x-height length.

    "2.127ex" -> 2.127

    Args:
        value: attribute value, optionally quoted

    Returns:
        the length, or None if it is not a finite number
    """
    trimmed = value.strip('"').strip("ex")
    try:
        length = float(trimmed)
    except ValueError:
        return None
    return length if math.isfinite(length) else None


def parse_alignment(value: str) -> Optional[XHeight]:
    """
    parses the vertical alignment out of a style attribute.

    '"vertical-align: -1.602ex;"' -> -1.602
    """
    trimmed = value.strip('";')
    components = trimmed.split(":")
    if len(components) != 2:
        return None
    return parse_x_height(components[1].strip())


def parse_view_box(value: str) -> Optional[Frame]:
    """
    parses a view box attribute.

    '"0 -1342 940 2050"' -> Frame(0, -1342, 940, 2050)
    """
    components = value.strip('"').split()
    if len(components) != 4:
        return None
    try:
        frame = Frame(*(float(component) for component in components))
    except ValueError:
        return None
    return frame if all(math.isfinite(value) for value in frame) else None


def x_height_to_points(value: XHeight, x_height: float) -> float:
    """converts an x-height length to points given the height of one x-height."""
    return value * x_height


@dataclass(frozen=True)
class SVGGeometry:
    """vertical alignment, size and view box of a typeset SVG."""

    vertical_alignment: XHeight
    width: XHeight
    height: XHeight
    frame: Frame

    @classmethod
    def from_svg(cls, svg: str) -> "SVGGeometry":
        """
        extracts geometry from the root element of an SVG document.

        Args:
            svg: full SVG document

        Returns:
            parsed geometry

        Raises:
            MissingRootElementError: no <svg ...> element found
            MissingGeometryError: a required attribute is absent or malformed
        """
        match = SVG_ELEMENT_PATTERN.search(svg)
        if not match:
            raise MissingRootElementError("SVG element not found")

        # drops the enclosing angle brackets
        element = match.group(0)[1:-1]

        vertical_alignment: Optional[XHeight] = None
        width: Optional[XHeight] = None
        height: Optional[XHeight] = None
        frame: Optional[Frame] = None

        for attribute in ATTRIBUTE_PATTERN.findall(element):
            components = attribute.split("=")
            if len(components) != 2:
                continue
            key, value = components
            if key == "style":
                vertical_alignment = parse_alignment(value)
            elif key == "width":
                width = parse_x_height(value)
            elif key == "height":
                height = parse_x_height(value)
            elif key == "viewBox":
                frame = parse_view_box(value)

        if vertical_alignment is None or width is None or height is None or frame is None:
            raise MissingGeometryError(f"incomplete SVG geometry: <{element}>")

        return cls(
            vertical_alignment=vertical_alignment,
            width=width,
            height=height,
            frame=frame,
        )

    def size_in_points(self, x_height: float) -> tuple[float, float]:
        """returns (width, height) in points."""
        return (
            x_height_to_points(self.width, x_height),
            x_height_to_points(self.height, x_height),
        )
