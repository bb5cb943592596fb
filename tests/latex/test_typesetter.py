"""tests for LaTeX typesetting and rasterization."""

import subprocess
from io import BytesIO
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from md2richtext.latex.typesetter import (
    InlineImage,
    LatexRenderer,
    MathJaxTypesetter,
    RsvgRasterizer,
    TypesetError,
)

SVG = (
    '<svg style="vertical-align: -0.5ex;" width="2ex" height="1.5ex" '
    'viewBox="0 -750 1000 800"></svg>'
)


class StubTypesetter:  # pylint: disable=too-few-public-methods
    """returns a fixed SVG and records requests."""

    def __init__(self, svg: str = SVG) -> None:
        self.svg = svg
        self.requests: list[str] = []

    def typeset(self, latex: str) -> str:
        """returns the canned SVG."""
        self.requests.append(latex)
        return self.svg


class FailingTypesetter:  # pylint: disable=too-few-public-methods
    """always fails."""

    def typeset(self, latex: str) -> str:
        """raises TypesetError."""
        raise TypesetError(f"cannot typeset {latex}")


class StubRasterizer:  # pylint: disable=too-few-public-methods
    """creates a blank image of the requested size."""

    def __init__(self) -> None:
        self.calls: list[tuple[tuple[float, float], float]] = []

    def rasterize(
        self, _svg: str, size: tuple[float, float], scale: float
    ) -> Image.Image:
        """returns a transparent RGBA image."""
        self.calls.append((size, scale))
        return Image.new("RGBA", (round(size[0] * scale), round(size[1] * scale)))


def _png_bytes(size: tuple[int, int]) -> bytes:
    buffer = BytesIO()
    Image.new("RGBA", size).save(buffer, format="PNG")
    return buffer.getvalue()


def test_render_sizes_image_from_geometry() -> None:
    """image size is the SVG size in x-heights times x_height times scale."""
    rasterizer = StubRasterizer()
    renderer = LatexRenderer(StubTypesetter(), rasterizer, x_height=10.0, scale=2.0)

    result = renderer.render("x+1")

    assert isinstance(result, InlineImage)
    assert rasterizer.calls == [((20.0, 15.0), 2.0)]
    assert result.size == (40, 30)
    assert result.baseline_offset == pytest.approx(5.0)


def test_render_passes_source_to_typesetter() -> None:
    """the typesetter receives the expression unchanged."""
    typesetter = StubTypesetter()
    LatexRenderer(typesetter, StubRasterizer()).render("\\frac{1}{2}")
    assert typesetter.requests == ["\\frac{1}{2}"]


def test_render_skips_blank_source() -> None:
    """blank expressions are not sent to the typesetter."""
    typesetter = StubTypesetter()
    assert LatexRenderer(typesetter, StubRasterizer()).render("  ") is None
    assert not typesetter.requests


def test_render_returns_none_on_typeset_failure() -> None:
    """typesetting errors become None."""
    renderer = LatexRenderer(FailingTypesetter(), StubRasterizer())
    assert renderer.render("x") is None


def test_render_returns_none_on_bad_geometry() -> None:
    """SVG without geometry becomes None."""
    renderer = LatexRenderer(StubTypesetter("<svg>"), StubRasterizer())
    assert renderer.render("x") is None


def test_render_reports_failures() -> None:
    """the error hook receives the source and exception."""
    errors: list[tuple[str, Exception]] = []
    renderer = LatexRenderer(
        FailingTypesetter(),
        StubRasterizer(),
        on_error=lambda latex, exc: errors.append((latex, exc)),
    )

    renderer.render("y")

    assert len(errors) == 1
    assert errors[0][0] == "y"
    assert isinstance(errors[0][1], TypesetError)


def test_render_logs_failures(caplog: Any) -> None:
    """failures are logged as warnings."""
    renderer = LatexRenderer(FailingTypesetter(), StubRasterizer())
    with caplog.at_level("WARNING"):
        renderer.render("z")
    assert "MathJax error" in caplog.text


def test_mathjax_typesetter_runs_command() -> None:
    """runs the configured command with the expression as argument."""
    with patch("md2richtext.latex.typesetter.subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(stdout=SVG + "\n")

        svg = MathJaxTypesetter(command=["npx", "tex2svg"]).typeset("x")

        assert svg == SVG
        args = mock_run.call_args[0][0]
        assert args == ["npx", "tex2svg", "x"]


def test_mathjax_typesetter_wraps_process_errors() -> None:
    """non-zero exit becomes TypesetError."""
    with patch("md2richtext.latex.typesetter.subprocess.run") as mock_run:
        mock_run.side_effect = subprocess.CalledProcessError(
            1, ["tex2svg"], stderr="bad input"
        )
        with pytest.raises(TypesetError, match="bad input"):
            MathJaxTypesetter().typeset("\\bad")


def test_mathjax_typesetter_wraps_decode_errors() -> None:
    """output that is not UTF-8 becomes TypesetError."""
    with patch("md2richtext.latex.typesetter.subprocess.run") as mock_run:
        mock_run.side_effect = UnicodeDecodeError(
            "utf-8", b"<svg \xff\xfe>", 5, 6, "invalid start byte"
        )
        with pytest.raises(TypesetError, match="UTF-8"):
            MathJaxTypesetter().typeset("x")


def test_mathjax_typesetter_decodes_utf8() -> None:
    """process output is decoded as UTF-8 regardless of locale."""
    with patch("md2richtext.latex.typesetter.subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(stdout=SVG)
        MathJaxTypesetter().typeset("x")
        assert mock_run.call_args[1]["encoding"] == "utf-8"


def test_mathjax_typesetter_wraps_timeout() -> None:
    """exceeding the configured timeout becomes TypesetError."""
    with patch("md2richtext.latex.typesetter.subprocess.run") as mock_run:
        mock_run.side_effect = subprocess.TimeoutExpired(["tex2svg", "x"], 2.5)
        with pytest.raises(TypesetError, match="timed out after 2.5s"):
            MathJaxTypesetter(timeout=2.5).typeset("x")
        assert mock_run.call_args[1]["timeout"] == 2.5


def test_render_drops_undecodable_typesetter_output() -> None:
    """a decode failure in tex2svg output yields no image instead of raising."""
    with patch("md2richtext.latex.typesetter.subprocess.run") as mock_run:
        mock_run.side_effect = UnicodeDecodeError(
            "utf-8", b"<svg \xff\xfe>", 5, 6, "invalid start byte"
        )
        renderer = LatexRenderer(MathJaxTypesetter(), StubRasterizer())
        assert renderer.render("x") is None


def test_mathjax_typesetter_wraps_missing_binary() -> None:
    """missing executable becomes TypesetError."""
    with patch("md2richtext.latex.typesetter.subprocess.run") as mock_run:
        mock_run.side_effect = FileNotFoundError("tex2svg")
        with pytest.raises(TypesetError):
            MathJaxTypesetter().typeset("x")


def test_mathjax_typesetter_rejects_empty_output() -> None:
    """empty output is an error."""
    with patch("md2richtext.latex.typesetter.subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(stdout="")
        with pytest.raises(TypesetError):
            MathJaxTypesetter().typeset("x")


def test_rsvg_rasterizer_decodes_png() -> None:
    """requests pixel size and decodes the PNG output."""
    with patch("md2richtext.latex.typesetter.subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(stdout=_png_bytes((21, 15)))

        image = RsvgRasterizer().rasterize(SVG, (10.5, 7.5), 2.0)

        assert image.size == (21, 15)
        assert image.mode == "RGBA"
        args = mock_run.call_args[0][0]
        assert args[args.index("--width") + 1] == "21"
        assert args[args.index("--height") + 1] == "15"
        assert mock_run.call_args[1]["input"] == SVG.encode("utf-8")


def test_rsvg_rasterizer_rejects_garbage() -> None:
    """undecodable output becomes TypesetError."""
    with patch("md2richtext.latex.typesetter.subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(stdout=b"not an image")
        with pytest.raises(TypesetError):
            RsvgRasterizer().rasterize(SVG, (1, 1), 1.0)


def test_rsvg_rasterizer_rejects_infinite_size() -> None:
    """non-finite sizes fail before the tool is run."""
    with patch("md2richtext.latex.typesetter.subprocess.run") as mock_run:
        with pytest.raises(TypesetError):
            RsvgRasterizer().rasterize(SVG, (float("inf"), 1.0), 1.0)
        with pytest.raises(TypesetError):
            RsvgRasterizer().rasterize(SVG, (1.0, float("nan")), 1.0)
        mock_run.assert_not_called()


def test_render_drops_infinite_geometry() -> None:
    """an SVG claiming infinite width yields no image instead of raising."""
    svg = (
        '<svg style="vertical-align: 0ex;" width="infex" height="1ex" '
        'viewBox="0 0 1 1"></svg>'
    )
    with patch("md2richtext.latex.typesetter.subprocess.run") as mock_run:
        renderer = LatexRenderer(StubTypesetter(svg), RsvgRasterizer())
        assert renderer.render("x") is None
        mock_run.assert_not_called()
