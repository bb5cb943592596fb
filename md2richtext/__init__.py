"""Inline markdown to styled rich text renderer."""

import argparse
import logging
import shlex
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from md2richtext.core.models import SoftBreakMode
from md2richtext.core.parser import parse_inline
from md2richtext.latex.typesetter import (
    DEFAULT_X_HEIGHT,
    LatexRenderer,
    MathJaxTypesetter,
    MathRenderer,
)
from md2richtext.renderers.rich_content import InlineContentRenderer

logger = logging.getLogger(__name__)


def _read_source(source: str) -> str:
    """reads markdown from a file path or stdin ("-")."""
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def main(argv: Optional[list[str]] = None) -> int:
    """
    main entry point for md2richtext CLI.

    Args:
        argv: command line arguments (defaults to sys.argv[1:])

    Returns:
        exit code (0 success, 2 fatal error)
    """
    parser = argparse.ArgumentParser(
        description="Render inline markdown with typeset math to the terminal"
    )
    parser.add_argument(
        "source",
        help="markdown file, or - for stdin",
    )
    parser.add_argument(
        "--soft-break",
        choices=[mode.value for mode in SoftBreakMode],
        default=SoftBreakMode.SPACE.value,
        help="render soft breaks as spaces or line breaks (default: space)",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="URL relative links are resolved against",
    )
    parser.add_argument(
        "--no-math",
        action="store_true",
        help="leave math expressions as plain text",
    )
    parser.add_argument(
        "--tex2svg",
        default="tex2svg",
        help="command used to typeset math (default: tex2svg)",
    )
    parser.add_argument(
        "--x-height",
        type=float,
        default=DEFAULT_X_HEIGHT,
        help=f"points per x-height unit (default: {DEFAULT_X_HEIGHT})",
    )
    parser.add_argument(
        "--scale",
        type=float,
        default=1.0,
        help="pixels per point for rendered math (default: 1.0)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="enable debug logging",
    )

    args = parser.parse_args(argv)

    # configures logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="[%(levelname)s] %(message)s",
    )

    if args.source != "-" and not Path(args.source).exists():
        logger.error("Source not found: %s", args.source)
        return 2

    try:
        markdown = _read_source(args.source)
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Cannot read %s: %s", args.source, e)
        return 2

    latex_renderer: Optional[MathRenderer] = None
    if not args.no_math:
        latex_renderer = LatexRenderer(
            typesetter=MathJaxTypesetter(command=shlex.split(args.tex2svg)),
            x_height=args.x_height,
            scale=args.scale,
        )

    console = Console()
    renderer = InlineContentRenderer(
        latex_renderer=latex_renderer,
        base_url=args.base_url,
        soft_break_mode=SoftBreakMode(args.soft_break),
        console=console,
    )
    content = renderer.render(parse_inline(markdown))

    console.print(content)
    for image in content.images:
        width, height = image.size
        logger.debug("rendered inline image %dx%d", width, height)
    return 0
