"""Parser turning markdown source into inline nodes via markdown-it-py."""

from typing import Any, Callable, Optional

from markdown_it import MarkdownIt
from markdown_it.token import Token

from md2richtext.core.models import (
    HTML,
    Code,
    Emphasis,
    Image,
    InlineNode,
    LineBreak,
    Link,
    SoftBreak,
    Strikethrough,
    Strong,
    Text,
)
from md2richtext.latex.spans import protect_math, restore_math

# opening token type -> factory taking (open token, children)
CONTAINERS: dict[str, Callable[[Token, tuple[InlineNode, ...]], InlineNode]] = {
    "em_open": lambda _token, children: Emphasis(children),
    "strong_open": lambda _token, children: Strong(children),
    "s_open": lambda _token, children: Strikethrough(children),
    "link_open": lambda token, children: Link(
        str(token.attrGet("href") or ""), children
    ),
}


def create_parser() -> MarkdownIt:
    """returns a CommonMark parser with strikethrough enabled."""
    md = MarkdownIt("commonmark")
    md.enable("strikethrough")
    return md


def parse_inline(markdown: str, md: Optional[MarkdownIt] = None) -> list[InlineNode]:
    """
    parses markdown as inline content.

    Math delimited by \\( \\) or $$ $$ is shielded from markdown processing so
    underscores, asterisks and backslashes inside it survive intact.

    Args:
        markdown: markdown source
        md: parser to use (defaults to create_parser())

    Returns:
        list of inline nodes
    """
    protected_text, math_matches = protect_math(markdown)
    md = md or create_parser()

    nodes: list[InlineNode] = []
    for token in md.parseInline(protected_text):
        if token.children:
            nodes.extend(_convert(token.children, math_matches))
    return nodes


def _convert(tokens: list[Token], math_matches: list[str]) -> list[InlineNode]:
    """converts a flat inline token stream into a node tree."""
    root: list[InlineNode] = []
    # (opening token, node list of the enclosing level)
    stack: list[tuple[Token, list[InlineNode]]] = []
    current = root

    for token in tokens:
        if token.nesting == 1:
            stack.append((token, current))
            current = []
        elif token.nesting == -1:
            if not stack:
                continue
            open_token, parent = stack.pop()
            factory = CONTAINERS.get(open_token.type)
            if factory is None:
                # unknown container: keep its content
                parent.extend(current)
            else:
                parent.append(factory(open_token, tuple(current)))
            current = parent
        else:
            leaf = _convert_leaf(token, math_matches)
            if leaf is not None:
                current.append(leaf)

    # unbalanced tokens: flush whatever is still open
    while stack:
        _open_token, parent = stack.pop()
        parent.extend(current)
        current = parent

    return root


def _convert_leaf(token: Token, math_matches: list[str]) -> Optional[InlineNode]:
    """converts a non-nesting token."""
    content = restore_math(token.content, math_matches)

    leaves: dict[str, Callable[[], Any]] = {
        "text": lambda: Text(content),
        "text_special": lambda: Text(content),
        "softbreak": SoftBreak,
        "hardbreak": LineBreak,
        "code_inline": lambda: Code(content),
        "html_inline": lambda: HTML(content),
        "image": lambda: Image(
            str(token.attrGet("src") or ""),
            tuple(_convert(token.children or [], math_matches)),
        ),
    }

    factory = leaves.get(token.type)
    if factory is not None:
        return factory()  # type: ignore[no-any-return]
    return Text(content) if content else None
