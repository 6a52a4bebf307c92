"""
Syntax tree models

Defines the closed set of node kinds the annotated text builder understands
and the read-only SyntaxNode produced by the parser front end.

Every node carries a span into the ORIGINAL source text (character offsets,
line endings untouched). Leaves with a payload that can be shown literally
(code, math, front matter) also carry a content span: the part of the node
between its delimiters.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, Optional, Tuple


class NodeKind(Enum):
    """
    Node kinds of the Markdown dialect

    The value is the canonical configuration name of the kind.
    """
    DOCUMENT = "Document"
    HEADING = "Heading"
    PARAGRAPH = "Paragraph"
    TEXT = "Text"
    LINK = "Link"
    AUTO_LINK = "AutoLink"
    IMAGE = "Image"
    EMPHASIS = "Emphasis"
    STRONG = "StrongEmphasis"
    STRIKETHROUGH = "Strikethrough"
    INLINE_CODE = "InlineCode"
    FENCED_CODE_BLOCK = "FencedCodeBlock"
    INDENTED_CODE_BLOCK = "IndentedCodeBlock"
    BLOCK_QUOTE = "BlockQuote"
    BULLET_LIST = "BulletList"
    ORDERED_LIST = "OrderedList"
    LIST_ITEM = "ListItem"
    THEMATIC_BREAK = "ThematicBreak"
    HTML_BLOCK = "HtmlBlock"
    HTML_INLINE = "HtmlInline"
    TABLE = "Table"
    TABLE_HEAD = "TableHead"
    TABLE_BODY = "TableBody"
    TABLE_ROW = "TableRow"
    TABLE_SEPARATOR = "TableSeparator"
    TABLE_CELL = "TableCell"
    DEFINITION_LIST = "DefinitionList"
    DEFINITION_TERM = "DefinitionTerm"
    DEFINITION = "Definition"
    FRONT_MATTER = "FrontMatter"
    MATH_INLINE = "MathInline"
    MATH_BLOCK = "MathBlock"
    HARD_LINE_BREAK = "HardLineBreak"
    SOFT_LINE_BREAK = "SoftLineBreak"
    HTML_ENTITY = "HtmlEntity"
    ESCAPED_CHARACTER = "EscapedCharacter"


# Names other Markdown tooling uses for the same constructs
KIND_ALIASES: Dict[str, NodeKind] = {
    "Code": NodeKind.INLINE_CODE,
    "CodeBlock": NodeKind.INDENTED_CODE_BLOCK,
    "YamlFrontMatterBlock": NodeKind.FRONT_MATTER,
    "GitLabInlineMath": NodeKind.MATH_INLINE,
    "LtexMarkdownInlineMath": NodeKind.MATH_INLINE,
    "LtexMarkdownDisplayMath": NodeKind.MATH_BLOCK,
    "DisplayMath": NodeKind.MATH_BLOCK,
    "TableBlock": NodeKind.TABLE,
    "BulletListItem": NodeKind.LIST_ITEM,
    "OrderedListItem": NodeKind.LIST_ITEM,
    "DefinitionItem": NodeKind.DEFINITION,
    "Html": NodeKind.HTML_BLOCK,
    "Strong": NodeKind.STRONG,
}


# Kinds that occupy whole lines of the source
BLOCK_KINDS: FrozenSet[NodeKind] = frozenset({
    NodeKind.DOCUMENT,
    NodeKind.HEADING,
    NodeKind.PARAGRAPH,
    NodeKind.FENCED_CODE_BLOCK,
    NodeKind.INDENTED_CODE_BLOCK,
    NodeKind.BLOCK_QUOTE,
    NodeKind.BULLET_LIST,
    NodeKind.ORDERED_LIST,
    NodeKind.LIST_ITEM,
    NodeKind.THEMATIC_BREAK,
    NodeKind.HTML_BLOCK,
    NodeKind.TABLE,
    NodeKind.TABLE_HEAD,
    NodeKind.TABLE_BODY,
    NodeKind.TABLE_ROW,
    NodeKind.TABLE_SEPARATOR,
    NodeKind.DEFINITION_LIST,
    NodeKind.DEFINITION_TERM,
    NodeKind.DEFINITION,
    NodeKind.FRONT_MATTER,
    NodeKind.MATH_BLOCK,
})


def kind_resolve(name: str) -> Optional[NodeKind]:
    """
    Translate a configuration name into a NodeKind

    Accepts canonical names ("InlineCode") and aliases ("Code").

    Returns:
        The matching NodeKind, or None for unknown names
    """
    try:
        return NodeKind(name)
    except ValueError:
        return KIND_ALIASES.get(name)


@dataclass(frozen=True)
class SyntaxNode:
    """
    A node of the parsed Markdown document

    Nodes are immutable; the builder only ever reads them.

    Attributes:
        kind: Node kind
        start: Offset of the first source character of the node
        end: Offset one past the last source character of the node
        children: Child nodes in document order
        literal: Kind-specific payload (decoded entity, code text, or the
                 whole source for the Document node). Link destinations
                 are never stored.
        content_start: Start of the literal content region, if any
        content_end: End of the literal content region, if any

    Example:
        For source "Use `x` here" the code span is
        SyntaxNode(kind=INLINE_CODE, start=4, end=7, literal="x",
                   content_start=5, content_end=6)
    """
    kind: NodeKind
    start: int
    end: int
    children: Tuple['SyntaxNode', ...] = ()
    literal: str = ""
    content_start: Optional[int] = None
    content_end: Optional[int] = None

    def contentSpan_get(self) -> Optional[Tuple[int, int]]:
        """
        Get the content region if it lies inside the node span

        Returns:
            (content_start, content_end), or None when the node has no
            content region or the region is inconsistent with the span
        """
        if self.content_start is None or self.content_end is None:
            return None
        if not self.start <= self.content_start <= self.content_end <= self.end:
            return None
        return self.content_start, self.content_end

    def walk(self) -> Iterator['SyntaxNode']:
        """Iterate over this node and its descendants in pre-order"""
        yield self
        for child in self.children:
            yield from child.walk()
