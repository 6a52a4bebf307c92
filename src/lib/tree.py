"""
markdown-it tree converter

Turns a markdown-it SyntaxTreeNode tree into annotext SyntaxNode trees
whose spans index the ORIGINAL source text.

markdown-it normalizes line endings before parsing and only records line
maps for block tokens, so spans are recovered in two steps:

1. The converter works on a normalized copy of the source ("\\r\\n" and
   "\\r" become "\\n", NUL becomes U+FFFD) together with an offset table
   mapping each normalized offset back to the original.
2. Block spans come from line maps. Inline spans are found by scanning
   forward from a monotonic cursor for the text, markers and delimiters
   each token stands for.

Anything that cannot be located becomes a zero-width node at the cursor;
its source then flows into the neighbouring markup.
"""

import re
from bisect import bisect_right
from typing import Callable, Dict, List, Optional, Tuple

from markdown_it.tree import SyntaxTreeNode

from ..models.syntax import NodeKind, SyntaxNode
from .log import LOG, degradation_log


LINE_ENDING = re.compile(r"\r\n?|\n")

BLOCK_KINDS_BY_TYPE: Dict[str, NodeKind] = {
    "paragraph": NodeKind.PARAGRAPH,
    "heading": NodeKind.HEADING,
    "blockquote": NodeKind.BLOCK_QUOTE,
    "bullet_list": NodeKind.BULLET_LIST,
    "ordered_list": NodeKind.ORDERED_LIST,
    "list_item": NodeKind.LIST_ITEM,
    "hr": NodeKind.THEMATIC_BREAK,
    "thead": NodeKind.TABLE_HEAD,
    "tbody": NodeKind.TABLE_BODY,
    "dl": NodeKind.DEFINITION_LIST,
    "dt": NodeKind.DEFINITION_TERM,
    "dd": NodeKind.DEFINITION,
}

EMPHASIS_KINDS_BY_TYPE: Dict[str, NodeKind] = {
    "em": NodeKind.EMPHASIS,
    "strong": NodeKind.STRONG,
    "s": NodeKind.STRIKETHROUGH,
}


def source_normalize(source: str) -> Tuple[str, List[int]]:
    """
    Normalize line endings the way markdown-it does.

    Args:
        source: Original source text

    Returns:
        (normalized text, offsets) where offsets[i] is the original offset
        of normalized offset i; offsets has len(normalized) + 1 entries

    Example:
        >>> source_normalize("a\\r\\nb")
        ('a\\nb', [0, 1, 3, 4])
    """
    parts: List[str] = []
    offsets: List[int] = []
    position = 0
    for match in LINE_ENDING.finditer(source):
        segment = source[position:match.start()]
        parts.append(segment)
        offsets.extend(range(position, match.start()))
        parts.append("\n")
        offsets.append(match.start())
        position = match.end()
    parts.append(source[position:])
    offsets.extend(range(position, len(source)))
    offsets.append(len(source))
    return "".join(parts).replace("\0", "\ufffd"), offsets


class TreeConverter:
    """
    Converts one markdown-it syntax tree into a SyntaxNode tree

    All scanning happens in normalized coordinates; node_make() translates
    spans back to the original source when a SyntaxNode is created.

    Example:
        >>> md = markdown_create()
        >>> source = "Some *text*\\n"
        >>> root = SyntaxTreeNode(md.parse(source))
        >>> document = TreeConverter(source).document_convert(root)
        >>> [child.kind for child in document.children]
        [<NodeKind.PARAGRAPH: 'Paragraph'>]
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.text, self.offsets = source_normalize(source)
        self.cursor = 0
        self.unlocated = 0

        self.lineStarts: List[int] = [0]
        self.lineEnds: List[int] = []
        for index, char in enumerate(self.text):
            if char == "\n":
                self.lineEnds.append(index)
                self.lineStarts.append(index + 1)
        self.lineEnds.append(len(self.text))

        self.blockHandlers: Dict[str, Callable[[SyntaxTreeNode], List[SyntaxNode]]] = {
            "fence": self.fence_convert,
            "code_block": self.codeBlock_convert,
            "html_block": self.htmlBlock_convert,
            "math_block": self.mathBlock_convert,
            "front_matter": self.frontMatter_convert,
            "table": self.table_convert,
            "tr": self.tableRow_convert,
        }

        self.inlineHandlers: Dict[str, Callable[[SyntaxTreeNode, int], List[SyntaxNode]]] = {
            "text": self.text_convert,
            "text_special": self.textSpecial_convert,
            "softbreak": self.lineBreak_convert,
            "hardbreak": self.lineBreak_convert,
            "code_inline": self.codeInline_convert,
            "math_inline": self.mathInline_convert,
            "html_inline": self.htmlInline_convert,
            "em": self.emphasis_convert,
            "strong": self.emphasis_convert,
            "s": self.emphasis_convert,
            "link": self.link_convert,
            "image": self.image_convert,
        }

    # ------------------------------------------------------------------
    # Coordinates
    # ------------------------------------------------------------------

    def lineStart_get(self, line: int) -> int:
        """Normalized offset of the first character of a line"""
        line = max(0, min(line, len(self.lineStarts) - 1))
        return self.lineStarts[line]

    def lineEnd_get(self, line: int) -> int:
        """Normalized offset of the line ending (or text end) of a line"""
        line = max(0, min(line, len(self.lineEnds) - 1))
        return self.lineEnds[line]

    def lineIndex_at(self, offset: int) -> int:
        """Index of the line containing a normalized offset"""
        return max(0, bisect_right(self.lineStarts, offset) - 1)

    def lines_span(self, node: SyntaxTreeNode) -> Optional[Tuple[int, int]]:
        """
        Normalized span covered by a block node's line map.

        A map such as [3, 3] (one-line tokens that record no extent)
        covers its first line.
        """
        lines = node.map
        if not lines:
            return None
        first, last = lines[0], lines[1]
        if last <= first:
            last = first + 1
        return self.lineStart_get(first), self.lineEnd_get(last - 1)

    def node_make(
        self,
        kind: NodeKind,
        start: int,
        end: int,
        children: List[SyntaxNode] = (),
        literal: str = "",
        content: Optional[Tuple[int, int]] = None,
    ) -> SyntaxNode:
        """Create a SyntaxNode, translating normalized offsets to the source"""
        end = max(start, end)
        content_start = content_end = None
        if content is not None:
            content_start = self.offsets[content[0]]
            content_end = self.offsets[content[1]]
        return SyntaxNode(
            kind=kind,
            start=self.offsets[start],
            end=self.offsets[end],
            children=tuple(children),
            literal=literal,
            content_start=content_start,
            content_end=content_end,
        )

    def locate(self, needle: str, limit: int) -> Optional[int]:
        """Find needle at or after the cursor, before limit"""
        if not needle:
            return None
        found = self.text.find(needle, self.cursor, limit)
        if found == -1:
            return None
        return found

    def unlocated_note(self, node: SyntaxTreeNode) -> None:
        self.unlocated += 1
        degradation_log(node.type, self.offsets[self.cursor], None, "not found in source, kept at zero width")

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def document_convert(self, root: SyntaxTreeNode) -> SyntaxNode:
        """
        Convert the root of a markdown-it tree.

        Args:
            root: SyntaxTreeNode built from the token stream of self.source

        Returns:
            Document node spanning the whole source, carrying it as literal
        """
        self.cursor = 0
        children = self.blocks_convert(root.children)
        document = SyntaxNode(
            kind=NodeKind.DOCUMENT,
            start=0,
            end=len(self.source),
            children=tuple(children),
            literal=self.source,
        )
        if self.unlocated:
            LOG(f"{self.unlocated} inline token(s) degraded to zero width", level=2)
        return document

    def blocks_convert(self, nodes: List[SyntaxTreeNode]) -> List[SyntaxNode]:
        converted: List[SyntaxNode] = []
        for node in nodes:
            converted.extend(self.block_convert(node))
        return converted

    def block_convert(self, node: SyntaxTreeNode) -> List[SyntaxNode]:
        """
        Convert one block-level node.

        Returns:
            Zero or more SyntaxNodes; unknown containers are flattened into
            their children and unknown leaves are dropped
        """
        handler = self.blockHandlers.get(node.type)
        if handler is not None:
            return handler(node)

        kind = BLOCK_KINDS_BY_TYPE.get(node.type)
        if kind is None:
            if node.type == "inline":
                return self.inlines_convert(node.children, len(self.text))
            LOG(f"Flattening unsupported block token {node.type}", level=3)
            return self.blocks_convert(node.children)

        return [self.container_convert(kind, node)]

    def container_convert(self, kind: NodeKind, node: SyntaxTreeNode) -> SyntaxNode:
        """Convert a block whose children are blocks or a single inline run"""
        span = self.lines_span(node)
        if span is None:
            span = (self.cursor, self.cursor)
        start, end = span
        start = max(start, self.cursor)
        self.cursor = start

        children: List[SyntaxNode] = []
        for child in node.children:
            if child.type == "inline":
                children.extend(self.inlines_convert(child.children, end))
            else:
                children.extend(self.block_convert(child))

        end = max(end, self.cursor)
        self.cursor = end
        return self.node_make(kind, start, end, children)

    def leaf_make(
        self,
        kind: NodeKind,
        node: SyntaxTreeNode,
        content: Callable[[int, int], Tuple[int, int]],
    ) -> List[SyntaxNode]:
        """Convert a leaf block; content maps (start, end) to its content region"""
        span = self.lines_span(node)
        if span is None:
            return []
        start, end = max(span[0], self.cursor), max(span[1], self.cursor)
        content_start, content_end = content(start, end)
        content_start = max(start, min(content_start, end))
        content_end = max(content_start, min(content_end, end))
        self.cursor = end
        return [self.node_make(
            kind, start, end,
            literal=node.content,
            content=(content_start, content_end),
        )]

    def fenceBody_span(self, node: SyntaxTreeNode, start: int, end: int) -> Tuple[int, int]:
        """
        Lines between the opening fence and the closing fence.

        An unclosed fence runs to the end of its block.
        """
        first, last = node.map[0], max(node.map[1], node.map[0] + 1)
        body_start = self.lineStart_get(first + 1) if last - first > 1 else end
        closing = self.text[self.lineStart_get(last - 1):self.lineEnd_get(last - 1)].strip()
        marker = node.markup or ""
        closed = (
            last - first > 1
            and bool(marker)
            and len(closing) >= len(marker)
            and set(closing) == {marker[0]}
        )
        if not closed:
            return body_start, end
        if last - first == 2:
            return body_start, body_start
        return body_start, self.lineEnd_get(last - 2)

    def fence_convert(self, node: SyntaxTreeNode) -> List[SyntaxNode]:
        info = (node.info or "").strip().split()
        kind = NodeKind.MATH_BLOCK if info and info[0] == "math" else NodeKind.FENCED_CODE_BLOCK
        return self.leaf_make(kind, node, lambda start, end: self.fenceBody_span(node, start, end))

    def codeBlock_convert(self, node: SyntaxTreeNode) -> List[SyntaxNode]:
        return self.leaf_make(NodeKind.INDENTED_CODE_BLOCK, node, lambda start, end: (start, end))

    def htmlBlock_convert(self, node: SyntaxTreeNode) -> List[SyntaxNode]:
        return self.leaf_make(NodeKind.HTML_BLOCK, node, lambda start, end: (start, end))

    def mathBlock_convert(self, node: SyntaxTreeNode) -> List[SyntaxNode]:
        def content(start: int, end: int) -> Tuple[int, int]:
            opener = self.text.find("$$", start, end)
            closer = self.text.rfind("$$", start, end)
            if opener == -1 or closer < opener + 2:
                return start, start
            return opener + 2, closer
        return self.leaf_make(NodeKind.MATH_BLOCK, node, content)

    def frontMatter_convert(self, node: SyntaxTreeNode) -> List[SyntaxNode]:
        def content(start: int, end: int) -> Tuple[int, int]:
            first, last = node.map[0], max(node.map[1], node.map[0] + 1)
            if last - first < 2:
                return end, end
            body_start = self.lineStart_get(first + 1)
            closing = self.text[self.lineStart_get(last - 1):self.lineEnd_get(last - 1)]
            marker = node.markup or "---"
            if last - first == 2 and closing.startswith(marker):
                return body_start, body_start
            if closing.startswith(marker):
                return body_start, self.lineEnd_get(last - 2)
            return body_start, end
        return self.leaf_make(NodeKind.FRONT_MATTER, node, content)

    def table_convert(self, node: SyntaxTreeNode) -> List[SyntaxNode]:
        """
        Convert a table, synthesizing the delimiter row.

        markdown-it keeps no token for the "| --- | --- |" row; it sits on
        the line right after the head.
        """
        span = self.lines_span(node)
        if span is None:
            return self.blocks_convert(node.children)
        start, end = max(span[0], self.cursor), max(span[1], self.cursor)
        self.cursor = start

        children: List[SyntaxNode] = []
        for child in node.children:
            children.extend(self.block_convert(child))
            if child.type == "thead":
                head_end = child.map[1] if child.map else self.lineIndex_at(self.cursor) + 1
                row_start = max(self.lineStart_get(head_end), self.cursor)
                row_end = max(self.lineEnd_get(head_end), row_start)
                children.append(self.node_make(
                    NodeKind.TABLE_SEPARATOR, row_start, row_end,
                    literal=self.text[row_start:row_end],
                    content=(row_start, row_end),
                ))
                self.cursor = row_end

        end = max(end, self.cursor)
        self.cursor = end
        return [self.node_make(NodeKind.TABLE, start, end, children)]

    def tableRow_convert(self, node: SyntaxTreeNode) -> List[SyntaxNode]:
        span = self.lines_span(node)
        if span is None:
            line = self.lineIndex_at(self.cursor)
            if self.cursor >= self.lineEnd_get(line):
                line += 1
            span = (self.lineStart_get(line), self.lineEnd_get(line))
        start, end = max(span[0], self.cursor), max(span[1], self.cursor)
        self.cursor = start

        cells = [self.tableCell_convert(cell, end) for cell in node.children]

        end = max(end, self.cursor)
        self.cursor = end
        return [self.node_make(NodeKind.TABLE_ROW, start, end, cells)]

    def tableCell_convert(self, node: SyntaxTreeNode, limit: int) -> SyntaxNode:
        """
        Locate one cell of a row.

        The cell span covers the trimmed cell text; pipes and padding stay
        outside it.
        """
        inline = node.children[0] if node.children else None
        content = inline.content if inline is not None else ""

        position = self.cursor
        while position < limit and self.text[position] in " \t":
            position += 1
        if position < limit and self.text[position] == "|":
            position += 1
            while position < limit and self.text[position] in " \t":
                position += 1

        if content and not self.text.startswith(content, position, limit):
            found = self.text.find(content, self.cursor, limit)
            if found == -1:
                self.unlocated_note(node)
                content = ""
            else:
                position = found

        start = end = position
        self.cursor = start
        children: List[SyntaxNode] = []
        if content and inline is not None:
            end = start + len(content)
            children = self.inlines_convert(inline.children, end)
            end = max(end, self.cursor)
        self.cursor = end
        return self.node_make(NodeKind.TABLE_CELL, start, end, children)

    # ------------------------------------------------------------------
    # Inlines
    # ------------------------------------------------------------------

    def inlines_convert(self, nodes: List[SyntaxTreeNode], limit: int) -> List[SyntaxNode]:
        """Convert a run of inline nodes, all located before limit"""
        converted: List[SyntaxNode] = []
        for node in nodes:
            handler = self.inlineHandlers.get(node.type)
            if handler is None:
                LOG(f"Skipping unsupported inline token {node.type}", level=3)
                continue
            converted.extend(handler(node, limit))
        return converted

    def text_convert(self, node: SyntaxTreeNode, limit: int) -> List[SyntaxNode]:
        content = node.content
        if not content:
            return []
        start = self.locate(content, limit)
        if start is None:
            self.unlocated_note(node)
            return [self.node_make(NodeKind.TEXT, self.cursor, self.cursor, literal=content)]
        self.cursor = start + len(content)
        return [self.node_make(NodeKind.TEXT, start, self.cursor, literal=content)]

    def textSpecial_convert(self, node: SyntaxTreeNode, limit: int) -> List[SyntaxNode]:
        """Entities and backslash escapes: markup is the source, content the decoded text"""
        start = self.locate(node.markup, limit)
        if start is None:
            self.unlocated_note(node)
            return [self.node_make(NodeKind.TEXT, self.cursor, self.cursor, literal=node.content)]
        end = start + len(node.markup)
        self.cursor = end
        if node.info == "escape" and node.content == node.markup:
            # A backslash before a non-punctuation character stays literal
            return [self.node_make(NodeKind.TEXT, start, end, literal=node.content)]
        if node.info == "escape":
            return [self.node_make(
                NodeKind.ESCAPED_CHARACTER, start, end,
                literal=node.content,
                content=(min(start + 1, end), end),
            )]
        return [self.node_make(NodeKind.HTML_ENTITY, start, end, literal=node.content)]

    def lineBreak_convert(self, node: SyntaxTreeNode, limit: int) -> List[SyntaxNode]:
        """A break runs from the cursor (trailing spaces, backslash) through the line ending"""
        kind = NodeKind.HARD_LINE_BREAK if node.type == "hardbreak" else NodeKind.SOFT_LINE_BREAK
        start = self.cursor
        newline = self.text.find("\n", start, limit)
        end = newline + 1 if newline != -1 else start
        self.cursor = end
        return [self.node_make(kind, start, end)]

    def backtickRun_find(self, run: str, start: int, limit: int) -> int:
        """Find a backtick run of exactly len(run) characters"""
        position = start
        while True:
            found = self.text.find(run, position, limit)
            if found == -1:
                return -1
            after = found + len(run)
            if (found > 0 and self.text[found - 1] == "`") or (
                after < len(self.text) and self.text[after] == "`"
            ):
                position = found + 1
                while position < limit and self.text[position] == "`":
                    position += 1
                continue
            return found

    def codeInline_convert(self, node: SyntaxTreeNode, limit: int) -> List[SyntaxNode]:
        run = node.markup or "`"
        opener = self.backtickRun_find(run, self.cursor, limit)
        closer = -1 if opener == -1 else self.backtickRun_find(run, opener + len(run), limit)
        if closer == -1:
            self.unlocated_note(node)
            return [self.node_make(NodeKind.INLINE_CODE, self.cursor, self.cursor, literal=node.content)]
        end = closer + len(run)
        self.cursor = end
        return [self.node_make(
            NodeKind.INLINE_CODE, opener, end,
            literal=node.content,
            content=(opener + len(run), closer),
        )]

    def mathInline_convert(self, node: SyntaxTreeNode, limit: int) -> List[SyntaxNode]:
        opener_text = node.markup or "$"
        closer_text = (node.meta or {}).get("closer", opener_text)
        opener = self.locate(opener_text, limit)
        if opener is None:
            self.unlocated_note(node)
            return [self.node_make(NodeKind.MATH_INLINE, self.cursor, self.cursor, literal=node.content)]

        content_start = opener + len(opener_text)
        closer = content_start + len(node.content)
        if not self.text.startswith(closer_text, closer, limit):
            # Container prefixes (e.g. "> ") were stripped from the token content
            closer = self.text.find(closer_text, content_start, limit)
        if closer == -1:
            self.unlocated_note(node)
            return [self.node_make(NodeKind.MATH_INLINE, self.cursor, self.cursor, literal=node.content)]

        self.cursor = closer + len(closer_text)
        return [self.node_make(
            NodeKind.MATH_INLINE, opener, self.cursor,
            literal=node.content,
            content=(content_start, closer),
        )]

    def htmlInline_convert(self, node: SyntaxTreeNode, limit: int) -> List[SyntaxNode]:
        start = self.locate(node.content, limit)
        if start is None:
            self.unlocated_note(node)
            return []
        self.cursor = start + len(node.content)
        return [self.node_make(
            NodeKind.HTML_INLINE, start, self.cursor,
            literal=node.content,
            content=(start, self.cursor),
        )]

    def emphasis_convert(self, node: SyntaxTreeNode, limit: int) -> List[SyntaxNode]:
        kind = EMPHASIS_KINDS_BY_TYPE[node.type]
        marker = node.markup or "*"
        opener = self.locate(marker, limit)
        if opener is None:
            self.unlocated_note(node)
            opener = self.cursor
        else:
            self.cursor = opener + len(marker)

        children = self.inlines_convert(node.children, limit)

        closer = self.locate(marker, limit)
        if closer is not None:
            self.cursor = closer + len(marker)
        return [self.node_make(kind, opener, self.cursor, children)]

    def linkTail_skip(self, limit: int) -> None:
        """
        Move the cursor past "](destination "title")" or "][label]".

        Backslash escapes and <...> destinations may hide parentheses.
        """
        close = self.locate("]", limit)
        if close is None:
            return
        position = close + 1
        if position < limit and self.text[position] == "(":
            depth = 0
            in_angle = False
            while position < limit:
                char = self.text[position]
                if char == "\\":
                    position += 2
                    continue
                if in_angle:
                    in_angle = char != ">"
                elif char == "<":
                    in_angle = True
                elif char == "(":
                    depth += 1
                elif char == ")":
                    depth -= 1
                    if depth == 0:
                        position += 1
                        break
                position += 1
        elif position < limit and self.text[position] == "[":
            label_end = self.text.find("]", position, limit)
            if label_end != -1:
                position = label_end + 1
        self.cursor = min(position, limit)

    def link_convert(self, node: SyntaxTreeNode, limit: int) -> List[SyntaxNode]:
        if node.markup == "autolink":
            return self.autoLink_convert(node, limit)

        opener = self.locate("[", limit)
        if opener is None:
            self.unlocated_note(node)
            return self.inlines_convert(node.children, limit)
        self.cursor = opener + 1

        children = self.inlines_convert(node.children, limit)
        self.linkTail_skip(limit)
        return [self.node_make(NodeKind.LINK, opener, self.cursor, children)]

    def autoLink_convert(self, node: SyntaxTreeNode, limit: int) -> List[SyntaxNode]:
        opener = self.locate("<", limit)
        closer = None if opener is None else self.text.find(">", opener + 1, limit)
        if opener is None or closer == -1:
            self.unlocated_note(node)
            return []
        self.cursor = closer + 1
        address = self.node_make(
            NodeKind.TEXT, opener + 1, closer, literal=self.text[opener + 1:closer]
        )
        return [self.node_make(
            NodeKind.AUTO_LINK, opener, self.cursor, [address],
            literal=self.text[opener + 1:closer],
            content=(opener + 1, closer),
        )]

    def image_convert(self, node: SyntaxTreeNode, limit: int) -> List[SyntaxNode]:
        opener = self.locate("![", limit)
        if opener is None:
            self.unlocated_note(node)
            return []
        self.cursor = opener + 2

        children = self.inlines_convert(node.children, limit)
        self.linkTail_skip(limit)
        return [self.node_make(NodeKind.IMAGE, opener, self.cursor, children)]
