"""
Annotated text builder for annotext

Walks a SyntaxNode tree depth-first and produces the plain text a grammar
checker reads, together with a run map tracing every plain character back
to the Markdown source.

The walk keeps a source cursor. Whatever lies between the cursor and the
next node (list markers, emphasis markers, link destinations, blank lines)
is markup: it is replaced by the newlines it contains, so plain-text line
numbers stay aligned with the source. Nodes then emit according to their
resolved action:

- PlainText: prose copied verbatim, children visited recursively
- Drop: newline filler only
- Placeholder: a numbered token (Dummy0, Dummy1, ...)
- Literal: the node's content region copied as prose

Soft and hard line breaks inside a paragraph become a single space.
Carriage returns never reach the plain text.
"""

import re
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Union

from ..config.settings import AppSettings, appsettings
from ..models.annotated import AnnotatedText, TextRun
from ..models.policy import Action, NodeSettings
from ..models.syntax import BLOCK_KINDS, NodeKind, SyntaxNode
from .extensions import ExtensionRegistry
from .log import LOG, degradation_log
from .parser import Parser
from .policy import PolicyTable


LINE_ENDING = re.compile(r"\r\n?|\n")

LINE_BREAK_KINDS = (NodeKind.SOFT_LINE_BREAK, NodeKind.HARD_LINE_BREAK)


@dataclass
class TraversalState:
    """
    Mutable state of one conversion

    Attributes:
        source_cursor: Source offset up to which everything has been emitted
        plain_cursor: Length of the plain text emitted so far
        parts: Emitted plain-text fragments
        runs: Emitted position map records
        placeholder_count: Placeholders minted so far
        row_has_content: Whether a cell of the current table row emitted text
    """
    source_cursor: int = 0
    plain_cursor: int = 0
    parts: List[str] = field(default_factory=list)
    runs: List[TextRun] = field(default_factory=list)
    placeholder_count: int = 0
    row_has_content: bool = False


class AnnotatedTextBuilder:
    """
    Converts SyntaxNode trees into AnnotatedText

    One builder may convert many documents; each build() call starts from
    a fresh TraversalState, so placeholder numbering restarts at 0.

    Example:
        >>> builder = AnnotatedTextBuilder({"Code": "default"})
        >>> builder.build(Parser("Run `make`.\\n").parse()).plain_text
        'Run make.\\n'
    """

    def __init__(
        self,
        nodeSettings: Optional[Union[NodeSettings, Mapping[str, str]]] = None,
        settings: Optional[AppSettings] = None,
        registry: Optional[ExtensionRegistry] = None,
    ) -> None:
        """
        Initialize the builder

        Args:
            nodeSettings: Per-kind action overrides, as NodeSettings or a
                          loose {kind name: keyword} mapping
            settings: Placeholder and separator settings (default: appsettings)
            registry: Extension handlers (default: built-in extensions)
        """
        self.policies = PolicyTable(nodeSettings)
        self.settings = settings if settings is not None else appsettings
        self.registry = registry if registry is not None else ExtensionRegistry()
        self.source = ""
        self.state = TraversalState()

    def build(self, tree: SyntaxNode, source: Optional[str] = None) -> AnnotatedText:
        """
        Convert a syntax tree.

        Args:
            tree: Root node, normally a Document
            source: Source text the spans index; defaults to the literal
                    of a Document root

        Returns:
            The annotated text
        """
        if source is None:
            source = tree.literal if tree.kind is NodeKind.DOCUMENT else ""
        self.source = source
        self.state = TraversalState()

        self.node_visit(tree)
        return self.finalize()

    # ------------------------------------------------------------------
    # Append API
    # ------------------------------------------------------------------

    def offset_clamp(self, offset: int) -> int:
        """Keep an offset between the cursor and the end of the source"""
        return max(self.state.source_cursor, min(offset, len(self.source)))

    def filler_make(self, end: int) -> str:
        """Newlines contained in the source between the cursor and end"""
        segment = self.source[self.state.source_cursor:self.offset_clamp(end)]
        return "\n" * len(LINE_ENDING.findall(segment))

    def run_push(self, plain: str, end: int, is_markup: bool) -> None:
        """Append plain text standing for the source up to end"""
        state = self.state
        source_length = end - state.source_cursor
        if not plain and not source_length:
            return
        state.runs.append(TextRun(
            plain_start=state.plain_cursor,
            source_start=state.source_cursor,
            plain_length=len(plain),
            source_length=source_length,
            is_markup=is_markup,
        ))
        state.parts.append(plain)
        state.plain_cursor += len(plain)
        state.source_cursor = end

    def markup_add(self, end: int, interpretation: Optional[str] = None) -> None:
        """
        Consume source up to end as markup.

        Args:
            end: Source offset to consume to
            interpretation: Plain text standing for the markup; defaults to
                            the newlines the consumed source contains
        """
        end = self.offset_clamp(end)
        if interpretation is None:
            interpretation = self.filler_make(end)
        self.run_push(interpretation, end, True)

    def text_add(self, end: int) -> None:
        """
        Consume source up to end as prose.

        Line endings are emitted as a single newline each.
        """
        end = self.offset_clamp(end)
        cursor = self.state.source_cursor
        for match in LINE_ENDING.finditer(self.source, cursor, end):
            if match.start() > cursor:
                self.run_push(self.source[cursor:match.start()], match.start(), False)
            self.run_push("\n", match.end(), False)
            cursor = match.end()
        if cursor < end:
            self.run_push(self.source[cursor:end], end, False)

    def entity_add(self, end: int, decoded: str) -> None:
        """Consume a character reference up to end as its decoded text"""
        self.run_push(decoded, self.offset_clamp(end), False)

    def placeholder_add(self, end: int, action: Action = Action.PLACEHOLDER, block: bool = False) -> None:
        """
        Consume source up to end, emitting the next placeholder token.

        Args:
            end: Source offset to consume to
            action: Placeholder variant
            block: Keep the newlines of the consumed source after the token
        """
        state = self.state
        token = self.settings.placeHolder_make(state.placeholder_count, action)
        state.placeholder_count += 1
        if block:
            token += self.filler_make(end)
        self.run_push(token, self.offset_clamp(end), True)

    def finalize(self) -> AnnotatedText:
        """
        Consume the rest of the source and freeze the result.

        Returns:
            AnnotatedText for the current conversion
        """
        self.markup_add(len(self.source))
        state = self.state
        plain_text = "".join(state.parts)
        LOG(
            f"Annotated {len(self.source)} source characters as {len(plain_text)} plain "
            f"characters: {len(state.runs)} runs, {state.placeholder_count} placeholder(s)",
            level=2,
        )
        return AnnotatedText(source=self.source, plain_text=plain_text, runs=tuple(state.runs))

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def node_visit(self, node: SyntaxNode) -> None:
        """Emit the markup before a node, then the node itself"""
        self.markup_add(node.start)
        action = self.policies.resolve(node.kind)
        spec = self.registry.spec_get(node.kind)
        if spec is not None:
            spec.handler(self, node, action)
        else:
            self.node_dispatch(node, action)

    def node_dispatch(self, node: SyntaxNode, action: Action) -> None:
        """
        Emit a node according to an action.

        Args:
            node: Node whose leading markup has been consumed
            action: Resolved action
        """
        if action is Action.DROP:
            self.markup_add(node.end)
        elif action.placeholder_is:
            self.placeholder_add(node.end, action, block=node.kind in BLOCK_KINDS)
        elif action is Action.LITERAL and node.content_start is not None:
            self.literal_add(node)
        else:
            self.plainText_add(node)

    def literal_add(self, node: SyntaxNode) -> None:
        """Emit the content region of a node as prose, its delimiters as markup"""
        span = node.contentSpan_get()
        if span is None:
            degradation_log(
                node.kind.value, node.start, node.end,
                "inconsistent content region, rendering it without it",
            )
            if node.children:
                self.plainText_add(node)
            else:
                self.markup_add(node.end)
            return
        self.markup_add(span[0])
        self.text_add(span[1])
        self.markup_add(node.end)

    def plainText_add(self, node: SyntaxNode) -> None:
        """Emit prose leaves verbatim and recurse into containers"""
        kind = node.kind
        if kind is NodeKind.TEXT:
            self.text_add(node.end)
        elif kind in LINE_BREAK_KINDS:
            self.markup_add(node.end, " ")
        elif kind is NodeKind.HTML_ENTITY:
            self.entity_add(node.end, node.literal)
        elif kind is NodeKind.ESCAPED_CHARACTER:
            if node.contentSpan_get() is not None:
                self.literal_add(node)
            else:
                self.entity_add(node.end, node.literal)
        else:
            self.children_visit(node)

    def children_visit(self, node: SyntaxNode) -> None:
        for child in node.children:
            self.node_visit(child)
        self.markup_add(node.end)


def annotate(
    source: str,
    nodes: Optional[Union[NodeSettings, Mapping[str, str]]] = None,
) -> AnnotatedText:
    """
    Parse Markdown and build its annotated text.

    Args:
        source: Markdown source
        nodes: Per-kind action overrides, e.g. {"Code": "default"}

    Returns:
        AnnotatedText for source

    Example:
        >>> annotate("# Title\\n").plain_text
        'Title\\n'
    """
    tree = Parser(source).parse()
    return AnnotatedTextBuilder(nodes).build(tree, source)
