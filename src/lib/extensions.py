"""
Dialect extension handlers for annotext

Constructs whose rendering depends on more than their own action:
definition terms gain a terminating period, table cells are joined into
one line per row, front matter is blanked unless shown literally, and
math with an unusable content region degrades to newline filler.

Each handler receives the builder, the node and the resolved action, and
calls back into the builder's append API.
"""

from typing import Any, Dict, Optional

from ..models.extensions import ExtensionSpec, ExtensionCategory
from ..models.policy import Action
from ..models.syntax import NodeKind, SyntaxNode
from .log import degradation_log


PROSE_ACTIONS = (Action.PLAIN_TEXT, Action.LITERAL)


class ExtensionRegistry:
    """
    Registry of extension specifications and handlers

    Maps node kinds to ExtensionSpec objects. Kinds without an extension
    are rendered by the builder's generic dispatch.
    """

    def __init__(self) -> None:
        """Initialize the registry and register all built-in extensions"""
        self.specs: Dict[NodeKind, ExtensionSpec] = {}
        self.structuralExtensions_register()
        self.metadataExtensions_register()
        self.mathExtensions_register()

    def register(self, spec: ExtensionSpec) -> None:
        """Register an extension for every kind it handles"""
        for kind in spec.kinds:
            self.specs[kind] = spec

    def spec_get(self, kind: NodeKind) -> Optional[ExtensionSpec]:
        """Get the extension handling a node kind, if any"""
        return self.specs.get(kind)

    def extensions_listByCategory(self, category: ExtensionCategory) -> list[ExtensionSpec]:
        """Get all distinct extensions in a category"""
        seen: list[ExtensionSpec] = []
        for spec in self.specs.values():
            if spec.category == category and spec not in seen:
                seen.append(spec)
        return seen

    def structuralExtensions_register(self) -> None:
        """Register definition list and table extensions"""

        def definitionTerm_handler(builder: Any, node: SyntaxNode, action: Action) -> None:
            """Render the term, then a period so it reads as a complete sentence"""
            builder.node_dispatch(node, action)
            if action in PROSE_ACTIONS:
                builder.markup_add(builder.state.source_cursor, builder.settings.term_terminator)

        def tableRow_handler(builder: Any, node: SyntaxNode, action: Action) -> None:
            """
            Join the cells of a row with the cell separator.

            The pipes and padding between two cells become one separator,
            but only when both sides contribute text; empty cells are
            skipped without doubling the separator.
            """
            if action is not Action.PLAIN_TEXT and action is not Action.LITERAL:
                builder.node_dispatch(node, action)
                return

            state = builder.state
            state.row_has_content = False
            for index, cell in enumerate(node.children):
                has_content = cell.end > cell.start or bool(cell.children)
                in_order = cell.start >= state.source_cursor
                if index > 0 and state.row_has_content and has_content and in_order:
                    filler = builder.settings.cell_separator + builder.filler_make(cell.start)
                    builder.markup_add(cell.start, filler)
                before = state.plain_cursor
                builder.node_visit(cell)
                if state.plain_cursor > before:
                    state.row_has_content = True
            builder.markup_add(node.end)

        self.register(ExtensionSpec(
            name="definition-term",
            category=ExtensionCategory.STRUCTURAL,
            description="Append a period to each definition-list term",
            handler=definitionTerm_handler,
            kinds=[NodeKind.DEFINITION_TERM],
        ))

        self.register(ExtensionSpec(
            name="table-row",
            category=ExtensionCategory.STRUCTURAL,
            description="Flatten a table row into one line of space-separated cells",
            handler=tableRow_handler,
            kinds=[NodeKind.TABLE_ROW],
        ))

    def metadataExtensions_register(self) -> None:
        """Register front matter extension"""

        def frontMatter_handler(builder: Any, node: SyntaxNode, action: Action) -> None:
            """Front matter is either shown literally or blanked as a whole"""
            if action is Action.LITERAL:
                builder.node_dispatch(node, action)
            else:
                builder.node_dispatch(node, Action.DROP)

        self.register(ExtensionSpec(
            name="front-matter",
            category=ExtensionCategory.METADATA,
            description="Blank the whole front matter block, keeping its line count",
            handler=frontMatter_handler,
            kinds=[NodeKind.FRONT_MATTER],
        ))

    def mathExtensions_register(self) -> None:
        """Register inline and display math extension"""

        def math_handler(builder: Any, node: SyntaxNode, action: Action) -> None:
            """Math whose delimiters are not inside its span is dropped"""
            if node.contentSpan_get() is None:
                degradation_log(
                    node.kind.value, node.start, node.end,
                    "no usable content region, dropping it",
                )
                builder.node_dispatch(node, Action.DROP)
                return
            builder.node_dispatch(node, action)

        self.register(ExtensionSpec(
            name="math",
            category=ExtensionCategory.MATH,
            description="Render math through its action, degrading inconsistent nodes to filler",
            handler=math_handler,
            kinds=[NodeKind.MATH_INLINE, NodeKind.MATH_BLOCK],
        ))
