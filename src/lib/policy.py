"""
Node policy table

Resolves the action the builder takes for each node kind: a configured
override when there is one, the dialect default otherwise.

The default table must name every NodeKind; a kind added to the enum
without a default makes this module fail at import time instead of
silently falling through to some unintended action.
"""

from typing import Dict, Mapping, Optional, Union

from ..models.policy import Action, NodeSettings
from ..models.syntax import NodeKind
from .log import LOG


DEFAULT_POLICIES: Dict[NodeKind, Action] = {
    # Prose containers and leaves
    NodeKind.DOCUMENT: Action.PLAIN_TEXT,
    NodeKind.HEADING: Action.PLAIN_TEXT,
    NodeKind.PARAGRAPH: Action.PLAIN_TEXT,
    NodeKind.TEXT: Action.PLAIN_TEXT,
    NodeKind.LINK: Action.PLAIN_TEXT,   # label only, destination is markup
    NodeKind.IMAGE: Action.PLAIN_TEXT,  # alt text only
    NodeKind.EMPHASIS: Action.PLAIN_TEXT,
    NodeKind.STRONG: Action.PLAIN_TEXT,
    NodeKind.STRIKETHROUGH: Action.PLAIN_TEXT,
    NodeKind.BLOCK_QUOTE: Action.PLAIN_TEXT,
    NodeKind.BULLET_LIST: Action.PLAIN_TEXT,
    NodeKind.ORDERED_LIST: Action.PLAIN_TEXT,
    NodeKind.LIST_ITEM: Action.PLAIN_TEXT,
    NodeKind.TABLE: Action.PLAIN_TEXT,
    NodeKind.TABLE_HEAD: Action.PLAIN_TEXT,
    NodeKind.TABLE_BODY: Action.PLAIN_TEXT,
    NodeKind.TABLE_ROW: Action.PLAIN_TEXT,
    NodeKind.TABLE_CELL: Action.PLAIN_TEXT,
    NodeKind.DEFINITION_LIST: Action.PLAIN_TEXT,
    NodeKind.DEFINITION_TERM: Action.PLAIN_TEXT,
    NodeKind.DEFINITION: Action.PLAIN_TEXT,
    NodeKind.HARD_LINE_BREAK: Action.PLAIN_TEXT,
    NodeKind.SOFT_LINE_BREAK: Action.PLAIN_TEXT,
    NodeKind.HTML_ENTITY: Action.PLAIN_TEXT,
    NodeKind.ESCAPED_CHARACTER: Action.PLAIN_TEXT,

    # Opaque inline content
    NodeKind.INLINE_CODE: Action.PLACEHOLDER,
    NodeKind.MATH_INLINE: Action.PLACEHOLDER,
    NodeKind.AUTO_LINK: Action.PLACEHOLDER,

    # Blocks with no prose
    NodeKind.FENCED_CODE_BLOCK: Action.DROP,
    NodeKind.INDENTED_CODE_BLOCK: Action.DROP,
    NodeKind.MATH_BLOCK: Action.DROP,
    NodeKind.FRONT_MATTER: Action.DROP,
    NodeKind.TABLE_SEPARATOR: Action.DROP,
    NodeKind.THEMATIC_BREAK: Action.DROP,
    NodeKind.HTML_BLOCK: Action.DROP,
    NodeKind.HTML_INLINE: Action.DROP,
}

_missing = [kind.value for kind in NodeKind if kind not in DEFAULT_POLICIES]
if _missing:
    raise RuntimeError(f"No default policy for node kinds: {', '.join(_missing)}")


class PolicyTable:
    """
    Maps node kinds to actions for one conversion

    Example:
        >>> table = PolicyTable({"Code": "default"})
        >>> table.resolve(NodeKind.INLINE_CODE)
        <Action.LITERAL: 'default'>
        >>> table.resolve(NodeKind.MATH_INLINE)
        <Action.PLACEHOLDER: 'dummy'>
    """

    def __init__(
        self, nodeSettings: Optional[Union[NodeSettings, Mapping[str, str]]] = None
    ) -> None:
        """
        Initialize the table

        Args:
            nodeSettings: NodeSettings, or a loose {name: keyword} mapping
                          that is translated with NodeSettings.mapping_translate()
        """
        if nodeSettings is None:
            nodeSettings = NodeSettings()
        elif not isinstance(nodeSettings, NodeSettings):
            nodeSettings = NodeSettings.mapping_translate(nodeSettings)
        self.nodeSettings = nodeSettings

        for name, keyword in self.nodeSettings.rejected.items():
            LOG(f"Ignoring node setting {name}={keyword}: unknown node kind or action", level=2)

    def resolve(self, kind: NodeKind) -> Action:
        """
        Get the action for a node kind

        Args:
            kind: Node kind

        Returns:
            Configured override, or the dialect default
        """
        override = self.nodeSettings.override_get(kind)
        if override is not None:
            return override
        return DEFAULT_POLICIES[kind]
