"""
Node policy models

Defines the actions the builder can take for a node kind and the
NodeSettings model that translates a loosely typed configuration mapping
(e.g. {"Code": "default"}) into a NodeKind-keyed action table.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .syntax import NodeKind, kind_resolve


class Action(Enum):
    """
    What the builder emits for a node

    The value is the configuration keyword selecting the action.
    """
    PLAIN_TEXT = "plainText"            # recurse, emit prose verbatim
    DROP = "ignore"                     # newline filler only
    PLACEHOLDER = "dummy"               # Dummy0, Dummy1, ...
    PLURAL_PLACEHOLDER = "pluralDummy"  # Dummies
    VOWEL_PLACEHOLDER = "vowelDummy"    # Ina0, Ina1, ...
    LITERAL = "default"                 # raw content as prose

    @property
    def placeholder_is(self) -> bool:
        """Check if the action replaces the node with a synthetic token"""
        return self in (
            Action.PLACEHOLDER,
            Action.PLURAL_PLACEHOLDER,
            Action.VOWEL_PLACEHOLDER,
        )


def action_resolve(keyword: Any) -> Optional[Action]:
    """
    Translate a configuration keyword into an Action

    Returns:
        The Action, or None for unknown keywords
    """
    if isinstance(keyword, Action):
        return keyword
    try:
        return Action(str(keyword))
    except ValueError:
        return None


class NodeSettings(BaseModel):
    """
    Per-kind action overrides for one conversion

    Built from a loose {name: keyword} mapping. Entries naming an unknown
    kind or an unknown keyword are not errors: they are left out of
    `overrides` and recorded in `rejected` so callers can report them.

    Example:
        >>> settings = NodeSettings.mapping_translate({"Code": "default", "Foo": "x"})
        >>> settings.overrides
        {<NodeKind.INLINE_CODE: 'InlineCode'>: <Action.LITERAL: 'default'>}
        >>> settings.rejected
        {'Foo': 'x'}
    """

    model_config = ConfigDict(frozen=True)

    overrides: Dict[NodeKind, Action] = Field(default_factory=dict)
    rejected: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def mapping_translate(cls, mapping: Optional[Mapping[Any, Any]]) -> "NodeSettings":
        """
        Build NodeSettings from a loosely typed mapping

        Args:
            mapping: {node kind name: action keyword}, or None

        Returns:
            NodeSettings with recognized entries in overrides
        """
        overrides: Dict[NodeKind, Action] = {}
        rejected: Dict[str, str] = {}

        if not isinstance(mapping, Mapping):
            return cls()

        for name, keyword in mapping.items():
            kind = name if isinstance(name, NodeKind) else kind_resolve(str(name))
            action = action_resolve(keyword)
            if kind is None or action is None:
                rejected[str(name)] = str(keyword)
                continue
            overrides[kind] = action

        return cls(overrides=overrides, rejected=rejected)

    @field_validator("overrides", mode="before")
    @classmethod
    def overrides_normalize(cls, value: Any) -> Any:
        """Accept configuration names as keys when constructed directly"""
        if not isinstance(value, Mapping):
            return value
        normalized: Dict[Any, Any] = {}
        for name, keyword in value.items():
            kind = name if isinstance(name, NodeKind) else kind_resolve(str(name))
            action = action_resolve(keyword)
            if kind is not None and action is not None:
                normalized[kind] = action
        return normalized

    def override_get(self, kind: NodeKind) -> Optional[Action]:
        """Get the configured action for a kind, if any"""
        return self.overrides.get(kind)
