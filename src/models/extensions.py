"""
Extension handler specification models

Describes the dialect constructs whose rendering does not reduce to a
single per-node action (definition terms, table rows, front matter, math).
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Callable, List

from .syntax import NodeKind


class ExtensionCategory(Enum):
    """
    Categories of dialect extensions

    Used for organization and listing.
    """
    STRUCTURAL = "structural"    # definition terms, table rows
    METADATA = "metadata"        # front matter
    MATH = "math"                # inline and display math


@dataclass
class ExtensionSpec:
    """
    Specification for a dialect extension handler

    Attributes:
        name: Extension name
        category: Category for organization
        description: Human-readable description
        handler: Rendering function (builder, node, action) -> None
        kinds: Node kinds the handler takes over
    """
    name: str
    category: ExtensionCategory
    description: str
    handler: Callable
    kinds: List[NodeKind] = field(default_factory=list)
