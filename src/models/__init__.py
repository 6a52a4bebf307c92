"""
Models package for annotext

Contains data structures and type definitions for the conversion pipeline.
"""

from .state import ProgramState, pipeline
from .syntax import NodeKind, SyntaxNode, KIND_ALIASES, BLOCK_KINDS, kind_resolve
from .policy import Action, NodeSettings, action_resolve
from .annotated import AnnotatedText, TextRun
from .extensions import ExtensionSpec, ExtensionCategory

__all__ = [
    "ProgramState",
    "pipeline",
    "NodeKind",
    "SyntaxNode",
    "KIND_ALIASES",
    "BLOCK_KINDS",
    "kind_resolve",
    "Action",
    "NodeSettings",
    "action_resolve",
    "AnnotatedText",
    "TextRun",
    "ExtensionSpec",
    "ExtensionCategory",
]
