"""
annotext - Markdown to annotated plain text for grammar checking

Converts Markdown into the plain text a grammar checker reads, with a
position map tracing every plain-text character back to the source.
"""

__version__ = "1.0.0"

from .parser import Parser
from .builder import AnnotatedTextBuilder, TraversalState, annotate
from .extensions import ExtensionRegistry
from .policy import DEFAULT_POLICIES, PolicyTable
from .log import LOG, state_connectToLogger

__all__ = [
    "Parser",
    "AnnotatedTextBuilder",
    "TraversalState",
    "annotate",
    "ExtensionRegistry",
    "DEFAULT_POLICIES",
    "PolicyTable",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
