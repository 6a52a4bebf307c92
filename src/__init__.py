"""
annotext - Markdown to annotated plain text for grammar checking

Converts Markdown into the plain text a grammar checker reads, with a
position map tracing every plain-text character back to the source.
"""

__version__ = "1.0.0"

from .lib import Parser, AnnotatedTextBuilder, annotate, PolicyTable, LOG, state_connectToLogger

__all__ = [
    "Parser",
    "AnnotatedTextBuilder",
    "annotate",
    "PolicyTable",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
