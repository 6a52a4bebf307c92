"""
Markdown parser front end

Wraps markdown-it-py configured for the annotext dialect and converts its
output into a SyntaxNode tree with exact source spans.

The dialect is CommonMark plus:
- GFM tables and strikethrough
- YAML front matter (mdit_py_plugins.front_matter)
- Definition lists (mdit_py_plugins.deflist), several terms may share
  one block of definitions (lib.dialect)
- Inline and display math (lib.dialect)

The text_join core rule is disabled so that entities and backslash
escapes stay separate text_special tokens; the tree converter needs their
original markup to anchor them in the source.
"""

from typing import Optional

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.deflist import deflist_plugin
from mdit_py_plugins.front_matter import front_matter_plugin

from ..config.settings import appsettings
from ..models.syntax import SyntaxNode
from .dialect import definitionTerms_plugin, math_plugin
from .log import LOG
from .tree import TreeConverter


_md: Optional[MarkdownIt] = None


def markdown_create() -> MarkdownIt:
    """
    Get the shared MarkdownIt instance, creating it on first use.

    Returns:
        MarkdownIt configured for the annotext dialect
    """
    global _md
    if _md is None:
        md = MarkdownIt("commonmark")
        md.enable("table")
        md.enable("strikethrough")
        md.disable("text_join", ignoreInvalid=True)
        md.use(front_matter_plugin)
        md.use(deflist_plugin)
        md.use(definitionTerms_plugin)
        md.use(math_plugin)
        _md = md
    return _md


class Parser:
    """
    Parser for annotext Markdown sources

    Example:
        >>> document = Parser("# Title\\n").parse()
        >>> document.children[0].kind
        <NodeKind.HEADING: 'Heading'>
    """

    def __init__(self, source: str, debug: bool = False):
        """
        Initialize parser with source text

        Args:
            source: Markdown source text, line endings untouched
            debug: Log the markdown-it token types while parsing; also
                   enabled by ANNOTEXT_DEBUG_MODE

        Attributes:
            source: Source text being parsed
            debug: Debug mode flag
            converter: TreeConverter used by the last parse() call
        """
        self.source = source
        self.debug = debug or appsettings.debug_mode
        self.converter: Optional[TreeConverter] = None

    def parse(self) -> SyntaxNode:
        """
        Parse the source into a Document node.

        Returns:
            Document SyntaxNode whose spans index self.source
        """
        tokens = markdown_create().parse(self.source)
        if self.debug:
            LOG(f"Tokens: {' '.join(token.type for token in tokens)}", level=3)

        self.converter = TreeConverter(self.source)
        document = self.converter.document_convert(SyntaxTreeNode(tokens))
        LOG(f"Parsed {len(document.children)} top-level block(s)", level=2)
        return document
