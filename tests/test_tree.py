"""
Parser front end tests

Tests the math dialect scanner, the markdown-it configuration, and the
source spans assigned by the tree converter.
"""

import pytest

from annotext.config.settings import appsettings
from annotext.lib.dialect import mathInline_scan, delimiter_isEscaped
from annotext.lib.parser import Parser, markdown_create
from annotext.lib.tree import source_normalize
from annotext.models.syntax import NodeKind


def kinds_find(document, kind):
    return [node for node in document.walk() if node.kind is kind]


class TestMathScan:
    """Test the inline math scanner"""

    @pytest.mark.parametrize("src,pos,expected", [
        ("a $x$ b", 2, ("$", "$", 4)),
        ("$E = mc^2\n$.", 0, ("$", "$", 10)),
        ("$1 \\$2 3$.", 0, ("$", "$", 8)),
        ("$`a`$", 0, ("$`", "`$", 3)),
        ("$$x$$", 0, ("$$", "$$", 3)),
    ])
    def test_math_spans(self, src, pos, expected):
        """Valid openers return their delimiters and closer offset"""
        assert mathInline_scan(src, pos, len(src)) == expected

    @pytest.mark.parametrize("src,pos", [
        ("The book is $3, not $5.", 12),
        ("costs $ 5", 6),
        ("$5 and $6", 0),
        ("$x", 0),
        ("$``$", 0),
        ("$$$$", 0),
        ("no dollar", 0),
    ])
    def test_not_math(self, src, pos):
        """Amounts, lone dollars and empty spans are prose"""
        assert mathInline_scan(src, pos, len(src)) is None

    def test_escaped_dollar(self):
        """Odd backslash runs escape, even runs do not"""
        assert delimiter_isEscaped("\\$", 1)
        assert not delimiter_isEscaped("\\\\$", 2)


class TestMarkdownConfiguration:
    """Test the shared markdown-it instance"""

    def test_instance_shared(self):
        """markdown_create() returns one configured instance"""
        assert markdown_create() is markdown_create()

    def test_entities_stay_separate(self):
        """Entities are not joined into the surrounding text"""
        tokens = markdown_create().parse("a &copy; b")
        types = [child.type for child in tokens[1].children]
        assert "text_special" in types

    def test_math_tokens(self):
        """Math rules produce math tokens"""
        tokens = markdown_create().parse("$x$\n\n$$\ny\n$$\n")
        assert tokens[1].children[0].type == "math_inline"
        assert tokens[1].children[0].meta == {"closer": "$"}
        assert any(token.type == "math_block" for token in tokens)

    def test_debug_from_settings(self, monkeypatch):
        """ANNOTEXT_DEBUG_MODE turns on token tracing"""
        monkeypatch.setattr(appsettings, "debug_mode", True)
        assert Parser("Text\n").debug
        monkeypatch.setattr(appsettings, "debug_mode", False)
        assert not Parser("Text\n").debug
        assert Parser("Text\n", debug=True).debug

    def test_detached_terms_merged(self):
        """Extra terms end up inside the definition list"""
        tokens = markdown_create().parse("A\nB\n: def\n")
        types = [token.type for token in tokens]
        assert types[:7] == ["dl_open", "dt_open", "inline", "dt_close", "dt_open", "inline", "dt_close"]
        assert tokens[0].map == [0, 3]
        assert tokens[2].content == "A"

    def test_single_term_untouched(self):
        """One term before a definition is left to the deflist plugin"""
        tokens = markdown_create().parse("A\n: def\n")
        assert not any(token.meta.get("detached_term") for token in tokens)


class TestNormalize:
    """Test line ending normalization"""

    def test_offsets(self):
        """Each normalized offset maps back to the original"""
        text, offsets = source_normalize("a\r\nb\rc\n")
        assert text == "a\nb\nc\n"
        assert offsets == [0, 1, 3, 4, 5, 6, 7]


class TestSpans:
    """Test spans assigned by the tree converter"""

    def test_leaf_spans_match_source(self):
        """Text leaves span exactly their source characters"""
        source = "# Head\n\nSome *emph* and [link](x).\n"
        document = Parser(source).parse()
        texts = [source[node.start:node.end] for node in kinds_find(document, NodeKind.TEXT)]
        assert texts == ["Head", "Some ", "emph", " and ", "link", "."]

    def test_document_carries_source(self):
        """The document spans the source and carries it"""
        source = "Text\r\n"
        document = Parser(source).parse()
        assert (document.start, document.end) == (0, len(source))
        assert document.literal == source

    def test_crlf_block_spans(self):
        """Block spans end before the CRLF of their last line"""
        source = "One\r\ntwo\r\n\r\nThree\r\n"
        document = Parser(source).parse()
        paragraphs = kinds_find(document, NodeKind.PARAGRAPH)
        assert [source[node.start:node.end] for node in paragraphs] == ["One\r\ntwo", "Three"]

    def test_inline_code_content(self):
        """Code spans carry their content region"""
        source = "Run `make all` now.\n"
        code = kinds_find(Parser(source).parse(), NodeKind.INLINE_CODE)[0]
        assert source[code.start:code.end] == "`make all`"
        assert source[code.content_start:code.content_end] == "make all"

    def test_table_separator_synthesized(self):
        """The delimiter row becomes a TableSeparator between head and body"""
        source = "| a | b |\n| - | - |\n| c | d |\n"
        table = kinds_find(Parser(source).parse(), NodeKind.TABLE)[0]
        assert [child.kind for child in table.children] == [
            NodeKind.TABLE_HEAD,
            NodeKind.TABLE_SEPARATOR,
            NodeKind.TABLE_BODY,
        ]
        separator = table.children[1]
        assert source[separator.start:separator.end] == "| - | - |"

    def test_table_cells(self):
        """Cells span their trimmed text"""
        source = "| a | bb |\n|---|----|\n"
        cells = kinds_find(Parser(source).parse(), NodeKind.TABLE_CELL)
        assert [source[cell.start:cell.end] for cell in cells] == ["a", "bb"]

    def test_math_fence_kind(self):
        """A fence with info string math is display math"""
        source = "```math\nx\n```\n"
        document = Parser(source).parse()
        assert document.children[0].kind is NodeKind.MATH_BLOCK
        block = document.children[0]
        assert source[block.content_start:block.content_end] == "x"

    def test_math_inline_span(self):
        """Inline math spans include its delimiters"""
        source = "So $a + b$ holds.\n"
        math = kinds_find(Parser(source).parse(), NodeKind.MATH_INLINE)[0]
        assert source[math.start:math.end] == "$a + b$"
        assert source[math.content_start:math.content_end] == "a + b"

    def test_front_matter_content(self):
        """Front matter content is the body between the markers"""
        source = "---\na: 1\n---\nText\n"
        front = Parser(source).parse().children[0]
        assert front.kind is NodeKind.FRONT_MATTER
        assert source[front.content_start:front.content_end] == "a: 1"

    def test_definition_list_kinds(self):
        """Definition lists produce terms and definitions"""
        document = Parser("Term\n: Meaning.\n").parse()
        assert kinds_find(document, NodeKind.DEFINITION_LIST)
        term = kinds_find(document, NodeKind.DEFINITION_TERM)[0]
        assert (term.start, term.end) == (0, 4)
        assert kinds_find(document, NodeKind.DEFINITION)

    def test_shared_definition_terms(self):
        """Every line before a shared definition is its own term"""
        source = "Term A\nTerm B\n: Meaning.\n"
        document = Parser(source).parse()
        definition_list = kinds_find(document, NodeKind.DEFINITION_LIST)[0]
        terms = kinds_find(document, NodeKind.DEFINITION_TERM)
        assert [source[term.start:term.end] for term in terms] == ["Term A", "Term B"]
        assert definition_list.start == 0
        assert [child.kind for child in definition_list.children] == [
            NodeKind.DEFINITION_TERM,
            NodeKind.DEFINITION_TERM,
            NodeKind.DEFINITION,
        ]

    def test_entity_and_escape(self):
        """Entities and escapes keep their source markup in the span"""
        source = "&amp; \\*\n"
        document = Parser(source).parse()
        entity = kinds_find(document, NodeKind.HTML_ENTITY)[0]
        escape = kinds_find(document, NodeKind.ESCAPED_CHARACTER)[0]
        assert source[entity.start:entity.end] == "&amp;"
        assert entity.literal == "&"
        assert source[escape.start:escape.end] == "\\*"
        assert source[escape.content_start:escape.content_end] == "*"

    def test_spans_nested_and_ordered(self):
        """Children lie inside their parent and follow each other"""
        source = "> - *a* `b`\n>   c\n\n| x | y |\n|---|---|\n"
        document = Parser(source).parse()

        def check(node):
            previous_end = node.start
            for child in node.children:
                assert node.start <= child.start <= child.end <= node.end
                assert child.start >= previous_end
                previous_end = child.end
                check(child)

        check(document)
