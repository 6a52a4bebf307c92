"""
Node policy tests

Tests the default policy table, configuration translation, and the
placeholder variants.
"""

import pytest

from annotext.config.settings import AppSettings
from annotext.lib.builder import AnnotatedTextBuilder, annotate
from annotext.lib.parser import Parser
from annotext.lib.policy import DEFAULT_POLICIES, PolicyTable
from annotext.models.policy import Action, NodeSettings, action_resolve
from annotext.models.syntax import NodeKind, kind_resolve


class TestDefaults:
    """Test the built-in policy table"""

    def test_table_is_total(self):
        """Every node kind has a default action"""
        assert set(DEFAULT_POLICIES) == set(NodeKind)

    @pytest.mark.parametrize("kind,action", [
        (NodeKind.PARAGRAPH, Action.PLAIN_TEXT),
        (NodeKind.LINK, Action.PLAIN_TEXT),
        (NodeKind.INLINE_CODE, Action.PLACEHOLDER),
        (NodeKind.MATH_INLINE, Action.PLACEHOLDER),
        (NodeKind.FENCED_CODE_BLOCK, Action.DROP),
        (NodeKind.MATH_BLOCK, Action.DROP),
        (NodeKind.FRONT_MATTER, Action.DROP),
        (NodeKind.TABLE_SEPARATOR, Action.DROP),
    ])
    def test_default_actions(self, kind, action):
        """Defaults follow the dialect"""
        assert PolicyTable().resolve(kind) is action


class TestConfiguration:
    """Test translation of loose configuration mappings"""

    def test_default_keyword_is_literal(self):
        """"default" selects the literal action"""
        assert PolicyTable({"FencedCodeBlock": "default"}).resolve(NodeKind.FENCED_CODE_BLOCK) is Action.LITERAL

    @pytest.mark.parametrize("name,kind", [
        ("Code", NodeKind.INLINE_CODE),
        ("InlineCode", NodeKind.INLINE_CODE),
        ("YamlFrontMatterBlock", NodeKind.FRONT_MATTER),
        ("GitLabInlineMath", NodeKind.MATH_INLINE),
        ("LtexMarkdownDisplayMath", NodeKind.MATH_BLOCK),
        ("BulletListItem", NodeKind.LIST_ITEM),
    ])
    def test_kind_aliases(self, name, kind):
        """Canonical names and aliases resolve to the same kind"""
        assert kind_resolve(name) is kind

    def test_unknown_keyword_falls_back(self):
        """An unknown action keyword keeps the default"""
        table = PolicyTable({"Code": "shout"})
        assert table.resolve(NodeKind.INLINE_CODE) is Action.PLACEHOLDER
        assert table.nodeSettings.rejected == {"Code": "shout"}

    def test_unknown_kind_ignored(self):
        """An unknown kind name is rejected without error"""
        settings = NodeSettings.mapping_translate({"Frobnicator": "default"})
        assert settings.overrides == {}
        assert settings.rejected == {"Frobnicator": "default"}

    def test_non_mapping_config(self):
        """Anything but a mapping means no overrides"""
        assert NodeSettings.mapping_translate(None).overrides == {}
        assert NodeSettings.mapping_translate(["Code"]).overrides == {}

    def test_direct_construction_normalizes(self):
        """NodeSettings accepts names and keywords directly"""
        settings = NodeSettings(overrides={"Code": "ignore"})
        assert settings.override_get(NodeKind.INLINE_CODE) is Action.DROP

    @pytest.mark.parametrize("keyword,action", [
        ("default", Action.LITERAL),
        ("ignore", Action.DROP),
        ("dummy", Action.PLACEHOLDER),
        ("pluralDummy", Action.PLURAL_PLACEHOLDER),
        ("vowelDummy", Action.VOWEL_PLACEHOLDER),
        ("plainText", Action.PLAIN_TEXT),
        ("nonsense", None),
    ])
    def test_keywords(self, keyword, action):
        """Configuration keywords map to actions"""
        assert action_resolve(keyword) is action


class TestActions:
    """Test the effect of each action on real documents"""

    def test_ignore_inline_code(self):
        """Dropped inline code leaves nothing behind"""
        assert annotate("A `b` c.\n", {"Code": "ignore"}).plain_text == "A  c.\n"

    def test_dummy_fenced_block(self):
        """A placeholder block keeps its newlines after the token"""
        text = annotate("```\nx\n```\n", {"FencedCodeBlock": "dummy"})
        assert text.plain_text == "Dummy0\n\n\n"

    def test_plural_dummy(self):
        """Plural placeholders are not numbered"""
        text = annotate("`a` and `b`\n", {"Code": "pluralDummy"})
        assert text.plain_text == "Dummies and Dummies\n"

    def test_vowel_dummy(self):
        """Vowel placeholders are numbered in document order"""
        text = annotate("`a` and `b`\n", {"Code": "vowelDummy"})
        assert text.plain_text == "Ina0 and Ina1\n"

    def test_placeholder_order(self):
        """Placeholders count up through the document across kinds"""
        text = annotate("`a`, $x$ and <https://example.com>.\n")
        assert text.plain_text == "Dummy0, Dummy1 and Dummy2.\n"

    def test_placeholders_unique(self):
        """No token repeats within one conversion"""
        text = annotate("`a` `b` `c` `d` `e`\n")
        tokens = text.plain_text.split()
        assert len(tokens) == len(set(tokens)) == 5

    def test_dropped_link_label(self):
        """Links can be dropped entirely"""
        assert annotate("See [this](x) now.\n", {"Link": "ignore"}).plain_text == "See  now.\n"

    def test_plain_text_autolink(self):
        """plainText shows the address of an autolink"""
        text = annotate("Visit <https://example.com>.\n", {"AutoLink": "plainText"})
        assert text.plain_text == "Visit https://example.com.\n"

    def test_literal_on_container_is_plain(self):
        """Containers have no content region and render as prose"""
        text = annotate("Some *emphasis*.\n", {"Emphasis": "default"})
        assert text.plain_text == "Some emphasis.\n"

    def test_custom_placeholder_settings(self):
        """Placeholder tokens come from the settings"""
        settings = AppSettings(placeholder_prefix="Token")
        builder = AnnotatedTextBuilder(settings=settings)
        text = builder.build(Parser("A `b`.\n").parse())
        assert text.plain_text == "A Token0.\n"


class TestPlaceholderSettings:
    """Test placeholder token helpers"""

    def test_make_and_extract(self):
        """Numbered tokens round-trip through their index"""
        settings = AppSettings()
        assert settings.placeHolder_make(7) == "Dummy7"
        assert settings.placeHolderIndex_extract("Dummy7") == 7
        assert settings.placeHolderIndex_extract("Ina2") == 2
        assert settings.placeHolderIndex_extract("Dummies") is None
