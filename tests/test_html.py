"""Tests for attribute and tag serialisation."""

from markupsafe import Markup

from formbuilder.html import attr_name, merge_attrs, render_attrs, tag


class TestAttrName:
    def test_strips_trailing_underscore(self):
        assert attr_name("class_") == "class"

    def test_converts_underscores_to_hyphens(self):
        assert attr_name("data_foo") == "data-foo"


class TestMergeAttrs:
    def test_option_keys_kept_verbatim(self):
        assert merge_attrs({"data_raw": "x"}, {}) == {"data_raw": "x"}

    def test_keyword_attrs_converted_and_override(self):
        merged = merge_attrs({"class": "a"}, {"class_": "b", "aria_label": "c"})
        assert merged == {"class": "b", "aria-label": "c"}

    def test_none_options(self):
        assert merge_attrs(None, {}) == {}


class TestRenderAttrs:
    def test_empty(self):
        assert render_attrs({}) == ""

    def test_renders_in_order(self):
        assert render_attrs({"id": "x", "class": "y"}) == ' id="x" class="y"'

    def test_true_is_bare_attribute(self):
        assert render_attrs({"required": True}) == " required"

    def test_false_and_none_are_omitted(self):
        assert render_attrs({"disabled": False, "title": None}) == ""

    def test_numbers_are_stringified(self):
        assert render_attrs({"maxlength": 10}) == ' maxlength="10"'

    def test_values_are_escaped(self):
        html = render_attrs({"title": "\"quoted\" & <b>'s"})
        assert html == ' title="&#34;quoted&#34; &amp; &lt;b&gt;&#39;s"'

    def test_exclude(self):
        assert render_attrs({"for": "a", "id": "b"}, exclude=("for",)) == ' id="b"'


class TestTag:
    def test_void_tag(self):
        html = tag("input", {"type": "text"}, void=True)
        assert isinstance(html, Markup)
        assert html == '<input type="text">'

    def test_content_tag(self):
        assert tag("label", {"for": "x"}, "X") == '<label for="x">X</label>'

    def test_empty_content(self):
        assert tag("textarea", {"name": "bio"}) == '<textarea name="bio"></textarea>'
