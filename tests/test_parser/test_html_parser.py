"""Tests for HTML tree construction."""

from guidelint.lexer import tokenize_html
from guidelint.model.html import CommentNode, Doctype, Element, QuoteStyle, TextNode
from guidelint.parser import ParseError, parse_html


def _parse(text):
    return parse_html(tokenize_html(text))


def _elements(document):
    return list(document.iter_elements())


# ---------------------------------------------------------------------------
# Tree shape
# ---------------------------------------------------------------------------


class TestTreeShape:
    def test_nested_elements(self):
        doc, errors = _parse("<div><p>Hi <b>there</b></p></div>")
        assert errors == []
        div = doc.children[0]
        assert isinstance(div, Element)
        p = div.children[0]
        assert p.tag_name == "p"
        assert [type(c) for c in p.children] == [TextNode, Element]
        assert p.children[1].text == "there"

    def test_tag_names_are_lowercased(self):
        doc, _ = _parse("<DIV></DIV>")
        div = doc.children[0]
        assert div.tag_name == "div"
        assert div.source_name == "DIV"
        assert div.end_tag is not None

    def test_void_elements_take_no_children(self):
        doc, errors = _parse("<p>a<br>b</p>")
        assert errors == []
        p = doc.children[0]
        assert [getattr(c, "tag_name", None) for c in p.children] == [None, "br", None]
        assert p.children[1].children == []

    def test_self_closing_flag(self):
        doc, _ = _parse("<br/><br>")
        assert [e.self_closing for e in _elements(doc)] == [True, False]

    def test_leaf_nodes(self):
        doc, errors = _parse("<!DOCTYPE html><!-- c --><![CDATA[x]]>")
        assert errors == []
        assert isinstance(doc.children[0], Doctype)
        assert isinstance(doc.children[1], CommentNode)
        cdata = doc.children[2]
        assert isinstance(cdata, TextNode)
        assert cdata.cdata
        assert cdata.text == "x"

    def test_raw_text_element(self):
        doc, errors = _parse("<script>if (a < b) {}</script>")
        assert errors == []
        script = doc.children[0]
        assert script.text == "if (a < b) {}"

    def test_element_span_covers_end_tag(self):
        doc, _ = _parse("<p>\n  x\n</p>")
        p = doc.children[0]
        assert p.span.start.offset == 0
        assert p.span.end.offset == len("<p>\n  x\n</p>")
        assert p.start_tag.end.offset == 3
        assert p.end_tag.start.line == 3

    def test_children_sit_inside_parents(self):
        doc, _ = _parse("<ul>\n  <li>One\n  <li><b>Two</b>\n</ul>\n<p>x")

        def walk(node):
            for child in getattr(node, "children", ()):
                assert node.span.contains(child.span)
                walk(child)

        for top in doc.children:
            walk(top)

    def test_find(self):
        doc, _ = _parse("<html><head><title>x</title></head></html>")
        assert doc.find("title").text == "x"
        assert doc.find("body") is None


# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------


class TestAttributes:
    def test_quote_styles(self):
        doc, _ = _parse("<input type=text disabled value='x' name=\"n\">")
        attrs = doc.children[0].attributes
        assert [(a.name, a.value, a.quote) for a in attrs] == [
            ("type", "text", QuoteStyle.UNQUOTED),
            ("disabled", None, QuoteStyle.NONE),
            ("value", "x", QuoteStyle.SINGLE),
            ("name", "n", QuoteStyle.DOUBLE),
        ]

    def test_value_span(self):
        doc, _ = _parse('<a href="x">y</a>')
        href = doc.children[0].get("href")
        assert href.value_span.start.offset == 8
        assert href.value_span.start.column == 9
        assert href.value_span.end.offset == 11

    def test_get_is_case_insensitive(self):
        doc, _ = _parse('<a HREF="x">y</a>')
        a = doc.children[0]
        assert a.get("href").name == "HREF"
        assert a.has("Href")
        assert not a.has("title")


# ---------------------------------------------------------------------------
# Implied end tags
# ---------------------------------------------------------------------------


class TestImpliedEndTags:
    def test_list_items_close_each_other(self):
        doc, errors = _parse("<ul>\n  <li>One\n  <li>Two\n</ul>")
        assert errors == []
        ul = doc.children[0]
        items = [c for c in ul.children if isinstance(c, Element)]
        assert [i.tag_name for i in items] == ["li", "li"]
        assert all(i.end_tag is None for i in items)

    def test_block_start_closes_paragraph(self):
        doc, errors = _parse("<p>One<div>Two</div>")
        assert errors == []
        assert [c.tag_name for c in doc.children] == ["p", "div"]

    def test_table_cells(self):
        doc, errors = _parse("<table><tr><td>a<td>b<tr><td>c</table>")
        assert errors == []
        table = doc.children[0]
        rows = [c for c in table.children if isinstance(c, Element)]
        assert [len(r.children) for r in rows] == [2, 1]

    def test_optional_end_at_eof_is_silent(self):
        _, errors = _parse("<p>text")
        assert errors == []

    def test_implicitly_closed_span_covers_last_child(self):
        doc, _ = _parse("<ul><li>One</ul>")
        li = doc.children[0].children[0]
        assert li.span.end.offset == len("<ul><li>One")


# ---------------------------------------------------------------------------
# Recovery
# ---------------------------------------------------------------------------


class TestRecovery:
    def test_unexpected_closing_tag(self):
        doc, errors = _parse("<p>x</span></p>")
        assert len(errors) == 1
        assert isinstance(errors[0], ParseError)
        assert "</span>" in errors[0].message
        assert doc.children[0].end_tag is not None

    def test_misnested_element(self):
        _, errors = _parse("<div><span></div>")
        assert len(errors) == 1
        assert "<span>" in errors[0].message
        assert errors[0].column == 6

    def test_unclosed_element_at_eof(self):
        _, errors = _parse("<div>\n<span>x</span>")
        assert len(errors) == 1
        assert "never closed" in errors[0].message
        assert errors[0].line == 1

    def test_unterminated_start_tag(self):
        doc, errors = _parse('<div class="a"\n<p>x</p></div>')
        assert any("not terminated" in e.message for e in errors)
        div = doc.children[0]
        assert div.tag_name == "div"
        assert div.children[0].tag_name == "p"

    def test_unknown_run_is_one_error(self):
        doc, errors = _parse("<!-- oops\n<p>x</p>")
        assert len(errors) == 1
        assert errors[0].span.start.offset == 0
        assert doc.find("p") is not None

    def test_malformed_attribute(self):
        _, errors = _parse("<a =x>y</a>")
        assert len(errors) == 1
        assert "Malformed attribute" in errors[0].message

    def test_empty_input(self):
        doc, errors = _parse("")
        assert doc.children == []
        assert errors == []
