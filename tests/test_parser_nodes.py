"""
Content node extraction tests

Tests each block construct, nesting, line tracking and slide metrics.
"""

from slidefit.lib.parser import Parser, text_normalize
from slidefit.models.presentation import NodeType


def nodes_of(source):
    parsed = Parser().presentation_parse(source)
    assert len(parsed.slides) == 1
    return parsed.slides[0].content_nodes


class TestHeadings:
    """Test heading nodes"""

    def test_levels(self):
        nodes = nodes_of("# Title\n## Agenda\n###### Tiny")

        assert [n.type for n in nodes] == [NodeType.HEADING] * 3
        assert [n.level for n in nodes] == [1, 2, 6]
        assert nodes[1].text == "Agenda"
        assert nodes[1].char_count == 6
        assert nodes[1].line_start == nodes[1].line_end == 2

    def test_hash_without_space_is_not_heading(self):
        """'#tag' is neither a heading nor a paragraph start"""
        nodes = nodes_of("#hashtag\nplain")
        assert [n.type for n in nodes] == [NodeType.PARAGRAPH]
        assert nodes[0].line_start == 2


class TestCodeBlocks:
    """Test fenced code blocks"""

    def test_closed_fence(self):
        nodes = nodes_of("```python\ndef f():\n    return 1\n```\nAfter")

        code = nodes[0]
        assert code.type == NodeType.CODE_BLOCK
        assert (code.line_start, code.line_end) == (1, 4)
        assert code.text == "def f():\n    return 1"
        assert code.metadata == {"language": "python", "lineCount": 2, "closed": True}
        assert nodes[1].type == NodeType.PARAGRAPH
        assert nodes[1].line_start == 5

    def test_unterminated_fence(self):
        """One warning naming the opening line, node spans to end of slide"""
        source = "# Code\n\n```python\ndef f():\n    return 1"
        parsed = Parser().presentation_parse(source)

        code = parsed.slides[0].content_nodes[1]
        assert code.type == NodeType.CODE_BLOCK
        assert code.line_start == 3
        assert code.line_end == parsed.slides[0].line_end == 5
        assert code.metadata["closed"] is False
        assert parsed.warnings == ["Unclosed code block at line 3"]

    def test_unterminated_fence_stops_at_slide_end(self):
        """The implicit close never runs into the next slide"""
        source = "# Code\n```js\nlet x = 1\n\n---\n\n# Next"
        parsed = Parser().presentation_parse(source)

        assert len(parsed.slides) == 2
        code = parsed.slides[0].content_nodes[1]
        assert (code.line_start, code.line_end) == (2, 4)
        assert parsed.warnings == ["Unclosed code block at line 2"]
        assert parsed.slides[1].content_nodes[0].text == "Next"

    def test_fence_without_language(self):
        nodes = nodes_of("```\nraw\n```")
        assert nodes[0].metadata["language"] == ""


class TestLists:
    """Test ordered and unordered lists"""

    SOURCE = "- one\n- two\n  - nested a\n  - nested b\n\n- three\n\n\n- separate"

    def test_single_blank_line_tolerated(self):
        nodes = nodes_of(self.SOURCE)

        assert [n.type for n in nodes] == [NodeType.LIST, NodeType.LIST]
        assert (nodes[0].line_start, nodes[0].line_end) == (1, 6)

    def test_two_blank_lines_terminate(self):
        nodes = nodes_of(self.SOURCE)
        assert (nodes[1].line_start, nodes[1].line_end) == (9, 9)

    def test_metadata(self):
        first = nodes_of(self.SOURCE)[0]

        assert first.metadata["ordered"] is False
        assert first.metadata["itemCount"] == 5
        assert first.metadata["maxDepth"] == 1
        assert first.text == "one\ntwo\nnested a\nnested b\nthree"

    def test_nested_children(self):
        first = nodes_of(self.SOURCE)[0]

        assert len(first.children) == 1
        child = first.children[0]
        assert child.type == NodeType.LIST
        assert (child.line_start, child.line_end) == (3, 4)
        assert child.metadata["itemCount"] == 2
        assert child.metadata["maxDepth"] == 1

    def test_ordered(self):
        nodes = nodes_of("1. First\n2. Second\n   continued")

        assert len(nodes) == 1
        assert nodes[0].metadata["ordered"] is True
        assert nodes[0].metadata["itemCount"] == 2
        assert nodes[0].line_end == 3
        assert nodes[0].children == []

    def test_depth_from_indent(self):
        nodes = nodes_of("- a\n  - b\n    - c\n      - d")
        assert nodes[0].metadata["maxDepth"] == 3
        assert nodes[0].children[0].children[0].children[0].text == "d"


class TestTablesAndImages:
    """Test pipe tables and images"""

    def test_table_counts(self):
        nodes = nodes_of("| Name | Value |\n|------|-------|\n| a    | 1     |\n| b    | 2     |")

        table = nodes[0]
        assert table.type == NodeType.TABLE
        assert table.metadata == {"columns": 2, "rows": 2}
        assert (table.line_start, table.line_end) == (1, 4)

    def test_header_only_table(self):
        """Rows never go below zero"""
        nodes = nodes_of("| A | B | C |\n|---|:-:|---|")
        assert nodes[0].metadata == {"columns": 3, "rows": 0}

    def test_image(self):
        nodes = nodes_of('Intro\n\n![Diagram](./images/arch.png "Architecture")')

        image = nodes[1]
        assert image.type == NodeType.IMAGE
        assert image.metadata == {"alt": "Diagram", "src": "./images/arch.png"}
        assert image.line_start == 3
        assert image.text is None


class TestBlockquotes:
    """Test quotes and nested quotes"""

    def test_nested_quote(self):
        nodes = nodes_of("> outer\n> > inner\n>\n> back")

        quote = nodes[0]
        assert quote.type == NodeType.BLOCKQUOTE
        assert quote.metadata["depth"] == 2
        assert quote.text == "outer inner back"
        assert (quote.line_start, quote.line_end) == (1, 4)
        assert len(quote.children) == 1
        assert quote.children[0].line_start == 2
        assert quote.children[0].metadata["depth"] == 2

    def test_blank_line_tolerance(self):
        nodes = nodes_of("> one\n\n> two\n\n\n> three")

        assert len(nodes) == 2
        assert (nodes[0].line_start, nodes[0].line_end) == (1, 3)
        assert nodes[1].line_start == 6

    def test_two_blank_lines_terminate(self):
        nodes = nodes_of("> quoted\n\n\n> later")

        assert [n.type for n in nodes] == [NodeType.BLOCKQUOTE, NodeType.BLOCKQUOTE]
        assert (nodes[0].line_start, nodes[0].line_end) == (1, 1)
        assert nodes[0].text == "quoted"
        assert (nodes[1].line_start, nodes[1].line_end) == (4, 4)

    def test_spaced_markers(self):
        assert nodes_of(">  >   deep")[0].metadata["depth"] == 2


class TestComponentsAndMarkers:
    """Test click components, slot separators and comments"""

    def test_click_components(self):
        nodes = nodes_of("<v-click>\n\nRevealed text\n\n</v-click>\n\n::right::")

        assert [n.type for n in nodes] == [
            NodeType.COMPONENT,
            NodeType.PARAGRAPH,
            NodeType.COMPONENT,
            NodeType.SLOT_SEPARATOR,
        ]
        assert nodes[0].metadata == {"component": "v-click", "closing": False}
        assert nodes[2].metadata == {"component": "v-click", "closing": True}
        assert nodes[3].metadata == {"slotName": "right"}

    def test_v_clicks(self):
        nodes = nodes_of("<v-clicks depth=\"2\">\n\n- a\n- b\n\n</v-clicks>")
        assert nodes[0].metadata["component"] == "v-clicks"
        assert nodes[1].type == NodeType.LIST

    def test_multiline_comment_skipped(self):
        nodes = nodes_of("<!--\nspeaker notes\n-->\nVisible")

        assert len(nodes) == 1
        assert nodes[0].text == "Visible"
        assert nodes[0].line_start == 4

    def test_single_line_comment_skipped(self):
        nodes = nodes_of("<!-- note -->\nVisible")
        assert [n.text for n in nodes] == ["Visible"]

    def test_raw_html_skipped(self):
        nodes = nodes_of("<div class=\"grid\">\nInside\n</div>")
        assert [n.text for n in nodes] == ["Inside"]


class TestParagraphs:
    """Test paragraph accumulation"""

    def test_multi_line_paragraph(self):
        nodes = nodes_of("First line\nsecond line\n# Heading")

        assert nodes[0].type == NodeType.PARAGRAPH
        assert nodes[0].text == "First line second line"
        assert (nodes[0].line_start, nodes[0].line_end) == (1, 2)
        assert nodes[1].type == NodeType.HEADING

    def test_paragraph_stops_at_list(self):
        nodes = nodes_of("Lead in\n- item")
        assert [n.type for n in nodes] == [NodeType.PARAGRAPH, NodeType.LIST]


class TestMetricsAndInvariants:
    """Metrics come from nodes; nodes stay inside their slide"""

    def test_metrics(self):
        parsed = Parser().presentation_parse("# Title\n\nSome words here\n\n- a\n- b")
        metrics = parsed.slides[0].metrics

        assert metrics.element_counts.headings == 1
        assert metrics.element_counts.lists == 1
        assert metrics.element_counts.code_blocks == 0
        assert metrics.word_count == 6
        assert metrics.total_characters == len("Title") + len("Some words here") + len("a\nb")

    def test_nodes_within_slide_range(self):
        source = (
            "---\ntheme: default\n---\n\n# One\n\n- a\n  - b\n\n```\ncode\n```\n\n"
            "---\nlayout: two-cols\n---\n\n# Two\n\n> quote\n\n| a | b |\n|---|---|\n| 1 | 2 |\n\n"
            "::right::\n\n![x](y.png)\n"
        )
        parsed = Parser().presentation_parse(source)

        assert len(parsed.slides) == 2
        for slide in parsed.slides:
            assert slide.content_nodes
            for node in slide.content_nodes:
                assert slide.line_start <= node.line_start <= node.line_end <= slide.line_end
                assert node.slide_index == slide.index


class TestTextNormalize:
    """Test emphasis-tolerant text comparison"""

    def test_strips_markup(self):
        assert text_normalize("Use **bold**, _em_ and `code`") == "Use bold, em and code"
        assert text_normalize("See [the docs](https://x.io) now") == "See the docs now"
        assert text_normalize("  spaced \n  out ") == "spaced out"
        assert text_normalize("~~gone~~ <b>tag</b>") == "gone tag"
