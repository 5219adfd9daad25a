"""
Source attribution tests

Tests the attribution cascade from rendered elements back to markdown
lines, the whole-slide fallback and project loading.
"""

import pytest

from slidefit.lib.mapper import (
    SourceMapper,
    TagStrategy,
    tagStrategy_get,
    imageSource_find,
    slideRange_fallback,
)
from slidefit.lib.parser import Parser
from slidefit.models.errors import ProjectSourceNotFoundError
from slidefit.models.issues import (
    Bounds,
    ElementInfo,
    ElementOverflowDetails,
    ElementOverflowIssue,
)


SOURCE = "\n".join([
    "# Title Slide",                 # 1
    "",                              # 2
    "Intro with **bold** words.",    # 3
    "",                              # 4
    "---",                           # 5
    "",                              # 6
    "## Agenda",                     # 7
    "",                              # 8
    "- First **point**",             # 9
    "- Second point",                # 10
    "  that wraps",                  # 11
    "- Third",                       # 12
    "",                              # 13
    "---",                           # 14
    "",                              # 15
    "# Code",                        # 16
    "",                              # 17
    "```python",                     # 18
    'print("hi")',                   # 19
    "```",                           # 20
    "",                              # 21
    "![Arch](./img/arch.png)",       # 22
    "",                              # 23
    "### Details",                   # 24
    "",                              # 25
    "Some `inline code` here",       # 26
])


def issue_make(tag, text=None, src=None, class_name=None):
    frame = Bounds(0, 0, 980, 552)
    return ElementOverflowIssue(
        element=ElementInfo(tag=tag, selector=tag, class_name=class_name, text=text, src=src),
        details=ElementOverflowDetails(
            slide_bounds=frame,
            element_bounds=Bounds(0, 500, 980, 600),
            overflow=Bounds(0, 0, 0, 48),
        ),
    )


@pytest.fixture
def mapper():
    return SourceMapper.source_parse(SOURCE, "slides.md")


class TestTagStrategies:
    """Test the tag dispatch table"""

    def test_known_tags(self):
        assert tagStrategy_get("li") == TagStrategy.LIST_ITEM
        assert tagStrategy_get("strong") == TagStrategy.INLINE
        assert tagStrategy_get("H4") == TagStrategy.H3
        assert tagStrategy_get("pre") == TagStrategy.CODE_BLOCK

    def test_unknown_tag_is_generic(self):
        assert tagStrategy_get("section") == TagStrategy.GENERIC
        assert tagStrategy_get("div") == TagStrategy.GENERIC


class TestBlockConstructs:
    """Test headings, code blocks and images"""

    def test_h1_exact_line(self, mapper):
        """An h1 matching '# Title' attributes to exactly that line"""
        issue = mapper.sourceInfo_add(1, issue_make("h1", text="Title Slide"))

        assert issue.source is not None
        assert issue.source.line == 1
        assert issue.source.line_end == 1
        assert issue.source.content == "# Title Slide"
        assert issue.source.file == "slides.md"

    def test_h4_searches_h3(self, mapper):
        issue = mapper.sourceInfo_add(3, issue_make("h4", text="Details"))
        assert (issue.source.line, issue.source.line_end) == (24, 24)

    def test_pre_maps_to_code_block(self, mapper):
        issue = mapper.sourceInfo_add(3, issue_make("pre", text='print("hi")'))
        assert (issue.source.line, issue.source.line_end) == (18, 20)

    def test_img_maps_to_image_line(self, mapper):
        issue = mapper.sourceInfo_add(3, issue_make("img", src="http://localhost:3030/img/arch.png"))
        assert issue.source.line == 22

    def test_img_by_source_segment(self):
        """Images written as raw HTML are found by their file name"""
        mapper = SourceMapper.source_parse('# Logo\n\n<img src="/img/logo.svg" width="200">\n')
        issue = mapper.sourceInfo_add(1, issue_make("img", src="http://localhost:3030/img/logo.svg?v=2"))
        assert issue.source.line == 3


class TestElementFinders:
    """Test list item and paragraph finders"""

    def test_paragraph_with_emphasis(self, mapper):
        """Rendered text has no ** markers"""
        issue = mapper.sourceInfo_add(1, issue_make("p", text="Intro with bold words."))
        assert (issue.source.line, issue.source.line_end) == (3, 3)

    def test_list_item_with_emphasis(self, mapper):
        issue = mapper.sourceInfo_add(2, issue_make("li", text="First point"))
        assert (issue.source.line, issue.source.line_end) == (9, 9)

    def test_wrapped_list_item(self, mapper):
        """Continuation lines belong to the item"""
        issue = mapper.sourceInfo_add(2, issue_make("li", text="Second point that wraps"))
        assert (issue.source.line, issue.source.line_end) == (10, 11)

    def test_inline_code(self, mapper):
        issue = mapper.sourceInfo_add(3, issue_make("code", text="inline code"))
        assert issue.source.line == 26

    def test_generic_substring(self, mapper):
        issue = mapper.sourceInfo_add(2, issue_make("div", text="Third"))
        assert issue.source.line == 12


class TestFallback:
    """Attribution never fails once a source is loaded"""

    def test_unmatched_text_gets_slide_range(self, mapper):
        issue = mapper.sourceInfo_add(3, issue_make("div", text="nothing like this anywhere"))

        assert issue.source is not None
        assert (issue.source.line, issue.source.line_end) == (15, 26)
        assert issue.source.content == "\n# Code\n..."

    def test_no_text_gets_slide_range(self, mapper):
        issue = mapper.sourceInfo_add(2, issue_make("section"))
        assert (issue.source.line, issue.source.line_end) == (6, 13)

    def test_fallback_strategy_alone(self):
        slide = Parser().presentation_parse("# A\nB\nC\nD").slides[0]
        found = slideRange_fallback(Parser(), slide, ElementInfo(tag="div", selector="div"), TagStrategy.GENERIC)
        assert found.content == "# A\nB\nC..."

    def test_image_strategy_needs_src(self):
        slide = Parser().presentation_parse("# A").slides[0]
        element = ElementInfo(tag="img", selector="img")
        assert imageSource_find(Parser(), slide, element, TagStrategy.IMAGE) is None


class TestUnchangedIssues:
    """Issues pass through when attribution is impossible"""

    def test_out_of_range_slide(self, mapper):
        issue = issue_make("h1", text="Title Slide")
        assert mapper.sourceInfo_add(9, issue) is issue
        assert mapper.sourceInfo_add(0, issue) is issue

    def test_no_source_loaded(self):
        issue = issue_make("h1", text="Title Slide")
        assert SourceMapper().sourceInfo_add(1, issue) is issue

    def test_geometry_untouched(self, mapper):
        issue = issue_make("h1", text="Title Slide")
        enriched = mapper.sourceInfo_add(1, issue)

        assert enriched is not issue
        assert enriched.details == issue.details
        assert enriched.element == issue.element
        assert issue.source is None


class TestProjectLoad:
    """Test locating the markdown source in a project directory"""

    def test_first_candidate_wins(self, tmp_path):
        (tmp_path / "slides.md").write_text("# From slides\n")
        (tmp_path / "README.md").write_text("# From readme\n")

        mapper = SourceMapper.project_load(tmp_path)
        assert mapper.source_file == "slides.md"
        assert mapper.presentation.slides[0].content_nodes[0].text == "From slides"

    def test_later_candidate(self, tmp_path):
        (tmp_path / "index.md").write_text("# Index\n")
        mapper = SourceMapper.project_load(tmp_path, candidates=["slides.md", "index.md"])
        assert mapper.source_file == "index.md"

    def test_missing_source(self, tmp_path):
        with pytest.raises(ProjectSourceNotFoundError) as excinfo:
            SourceMapper.project_load(tmp_path, candidates=["slides.md", "index.md"])
        assert "slides.md, index.md" in str(excinfo.value)
