"""
Live overflow detector tests

The page is replaced by a fake that returns recorded census and snapshot
payloads, so the detection rules run without a browser.
"""

import pytest

from slidefit.lib.detector import (
    OverflowDetector,
    activeSlide_resolve,
    element_isVisible,
    elementOverflow_detect,
    scrollbar_detect,
    selector_derive,
    textOverflow_detect,
)
from slidefit.lib.inspection import ELEMENT_SNAPSHOT_SCRIPT, SLIDE_CENSUS_SCRIPT
from slidefit.models.errors import ActiveSlideNotFoundError
from slidefit.models.issues import DetectionConfig, IssueType, ScrollbarType


FRAME = {"left": 0, "top": 0, "right": 980, "bottom": 552, "width": 980, "height": 552}


def record_make(**overrides):
    """An element record as returned by the snapshot script"""
    record = {
        "tag": "div",
        "className": "",
        "id": "",
        "text": "",
        "src": "",
        "excluded": False,
        "overflow": "visible",
        "overflowX": "visible",
        "overflowY": "visible",
        "textOverflow": "clip",
        "display": "block",
        "visibility": "visible",
        "opacity": "1",
        "hiddenMarker": False,
        "ancestors": [],
        "clientWidth": 200,
        "clientHeight": 100,
        "scrollWidth": 200,
        "scrollHeight": 100,
        "rect": {"left": 10, "top": 10, "right": 210, "bottom": 110, "width": 200, "height": 100},
        "hasDirectText": False,
        "textRect": None,
    }
    record.update(overrides)
    return record


def snapshot_make(*records):
    return {"frame": dict(FRAME), "invalidSelectors": [], "elements": list(records)}


def census_make(*slides, pathname="/", hash=""):
    return {"slides": list(slides), "pathname": pathname, "hash": hash}


def slide_entry(index, page_number=None, active=False, width=980, height=552):
    return {
        "index": index,
        "pageNumber": page_number if page_number is not None else index + 1,
        "active": active,
        "width": width,
        "height": height,
    }


class FakePage:
    """Answers the two inspection scripts from canned payloads"""

    def __init__(self, census, snapshots):
        self.census = census
        self.snapshots = list(snapshots)
        self.snapshot_args = []

    def evaluate(self, script, arg=None):
        if script == SLIDE_CENSUS_SCRIPT:
            return self.census
        assert script == ELEMENT_SNAPSHOT_SCRIPT
        self.snapshot_args.append(arg)
        if len(self.snapshots) > 1:
            return self.snapshots.pop(0)
        return self.snapshots[0]


class TestActiveSlideResolution:
    """Test the resolver fallback chain"""

    def test_active_marker_wins(self):
        census = census_make(slide_entry(0), slide_entry(1, active=True), pathname="/1")
        assert activeSlide_resolve(census) == 1

    def test_path_number(self):
        census = census_make(slide_entry(0), slide_entry(1), slide_entry(2), pathname="/3")
        assert activeSlide_resolve(census) == 2

    def test_hash_number(self):
        census = census_make(slide_entry(0), slide_entry(1), pathname="", hash="#2")
        assert activeSlide_resolve(census) == 1

    def test_first_rendered(self):
        census = census_make(
            slide_entry(0, width=0, height=0),
            slide_entry(1),
            pathname="/presenter",
        )
        assert activeSlide_resolve(census) == 1

    def test_first_in_document_order(self):
        census = census_make(
            slide_entry(0, width=0, height=0),
            slide_entry(1, width=0, height=0),
            pathname="/",
        )
        assert activeSlide_resolve(census) == 0

    def test_no_slide_pages(self):
        with pytest.raises(ActiveSlideNotFoundError):
            activeSlide_resolve(census_make())


class TestTextOverflow:
    """Test clipped content and text spilling past the frame"""

    def test_clipped_box_reports_excess(self):
        """overflow:hidden, scroll 300 vs client 200 is 100px horizontal"""
        record = record_make(overflow="hidden", overflowX="hidden", scrollWidth=300)
        issues = textOverflow_detect(snapshot_make(record), threshold=1)

        assert len(issues) == 1
        details = issues[0].details
        assert issues[0].type == IssueType.TEXT_OVERFLOW
        assert details.overflow_x == 100
        assert details.overflow_y == 0
        assert (details.container_width, details.content_width) == (200, 300)

    def test_ellipsis_counts_as_clipping(self):
        record = record_make(textOverflow="ellipsis", scrollWidth=260)
        assert len(textOverflow_detect(snapshot_make(record), threshold=1)) == 1

    def test_threshold_must_be_exceeded(self):
        record = record_make(overflowY="clip", scrollHeight=102)
        assert textOverflow_detect(snapshot_make(record), threshold=2) == []
        assert len(textOverflow_detect(snapshot_make(record), threshold=1.5)) == 1

    def test_unclipped_scroll_excess_ignored(self):
        """Without clipping, scroll metrics alone never report"""
        record = record_make(scrollWidth=900)
        assert textOverflow_detect(snapshot_make(record), threshold=1) == []

    def test_direct_text_past_frame(self):
        text_rect = {"left": 900, "top": 500, "right": 1020, "bottom": 560, "width": 120, "height": 60}
        record = record_make(tag="p", text="long line", hasDirectText=True, textRect=text_rect)
        issues = textOverflow_detect(snapshot_make(record), threshold=1)

        assert len(issues) == 1
        assert issues[0].details.overflow_x == 40
        assert issues[0].details.overflow_y == 8
        assert issues[0].details.container_width == 980


class TestElementOverflow:
    """Test frame boundary crossing"""

    def test_all_four_directions(self):
        """10px past every edge is reported in every direction"""
        rect = {"left": -10, "top": -10, "right": 990, "bottom": 562, "width": 1000, "height": 572}
        issues = elementOverflow_detect(snapshot_make(record_make(rect=rect)), threshold=1)

        assert len(issues) == 1
        overflow = issues[0].details.overflow
        assert (overflow.left, overflow.top, overflow.right, overflow.bottom) == (10, 10, 10, 10)
        assert issues[0].details.slide_bounds.width == 980

    def test_overflow_clamped_at_zero(self):
        rect = {"left": 10, "top": 500, "right": 110, "bottom": 600, "width": 100, "height": 100}
        issues = elementOverflow_detect(snapshot_make(record_make(rect=rect)), threshold=1)

        overflow = issues[0].details.overflow
        assert (overflow.left, overflow.top, overflow.right, overflow.bottom) == (0, 0, 0, 48)

    def test_inside_frame(self):
        assert elementOverflow_detect(snapshot_make(record_make()), threshold=1) == []

    def test_zero_size_skipped(self):
        rect = {"left": 2000, "top": 2000, "right": 2000, "bottom": 2000, "width": 0, "height": 0}
        assert elementOverflow_detect(snapshot_make(record_make(rect=rect)), threshold=1) == []

    @pytest.mark.parametrize("overrides", [
        {"display": "none"},
        {"visibility": "hidden"},
        {"opacity": "0"},
        {"hiddenMarker": True},
        {"ancestors": [{"opacity": "1", "visibility": "visible"}, {"opacity": "0", "visibility": "visible"}]},
    ])
    def test_invisible_skipped(self, overrides):
        rect = {"left": 0, "top": 500, "right": 100, "bottom": 700, "width": 100, "height": 200}
        record = record_make(rect=rect, **overrides)

        assert element_isVisible(record) is False
        assert elementOverflow_detect(snapshot_make(record), threshold=1) == []

    def test_excluded_never_reported(self):
        rect = {"left": 0, "top": 500, "right": 100, "bottom": 700, "width": 100, "height": 200}
        record = record_make(rect=rect, excluded=True, overflow="hidden", scrollHeight=400, overflowY="auto")
        snapshot = snapshot_make(record)

        assert elementOverflow_detect(snapshot, threshold=1) == []
        assert textOverflow_detect(snapshot, threshold=1) == []
        assert scrollbar_detect(snapshot) == []


class TestScrollbar:
    """Test scrollable containers"""

    def test_vertical(self):
        record = record_make(overflowY="auto", scrollHeight=130)
        issues = scrollbar_detect(snapshot_make(record))

        assert len(issues) == 1
        assert issues[0].details.scrollbar_type == ScrollbarType.VERTICAL
        assert issues[0].details.overflow == 30

    def test_horizontal(self):
        record = record_make(overflowX="scroll", scrollWidth=205)
        issues = scrollbar_detect(snapshot_make(record))
        assert issues[0].details.scrollbar_type == ScrollbarType.HORIZONTAL
        assert issues[0].details.overflow == 5

    def test_both_uses_larger_excess(self):
        record = record_make(overflowX="auto", overflowY="auto", scrollWidth=260, scrollHeight=120)
        issues = scrollbar_detect(snapshot_make(record))

        assert issues[0].details.scrollbar_type == ScrollbarType.BOTH
        assert issues[0].details.overflow == 60

    def test_no_threshold(self):
        """A single pixel of excess is a visible scrollbar"""
        record = record_make(overflowY="auto", scrollHeight=101)
        assert len(scrollbar_detect(snapshot_make(record))) == 1

    def test_hidden_overflow_has_no_scrollbar(self):
        record = record_make(overflowY="hidden", scrollHeight=300)
        assert scrollbar_detect(snapshot_make(record)) == []


class TestElementDescriptor:
    """Test selector and descriptor derivation"""

    def test_selector(self):
        assert selector_derive("h1", "title", "big bold") == "h1#title"
        assert selector_derive("div", "", "  grid  gap-4 ") == "div.grid.gap-4"
        assert selector_derive("p", None, None) == "p"

    def test_src_only_for_images(self):
        rect = {"left": 0, "top": 500, "right": 100, "bottom": 700, "width": 100, "height": 200}
        image = record_make(tag="img", src="http://localhost/a.png", rect=rect)
        frame = record_make(tag="iframe", src="http://localhost/embed", rect=rect)
        issues = elementOverflow_detect(snapshot_make(image, frame), threshold=1)

        assert issues[0].element.src == "http://localhost/a.png"
        assert issues[1].element.src is None


class TestOverflowDetector:
    """Test the detector against a fake page"""

    def test_order_and_switches(self):
        rect = {"left": 0, "top": 500, "right": 100, "bottom": 700, "width": 100, "height": 200}
        clipped = record_make(overflow="hidden", scrollWidth=300)
        crossing = record_make(rect=rect)
        scrolling = record_make(overflowY="auto", scrollHeight=150)
        page = FakePage(census_make(slide_entry(0, active=True)), [snapshot_make(scrolling, crossing, clipped)])

        issues = OverflowDetector(page, DetectionConfig(exclude=[])).issues_detect()
        assert [i.type for i in issues] == [
            IssueType.TEXT_OVERFLOW,
            IssueType.ELEMENT_OVERFLOW,
            IssueType.SCROLLBAR,
        ]

        only_scroll = DetectionConfig(text_overflow=False, element_overflow=False)
        issues = OverflowDetector(page, only_scroll).issues_detect()
        assert [i.type for i in issues] == [IssueType.SCROLLBAR]

    def test_snapshot_arguments(self):
        page = FakePage(census_make(slide_entry(0), slide_entry(1), pathname="/2"), [snapshot_make()])
        OverflowDetector(page, DetectionConfig(exclude=[".footer"])).issues_detect()

        arg = page.snapshot_args[0]
        assert arg["slideIndex"] == 1
        assert arg["exclude"] == [".footer"]
        assert arg["previewLength"] == 50

    def test_vanished_slide_retakes_census(self):
        page = FakePage(census_make(slide_entry(0)), [None, snapshot_make()])
        assert OverflowDetector(page, DetectionConfig()).issues_detect() == []
        assert len(page.snapshot_args) == 2

    def test_vanished_twice_raises(self):
        page = FakePage(census_make(slide_entry(0)), [None])
        with pytest.raises(ActiveSlideNotFoundError):
            OverflowDetector(page, DetectionConfig()).issues_detect()

    def test_empty_page_raises(self):
        page = FakePage(census_make(), [snapshot_make()])
        with pytest.raises(ActiveSlideNotFoundError):
            OverflowDetector(page, DetectionConfig()).issues_detect()

    def test_fresh_issues_per_call(self):
        page = FakePage(census_make(slide_entry(0)), [snapshot_make(record_make(overflow="clip", scrollHeight=300))])
        detector = OverflowDetector(page, DetectionConfig())

        first = detector.issues_detect()
        second = detector.issues_detect()
        assert first == second
        assert first is not second
