"""
Live overflow detector

Inspects the active slide of a rendered presentation for three
independent classes of overflow:

    text-overflow     content clipped inside its own box, or direct text
                      spilling past the visible slide frame
    element-overflow  a visible element's box crossing the frame edges
    scrollbar         a scrollable container whose content exceeds it

The page is only ever asked for two structured payloads (see
``inspection``): a census of the slide pages and a snapshot of the active
slide's elements. Everything else (active slide resolution, visibility,
clipping and threshold rules) is plain Python over those payloads, so the
detectors can be exercised with recorded data.

Example:
    >>> detector = OverflowDetector(page, DetectionConfig(threshold=1))
    >>> for issue in detector.issues_detect():
    ...     print(issue.type.value, issue.element.selector)
"""

import re
from typing import Any, Callable, Dict, List, Optional, Set

from ..models.errors import ActiveSlideNotFoundError
from ..models.issues import (
    Bounds,
    DetectionConfig,
    ElementInfo,
    ElementOverflowDetails,
    ElementOverflowIssue,
    Issue,
    ScrollbarDetails,
    ScrollbarIssue,
    ScrollbarType,
    TextOverflowDetails,
    TextOverflowIssue,
)
from .inspection import ELEMENT_SNAPSHOT_SCRIPT, SLIDE_CENSUS_SCRIPT
from .log import LOG, WARN


CLIPPING_VALUES = ("hidden", "clip")
SCROLLING_VALUES = ("scroll", "auto")

PATH_NUMBER_RE = re.compile(r"/(\d+)")
HASH_NUMBER_RE = re.compile(r"#?(\d+)")

Census = Dict[str, Any]
Snapshot = Dict[str, Any]
Record = Dict[str, Any]


# ----------------------------------------------------------------------
# Active slide resolution
# ----------------------------------------------------------------------

def activeMarker_resolve(census: Census) -> Optional[int]:
    """Slide carrying the explicit active marker"""
    for slide in census.get("slides", []):
        if slide.get("active"):
            return slide["index"]
    return None


def addressNumber_resolve(census: Census) -> Optional[int]:
    """Slide whose page number appears in the address path (/N) or hash (#N)"""
    match = PATH_NUMBER_RE.search(census.get("pathname") or "")
    if match is None:
        match = HASH_NUMBER_RE.search(census.get("hash") or "")
    if match is None:
        return None

    number = int(match.group(1))
    for slide in census.get("slides", []):
        if slide.get("pageNumber") == number:
            return slide["index"]
    return None


def renderedSize_resolve(census: Census) -> Optional[int]:
    """First slide with a non-zero rendered size"""
    for slide in census.get("slides", []):
        if slide.get("width", 0) > 0 and slide.get("height", 0) > 0:
            return slide["index"]
    return None


def documentOrder_resolve(census: Census) -> Optional[int]:
    slides = census.get("slides", [])
    if slides:
        return slides[0]["index"]
    return None


ACTIVE_SLIDE_RESOLVERS: List[Callable[[Census], Optional[int]]] = [
    activeMarker_resolve,
    addressNumber_resolve,
    renderedSize_resolve,
    documentOrder_resolve,
]


def activeSlide_resolve(census: Census) -> int:
    """
    Resolve the active slide from a census.

    Different navigation paths leave different state behind, so the
    resolvers are tried in order: explicit active marker, number from the
    address, first slide with a rendered size, first slide.

    Args:
        census: Payload of SLIDE_CENSUS_SCRIPT

    Returns:
        Document-order index of the active slide page

    Raises:
        ActiveSlideNotFoundError: If every resolver fails (no slide pages)
    """
    for resolve in ACTIVE_SLIDE_RESOLVERS:
        index = resolve(census)
        if index is not None:
            LOG(f"Active slide {index} resolved by {resolve.__name__}", level=3)
            return index
    raise ActiveSlideNotFoundError(
        f"No slide page found (address {census.get('pathname', '')}{census.get('hash', '')})"
    )


# ----------------------------------------------------------------------
# Element rules
# ----------------------------------------------------------------------

def selector_derive(tag: str, element_id: Optional[str], class_name: Optional[str]) -> str:
    """
    Derive a readable selector for an element.

    Args:
        tag: Lower-case tag name
        element_id: Element id, may be empty
        class_name: Raw class attribute, may be empty

    Returns:
        tag#id when the element has an id, else tag.class1.class2...,
        else the bare tag

    Example:
        >>> selector_derive("div", "", "  grid  gap-4 ")
        'div.grid.gap-4'
    """
    if element_id:
        return f"{tag}#{element_id}"
    classes = (class_name or "").split()
    if classes:
        return tag + "." + ".".join(classes)
    return tag


def elementInfo_build(record: Record) -> ElementInfo:
    tag = record.get("tag", "")
    return ElementInfo(
        tag=tag,
        selector=selector_derive(tag, record.get("id"), record.get("className")),
        class_name=record.get("className") or None,
        id=record.get("id") or None,
        text=record.get("text") or None,
        src=(record.get("src") or None) if tag == "img" else None,
    )


def opacity_isZero(value: Any) -> bool:
    try:
        return float(value) == 0
    except (TypeError, ValueError):
        return False


def element_isVisible(record: Record) -> bool:
    """
    Whether an element is actually shown

    Rejects display:none, visibility:hidden, opacity 0, click-reveal
    content not yet revealed, and elements under an invisible ancestor
    within the inspected ancestor depth.
    """
    if record.get("display") == "none":
        return False
    if record.get("visibility") == "hidden":
        return False
    if opacity_isZero(record.get("opacity")):
        return False
    if record.get("hiddenMarker"):
        return False
    for ancestor in record.get("ancestors", []):
        if opacity_isZero(ancestor.get("opacity")) or ancestor.get("visibility") == "hidden":
            return False
    return True


def clipping_is(record: Record) -> bool:
    """Computed style clips overflowing content on either axis"""
    for key in ("overflow", "overflowX", "overflowY"):
        if record.get(key) in CLIPPING_VALUES:
            return True
    return record.get("textOverflow") == "ellipsis"


def bounds_fromRect(rect: Dict[str, float]) -> Bounds:
    return Bounds(left=rect["left"], top=rect["top"], right=rect["right"], bottom=rect["bottom"])


def measured_elements(snapshot: Snapshot) -> List[Record]:
    """Snapshot records that were measured; excluded elements never are"""
    return [record for record in snapshot.get("elements", []) if not record.get("excluded")]


# ----------------------------------------------------------------------
# Detectors
# ----------------------------------------------------------------------

def textOverflow_detect(snapshot: Snapshot, threshold: float) -> List[TextOverflowIssue]:
    """
    Detect clipped content and text spilling past the slide frame.

    A clipping element overflows by max(0, scroll size - client size) per
    axis. A non-clipping element with direct text is compared by its
    rendered text extent against the frame's right and bottom edges,
    since its scroll metrics register nothing.

    Args:
        snapshot: Payload of ELEMENT_SNAPSHOT_SCRIPT
        threshold: Overflow in px that must be exceeded on either axis

    Returns:
        One issue per element over threshold, in document order
    """
    frame = snapshot.get("frame")
    issues: List[TextOverflowIssue] = []

    for record in measured_elements(snapshot):
        container_width = record.get("clientWidth", 0)
        container_height = record.get("clientHeight", 0)
        content_width = record.get("scrollWidth", 0)
        content_height = record.get("scrollHeight", 0)
        overflow_x = 0.0
        overflow_y = 0.0

        if clipping_is(record):
            overflow_x = max(0, content_width - container_width)
            overflow_y = max(0, content_height - container_height)
        elif record.get("hasDirectText") and record.get("textRect") and frame:
            text_rect = record["textRect"]
            overflow_x = max(0, text_rect["right"] - frame["right"])
            overflow_y = max(0, text_rect["bottom"] - frame["bottom"])
            container_width = frame["width"]
            container_height = frame["height"]
            content_width = text_rect["width"]
            content_height = text_rect["height"]

        if overflow_x > threshold or overflow_y > threshold:
            issues.append(TextOverflowIssue(
                element=elementInfo_build(record),
                details=TextOverflowDetails(
                    container_width=container_width,
                    container_height=container_height,
                    content_width=content_width,
                    content_height=content_height,
                    overflow_x=overflow_x,
                    overflow_y=overflow_y,
                ),
            ))

    return issues


def elementOverflow_detect(snapshot: Snapshot, threshold: float) -> List[ElementOverflowIssue]:
    """
    Detect visible elements whose box crosses the slide frame.

    Hidden elements and elements with a 0x0 rect are skipped. Overflow
    past each edge is clamped at 0; an issue records all four directions
    when any one exceeds the threshold.

    Args:
        snapshot: Payload of ELEMENT_SNAPSHOT_SCRIPT
        threshold: Overflow in px that must be exceeded in some direction

    Returns:
        One issue per offending element, in document order
    """
    frame = snapshot.get("frame")
    if not frame:
        return []

    slide_bounds = bounds_fromRect(frame)
    issues: List[ElementOverflowIssue] = []

    for record in measured_elements(snapshot):
        if not element_isVisible(record):
            continue
        rect = record.get("rect")
        if not rect or (rect["width"] == 0 and rect["height"] == 0):
            continue

        overflow = Bounds(
            left=max(0, slide_bounds.left - rect["left"]),
            top=max(0, slide_bounds.top - rect["top"]),
            right=max(0, rect["right"] - slide_bounds.right),
            bottom=max(0, rect["bottom"] - slide_bounds.bottom),
        )
        if max(overflow.left, overflow.top, overflow.right, overflow.bottom) > threshold:
            issues.append(ElementOverflowIssue(
                element=elementInfo_build(record),
                details=ElementOverflowDetails(
                    slide_bounds=slide_bounds,
                    element_bounds=bounds_fromRect(rect),
                    overflow=overflow,
                ),
            ))

    return issues


def scrollbar_detect(snapshot: Snapshot) -> List[ScrollbarIssue]:
    """
    Detect scrollable containers showing a scrollbar.

    An axis shows a scrollbar when its content exceeds the client size
    and its computed overflow is scroll or auto. Any excess counts; no
    threshold applies.

    Returns:
        One issue per container; overflow is the excess on the reported
        axis, or the larger excess for "both"
    """
    issues: List[ScrollbarIssue] = []

    for record in measured_elements(snapshot):
        client_width = record.get("clientWidth", 0)
        client_height = record.get("clientHeight", 0)
        scroll_width = record.get("scrollWidth", 0)
        scroll_height = record.get("scrollHeight", 0)

        vertical = scroll_height > client_height and record.get("overflowY") in SCROLLING_VALUES
        horizontal = scroll_width > client_width and record.get("overflowX") in SCROLLING_VALUES
        if not (vertical or horizontal):
            continue

        excess_y = scroll_height - client_height
        excess_x = scroll_width - client_width
        if vertical and horizontal:
            scrollbar_type = ScrollbarType.BOTH
            overflow = max(excess_x, excess_y)
        elif vertical:
            scrollbar_type = ScrollbarType.VERTICAL
            overflow = excess_y
        else:
            scrollbar_type = ScrollbarType.HORIZONTAL
            overflow = excess_x

        issues.append(ScrollbarIssue(
            element=elementInfo_build(record),
            details=ScrollbarDetails(
                scrollbar_type=scrollbar_type,
                container_width=client_width,
                container_height=client_height,
                content_width=scroll_width,
                content_height=scroll_height,
                overflow=overflow,
            ),
        ))

    return issues


class OverflowDetector:
    """
    Run the enabled detectors against the active slide of a page

    The page is anything with ``evaluate(expression, arg=None)``: a
    Playwright Page in production, a recorded fake in tests. A detector
    instance belongs to one page and one worker.
    """

    def __init__(self, page: Any, config: Optional[DetectionConfig] = None) -> None:
        """
        Initialize detector

        Args:
            page: Page object exposing evaluate()
            config: Detection switches, exclusions and threshold
        """
        from ..config import appsettings

        self.page = page
        self.config = config or DetectionConfig.config_fromSettings()
        self.hidden_class = appsettings.hidden_marker_class
        self.ancestor_depth = appsettings.ancestor_visibility_depth
        self.preview_length = appsettings.text_preview_length
        self._warned_selectors: Set[str] = set()

    def census_take(self) -> Census:
        return self.page.evaluate(SLIDE_CENSUS_SCRIPT)

    def snapshot_take(self, slide_index: int) -> Optional[Snapshot]:
        snapshot = self.page.evaluate(ELEMENT_SNAPSHOT_SCRIPT, {
            "slideIndex": slide_index,
            "exclude": list(self.config.exclude),
            "hiddenClass": self.hidden_class,
            "ancestorDepth": self.ancestor_depth,
            "previewLength": self.preview_length,
        })
        if snapshot:
            for selector in snapshot.get("invalidSelectors", []):
                if selector not in self._warned_selectors:
                    self._warned_selectors.add(selector)
                    WARN(f"Ignoring invalid exclude selector '{selector}'")
        return snapshot

    def activeSnapshot_take(self) -> Snapshot:
        """
        Snapshot the active slide

        The census is retaken once if the resolved slide vanished before
        its snapshot could be taken.

        Raises:
            ActiveSlideNotFoundError: If no slide page can be resolved
        """
        for _ in range(2):
            index = activeSlide_resolve(self.census_take())
            snapshot = self.snapshot_take(index)
            if snapshot is not None:
                return snapshot
            LOG(f"Slide page {index} disappeared before inspection, retaking census", level=2)
        raise ActiveSlideNotFoundError("Active slide page disappeared during inspection")

    def issues_detect(self) -> List[Issue]:
        """
        Detect all enabled issue classes on the active slide

        Returns:
            Fresh issues: text-overflow first, then element-overflow, then
            scrollbar, each in document order

        Raises:
            ActiveSlideNotFoundError: If no slide page can be resolved
        """
        snapshot = self.activeSnapshot_take()
        issues: List[Issue] = []

        if self.config.text_overflow:
            issues.extend(textOverflow_detect(snapshot, self.config.threshold))
        if self.config.element_overflow:
            issues.extend(elementOverflow_detect(snapshot, self.config.threshold))
        if self.config.scrollbar:
            issues.extend(scrollbar_detect(snapshot))

        LOG(f"Detected {len(issues)} issues over {len(snapshot.get('elements', []))} elements", level=2)
        return issues
