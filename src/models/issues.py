"""
Detected issue models

Tagged issue variants produced by the live overflow detector, the source
attribution attached to them, detection configuration and the per-run
result aggregate.

Issues are frozen: source attribution is added with dataclasses.replace()
and never touches the geometry recorded at detection time.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


class IssueType(str, Enum):
    """Issue variant tag"""
    TEXT_OVERFLOW = "text-overflow"
    ELEMENT_OVERFLOW = "element-overflow"
    SCROLLBAR = "scrollbar"


class ScrollbarType(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"
    BOTH = "both"


@dataclass(frozen=True)
class SourceInfo:
    """
    Source location an issue was attributed to

    Attributes:
        file: Source file name (e.g., "slides.md")
        line: First line (1-based)
        line_end: Last line (inclusive)
        content: Source text of the range
    """
    file: str
    line: int
    line_end: int
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.file, "line": self.line, "lineEnd": self.line_end, "content": self.content}


@dataclass(frozen=True)
class ElementInfo:
    """
    Descriptor of the offending DOM element

    Attributes:
        tag: Lower-case tag name
        selector: Derived selector: tag plus #id, else tag plus every class
        class_name: Raw class attribute, if any
        id: Element id, if any
        text: Text preview (at most 50 characters)
        src: Resolved image source (img elements only)
    """
    tag: str
    selector: str
    class_name: Optional[str] = None
    id: Optional[str] = None
    text: Optional[str] = None
    src: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"tag": self.tag, "selector": self.selector}
        for key, value in (("class", self.class_name), ("id", self.id), ("text", self.text), ("src", self.src)):
            if value:
                result[key] = value
        return result


@dataclass(frozen=True)
class Bounds:
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def to_dict(self) -> Dict[str, float]:
        return {"left": self.left, "top": self.top, "right": self.right, "bottom": self.bottom}


@dataclass(frozen=True)
class TextOverflowDetails:
    container_width: float
    container_height: float
    content_width: float
    content_height: float
    overflow_x: float
    overflow_y: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "containerWidth": self.container_width,
            "containerHeight": self.container_height,
            "contentWidth": self.content_width,
            "contentHeight": self.content_height,
            "overflowX": self.overflow_x,
            "overflowY": self.overflow_y,
        }


@dataclass(frozen=True)
class ElementOverflowDetails:
    """Frame and element rectangles plus the clamped overflow past each edge"""
    slide_bounds: Bounds
    element_bounds: Bounds
    overflow: Bounds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slideBounds": self.slide_bounds.to_dict(),
            "elementBounds": self.element_bounds.to_dict(),
            "overflow": self.overflow.to_dict(),
        }


@dataclass(frozen=True)
class ScrollbarDetails:
    scrollbar_type: ScrollbarType
    container_width: float
    container_height: float
    content_width: float
    content_height: float
    overflow: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scrollbarType": self.scrollbar_type.value,
            "containerWidth": self.container_width,
            "containerHeight": self.container_height,
            "contentWidth": self.content_width,
            "contentHeight": self.content_height,
            "overflow": self.overflow,
        }


@dataclass(frozen=True)
class TextOverflowIssue:
    element: ElementInfo
    details: TextOverflowDetails
    source: Optional[SourceInfo] = None
    type: IssueType = field(default=IssueType.TEXT_OVERFLOW, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return issue_toDict(self)


@dataclass(frozen=True)
class ElementOverflowIssue:
    element: ElementInfo
    details: ElementOverflowDetails
    source: Optional[SourceInfo] = None
    type: IssueType = field(default=IssueType.ELEMENT_OVERFLOW, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return issue_toDict(self)


@dataclass(frozen=True)
class ScrollbarIssue:
    element: ElementInfo
    details: ScrollbarDetails
    source: Optional[SourceInfo] = None
    type: IssueType = field(default=IssueType.SCROLLBAR, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return issue_toDict(self)


Issue = Union[TextOverflowIssue, ElementOverflowIssue, ScrollbarIssue]


def issue_toDict(issue: Issue) -> Dict[str, Any]:
    """Serialize any issue variant to the camelCase issue contract"""
    result: Dict[str, Any] = {
        "type": issue.type.value,
        "element": issue.element.to_dict(),
        "details": issue.details.to_dict(),
    }
    if issue.source is not None:
        result["source"] = issue.source.to_dict()
    return result


@dataclass(frozen=True)
class DetectionConfig:
    """
    Detection switches and tolerances for one detector pass

    Attributes:
        exclude: Selectors whose matches (and descendants) are never inspected
        threshold: Overflow in px that must be exceeded to report
        text_overflow: Run the clipped-content detector
        element_overflow: Run the boundary detector
        scrollbar: Run the scrollable-container detector
    """
    exclude: List[str] = field(default_factory=list)
    threshold: float = 1.0
    text_overflow: bool = True
    element_overflow: bool = True
    scrollbar: bool = True

    @classmethod
    def config_fromSettings(cls) -> "DetectionConfig":
        """Build a config from the application settings"""
        from ..config import appsettings
        return cls(exclude=list(appsettings.exclude), threshold=appsettings.threshold)


@dataclass
class SlideResult:
    """Issues found on one slide"""
    page: int
    issues: List[Issue] = field(default_factory=list)

    @property
    def issue_count(self) -> int:
        return len(self.issues)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "issueCount": self.issue_count,
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass
class TypeSummary:
    count: int = 0
    slides: List[int] = field(default_factory=list)


@dataclass
class CheckResult:
    """
    Aggregate of a complete check run

    Attributes:
        timestamp: ISO 8601 time the result was aggregated
        total_slides: Slides in the presentation
        slides_with_issues: Slide numbers that have at least one issue
        issues_found: Total number of issues
        summary: Per issue type, how many slides and which ones
        slides: Results of slides that have issues
        skipped: Slide numbers skipped after navigation or detection failures
    """
    timestamp: str
    total_slides: int
    slides_with_issues: List[int]
    issues_found: int
    summary: Dict[IssueType, TypeSummary]
    slides: List[SlideResult]
    skipped: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        keys = {
            IssueType.TEXT_OVERFLOW: "textOverflow",
            IssueType.ELEMENT_OVERFLOW: "elementOverflow",
            IssueType.SCROLLBAR: "scrollbar",
        }
        return {
            "timestamp": self.timestamp,
            "totalSlides": self.total_slides,
            "slidesWithIssues": list(self.slides_with_issues),
            "issuesFound": self.issues_found,
            "summary": {
                keys[kind]: {"count": entry.count, "slides": list(entry.slides)}
                for kind, entry in self.summary.items()
            },
            "slides": [slide.to_dict() for slide in self.slides],
            "skipped": list(self.skipped),
        }
