"""
Models package for slidefit

Contains data structures and type definitions for parsing, prediction,
detection and attribution.
"""

from .state import CheckState, pipeline
from .errors import (
    SlidefitError,
    ActiveSlideNotFoundError,
    SlideNavigationError,
    PresentationNotReadyError,
    ProjectSourceNotFoundError,
    PageRangeError,
)
from .geometry import (
    SlotPosition,
    TextRole,
    Padding,
    Slot,
    LayoutContentArea,
    ContentArea,
    CalibrationProfile,
    TextMeasurement,
)
from .presentation import (
    NodeType,
    ContentNode,
    SlideMetrics,
    Slide,
    GlobalConfig,
    ParsedPresentation,
)
from .presentation import SlideAnalysisSummary
from .parser import ParseContext, RawSlide, FoundElement
from .issues import (
    IssueType,
    ScrollbarType,
    SourceInfo,
    ElementInfo,
    Bounds,
    TextOverflowDetails,
    ElementOverflowDetails,
    ScrollbarDetails,
    TextOverflowIssue,
    ElementOverflowIssue,
    ScrollbarIssue,
    Issue,
    DetectionConfig,
    SlideResult,
    TypeSummary,
    CheckResult,
)
from .analysis import RiskLevel, PredictionThresholds, PredictedIssue, SlideAnalysis

__all__ = [
    "CheckState",
    "pipeline",
    "SlidefitError",
    "ActiveSlideNotFoundError",
    "SlideNavigationError",
    "PresentationNotReadyError",
    "ProjectSourceNotFoundError",
    "PageRangeError",
    "SlotPosition",
    "TextRole",
    "Padding",
    "Slot",
    "LayoutContentArea",
    "ContentArea",
    "CalibrationProfile",
    "TextMeasurement",
    "NodeType",
    "ContentNode",
    "SlideMetrics",
    "Slide",
    "GlobalConfig",
    "ParsedPresentation",
    "SlideAnalysisSummary",
    "ParseContext",
    "RawSlide",
    "FoundElement",
    "IssueType",
    "ScrollbarType",
    "SourceInfo",
    "ElementInfo",
    "Bounds",
    "TextOverflowDetails",
    "ElementOverflowDetails",
    "ScrollbarDetails",
    "TextOverflowIssue",
    "ElementOverflowIssue",
    "ScrollbarIssue",
    "Issue",
    "DetectionConfig",
    "SlideResult",
    "TypeSummary",
    "CheckResult",
    "RiskLevel",
    "PredictionThresholds",
    "PredictedIssue",
    "SlideAnalysis",
]
