"""
Geometry and calibration models

Layout slots, canvas padding, calibration profiles and text measurements
used by the layout model and the text predictor.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List


class SlotPosition(str, Enum):
    """Where a slot sits on the canvas"""
    FULL = "full"
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"


class TextRole(str, Enum):
    """Semantic role of a run of text, selects font size and line height"""
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    H4 = "h4"
    PARAGRAPH = "paragraph"
    CODE = "code"
    LIST_ITEM = "list-item"


@dataclass(frozen=True)
class Padding:
    """Insets subtracted from the canvas, in px"""
    left: float
    right: float
    top: float
    bottom: float

    def to_dict(self) -> Dict[str, float]:
        return {"left": self.left, "right": self.right, "top": self.top, "bottom": self.bottom}


@dataclass(frozen=True)
class Slot:
    """
    A named sub-region of a layout's usable area

    Attributes:
        name: Slot name as used by the layout ("default", "left", "header", ...)
        width: Usable width in px
        height: Usable height in px
        position: Placement on the canvas
    """
    name: str
    width: float
    height: float
    position: SlotPosition

    @property
    def area(self) -> float:
        return self.width * self.height

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "width": self.width,
            "height": self.height,
            "position": self.position.value,
        }


@dataclass(frozen=True)
class LayoutContentArea:
    """
    Content area granted by a named layout on a given canvas

    Attributes:
        layout: Layout name as requested (kept even when it fell back to default)
        slots: Ordered slots, primary slot first
        total_available_area: Sum of all slot areas in px^2
    """
    layout: str
    slots: List[Slot]
    total_available_area: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "layout": self.layout,
            "slots": [slot.to_dict() for slot in self.slots],
            "totalAvailableArea": self.total_available_area,
        }


@dataclass(frozen=True)
class ContentArea:
    """Plain width/height pair"""
    width: float
    height: float


@dataclass
class CalibrationProfile:
    """
    Assumed rendering parameters for heuristic (non-rendered) measurement

    Attributes:
        canvas_width: Slide canvas width in px
        canvas_height: Slide canvas height in px
        aspect_ratio: Aspect ratio string, e.g. "16/9"
        padding: Content insets
        font_sizes: Font size in px per TextRole
        line_heights: Line height multiplier per TextRole
        font_families: Families keyed by "sans", "mono", "serif"
        content_area: Padded canvas area
        theme: Theme the profile was derived for
        calibrated_at: ISO 8601 timestamp
    """
    canvas_width: float
    canvas_height: float
    aspect_ratio: str
    padding: Padding
    font_sizes: Dict[TextRole, float]
    line_heights: Dict[TextRole, float]
    font_families: Dict[str, str]
    content_area: ContentArea
    theme: str = "default"
    calibrated_at: str = ""

    def fontSize_get(self, role: TextRole) -> float:
        return self.font_sizes[TextRole(role)]


@dataclass(frozen=True)
class TextMeasurement:
    """
    Estimated size of a run of text versus the space available to it

    Confidence is always "medium": the numbers come from an average glyph
    width ratio, never from real font metrics.
    """
    text: str
    font: str
    measured_width: float
    measured_height: float
    available_width: float
    available_height: float
    will_overflow: bool
    overflow_amount: float
    confidence: str = field(default="medium")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "font": self.font,
            "measuredWidth": self.measured_width,
            "measuredHeight": self.measured_height,
            "availableWidth": self.available_width,
            "availableHeight": self.available_height,
            "willOverflow": self.will_overflow,
            "overflowAmount": self.overflow_amount,
            "confidence": self.confidence,
        }
