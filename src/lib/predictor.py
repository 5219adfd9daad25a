"""
Heuristic text overflow predictor

Estimates whether text will overflow its slot without rendering it.
Rendered width is approximated as

    characters x font size x 0.6

where 0.6 is an average glyph width ratio for proportional fonts. The
result is an estimate, never a measurement, so every prediction reports
"medium" confidence.

Alongside the width model, two coarse ceilings are kept because they
correlate with real overflow better than simulated glyph metrics: a
character ceiling per heading level and a line ceiling for code blocks.

Example:
    >>> predictor = TextPredictor(calibration_createDefault())
    >>> predictor.text_measure("Hello", TextRole.H1).measured_width
    144.0
"""

from datetime import datetime, timezone
from typing import Dict, Optional

from ..models.analysis import PredictionThresholds
from ..models.geometry import (
    CalibrationProfile,
    ContentArea,
    TextMeasurement,
    TextRole,
)
from .layouts import DEFAULT_PADDING, contentArea_calculate, layoutContentArea_get


CHAR_WIDTH_RATIO = 0.6

DEFAULT_LINE_HEIGHT = 1.5

DEFAULT_FONT_SIZES: Dict[TextRole, float] = {
    TextRole.H1: 48,
    TextRole.H2: 36,
    TextRole.H3: 28,
    TextRole.H4: 24,
    TextRole.PARAGRAPH: 17.6,
    TextRole.CODE: 14,
    TextRole.LIST_ITEM: 17.6,
}

DEFAULT_LINE_HEIGHTS: Dict[TextRole, float] = {
    TextRole.H1: 1.2,
    TextRole.H2: 1.3,
    TextRole.H3: 1.4,
    TextRole.H4: 1.4,
    TextRole.PARAGRAPH: 1.6,
    TextRole.CODE: 1.5,
    TextRole.LIST_ITEM: 1.6,
}

DEFAULT_FONT_FAMILIES: Dict[str, str] = {
    "sans": "Roboto, sans-serif",
    "mono": "Fira Code, monospace",
    "serif": "Georgia, serif",
}


def calibration_createDefault(
    canvas_width: Optional[float] = None,
    canvas_height: Optional[float] = None,
) -> CalibrationProfile:
    """
    Create a calibration profile from the default theme's values.

    Args:
        canvas_width: Canvas width in px; defaults to the canvas_width setting
        canvas_height: Canvas height in px; defaults to the canvas_height setting

    Returns:
        CalibrationProfile with default padding, fonts and line heights
    """
    from ..config import appsettings

    if canvas_width is None:
        canvas_width = appsettings.canvas_width
    if canvas_height is None:
        canvas_height = appsettings.canvas_height
    return CalibrationProfile(
        canvas_width=canvas_width,
        canvas_height=canvas_height,
        aspect_ratio="16/9",
        padding=DEFAULT_PADDING,
        font_sizes=dict(DEFAULT_FONT_SIZES),
        line_heights=dict(DEFAULT_LINE_HEIGHTS),
        font_families=dict(DEFAULT_FONT_FAMILIES),
        content_area=contentArea_calculate(canvas_width, canvas_height, DEFAULT_PADDING),
        theme="default",
        calibrated_at=datetime.now(timezone.utc).isoformat(),
    )


def headingRole_get(level: int) -> TextRole:
    """Map a heading level to its text role; h5 and h6 size like h4"""
    if level <= 1:
        return TextRole.H1
    if level == 2:
        return TextRole.H2
    if level == 3:
        return TextRole.H3
    return TextRole.H4


class TextPredictor:
    """
    Predict text overflow from a calibration profile

    The predictor holds only read-only configuration and is safe to share
    between callers.
    """

    def __init__(
        self,
        calibration: CalibrationProfile,
        thresholds: Optional[PredictionThresholds] = None,
    ) -> None:
        """
        Initialize predictor

        Args:
            calibration: Assumed fonts, line heights and canvas
            thresholds: Heading/code ceilings; defaults to the configured settings
        """
        self.calibration = calibration
        self.thresholds = thresholds or PredictionThresholds.thresholds_fromSettings()

    def calibration_get(self) -> CalibrationProfile:
        return self.calibration

    def fontSize_get(self, role: TextRole) -> float:
        return self.calibration.fontSize_get(role)

    def font_string(self, role: TextRole) -> str:
        """CSS-style font shorthand, e.g. '48px Roboto, sans-serif'"""
        size = self.fontSize_get(role)
        family_key = "mono" if TextRole(role) == TextRole.CODE else "sans"
        family = self.calibration.font_families.get(family_key, "")
        return f"{size:g}px {family}"

    def textWidth_estimate(self, text: str, font_size: float) -> float:
        """
        Estimate rendered width of a single line of text.

        Monotonically non-decreasing in both text length and font size.

        Args:
            text: Text to measure
            font_size: Font size in px

        Returns:
            Estimated width in px
        """
        return len(text) * font_size * CHAR_WIDTH_RATIO

    def text_measure(
        self, text: str, role: TextRole, layout: Optional[str] = None
    ) -> TextMeasurement:
        """
        Measure text against the space available to it.

        Without a layout the calibration's content area is used. With a
        layout, the first slot of that layout on the calibration canvas.

        Args:
            text: Text to measure (treated as one line)
            role: Semantic role selecting font size and line height
            layout: Optional layout name

        Returns:
            TextMeasurement; overflow_amount is 0 when not overflowing
        """
        role = TextRole(role)
        font_size = self.fontSize_get(role)
        measured_width = self.textWidth_estimate(text, font_size)
        line_height = self.calibration.line_heights.get(role, DEFAULT_LINE_HEIGHT)
        measured_height = font_size * line_height

        available = self.availableArea_get(layout)
        will_overflow = measured_width > available.width
        overflow_amount = measured_width - available.width if will_overflow else 0

        return TextMeasurement(
            text=text,
            font=self.font_string(role),
            measured_width=measured_width,
            measured_height=measured_height,
            available_width=available.width,
            available_height=available.height,
            will_overflow=will_overflow,
            overflow_amount=overflow_amount,
            confidence="medium",
        )

    def availableArea_get(self, layout: Optional[str] = None) -> ContentArea:
        """Space for text: the layout's first slot, or the calibration content area"""
        if layout is None:
            return self.calibration.content_area
        area = layoutContentArea_get(
            layout, self.calibration.canvas_width, self.calibration.canvas_height
        )
        if not area.slots:
            return self.calibration.content_area
        slot = area.slots[0]
        return ContentArea(width=slot.width, height=slot.height)

    def textOverflow_will(self, text: str, role: TextRole, layout: Optional[str] = None) -> bool:
        return self.text_measure(text, role, layout).will_overflow

    def overflowAmount_get(self, text: str, role: TextRole, layout: Optional[str] = None) -> float:
        return self.text_measure(text, role, layout).overflow_amount

    def headingCeiling_get(self, level: int) -> int:
        if level == 1:
            return self.thresholds.h1_max_chars
        if level == 2:
            return self.thresholds.h2_max_chars
        return self.thresholds.h3_max_chars

    def headingOverflow_predict(self, text: str, level: int) -> bool:
        """
        Predict heading overflow from its character count.

        Levels 3 and deeper share the h3 ceiling.

        Args:
            text: Heading text without the leading #'s
            level: Heading level 1-6

        Returns:
            True when the text is longer than the level's ceiling
        """
        return len(text) > self.headingCeiling_get(level)

    def codeBlockOverflow_predict(self, code: str) -> bool:
        """Predict code block overflow from its line count"""
        return len(code.split("\n")) > self.thresholds.code_max_lines
