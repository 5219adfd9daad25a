"""
Predictive content analysis

Runs the text predictor over a parsed presentation and reports, per
slide, the overflows it expects without rendering anything:

- headings longer than their level's character ceiling (medium risk)
- headings whose estimated width exceeds the layout's slot (high risk)
- code blocks longer than the line ceiling (high risk)
- code lines wider than the slot, which scroll horizontally (medium risk)

Hidden slides (``hide: true``) are reported as skipped.
"""

from typing import Any, List, Optional

from ..models.analysis import PredictedIssue, PredictionThresholds, RiskLevel, SlideAnalysis
from ..models.geometry import TextRole
from ..models.issues import IssueType
from ..models.presentation import ContentNode, GlobalConfig, NodeType, ParsedPresentation, Slide
from .log import LOG, WARN
from .parser import canvasHeight_calculate
from .predictor import TextPredictor, calibration_createDefault, headingRole_get


RISK_ORDER = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}


def predictor_fromConfig(global_config: GlobalConfig, settings: Optional[Any] = None) -> TextPredictor:
    """
    Build a predictor for a presentation's canvas and thresholds

    Thresholds start from the SLIDEFIT_* settings and are overridden by the
    ``overflowChecker.thresholds`` mapping of the document-wide metadata,
    when present. Unusable values there are reported and ignored.
    """
    canvas_height = canvasHeight_calculate(global_config.canvas_width, global_config.aspect_ratio)
    calibration = calibration_createDefault(global_config.canvas_width, canvas_height)
    checker_config = global_config.overflow_checker or {}
    warnings: List[str] = []
    thresholds = PredictionThresholds.thresholds_fromConfig(
        checker_config.get("thresholds"), settings=settings, warnings=warnings
    )
    for warning in warnings:
        WARN(warning)
    return TextPredictor(calibration, thresholds)


class ContentAnalyzer:
    """
    Predict overflow for parsed slides

    Example:
        >>> parsed = Parser().presentation_parse(source)
        >>> for analysis in ContentAnalyzer().presentation_analyze(parsed):
        ...     print(analysis.slide_index, analysis.risk_level.value)
    """

    def __init__(
        self, predictor: Optional[TextPredictor] = None, settings: Optional[Any] = None
    ) -> None:
        """
        Initialize analyzer

        Args:
            predictor: Predictor to use for every slide. When None, one is
                       built per presentation from its global config.
            settings: AppSettings supplying default ceilings; appsettings when None
        """
        self.predictor = predictor
        self.settings = settings

    def presentation_analyze(self, presentation: ParsedPresentation) -> List[SlideAnalysis]:
        predictor = self.predictor or predictor_fromConfig(presentation.global_config, self.settings)
        analyses = [self.slide_analyze(slide, predictor) for slide in presentation.slides]
        risky = sum(1 for analysis in analyses if analysis.risk_level != RiskLevel.LOW)
        LOG(f"Analyzed {len(analyses)} slides, {risky} at risk", level=1)
        return analyses

    def slide_analyze(self, slide: Slide, predictor: Optional[TextPredictor] = None) -> SlideAnalysis:
        """
        Predict issues for one slide

        Args:
            slide: Parsed slide
            predictor: Overrides the analyzer's predictor for this call

        Returns:
            SlideAnalysis whose risk level is the highest risk among its
            predicted issues (low when there are none)
        """
        predictor = predictor or self.predictor or TextPredictor(
            calibration_createDefault(), PredictionThresholds.thresholds_fromSettings(self.settings)
        )

        if slide.frontmatter.get("hide") is True:
            return SlideAnalysis(
                slide_index=slide.index,
                layout=slide.layout,
                risk_level=RiskLevel.LOW,
                content_area=slide.content_area,
                metrics=slide.metrics,
                skipped=True,
                skip_reason="hidden slide",
            )

        issues: List[PredictedIssue] = []
        for node in slide.content_nodes:
            if node.type == NodeType.HEADING:
                issue = self.heading_check(node, slide, predictor)
                if issue is not None:
                    issues.append(issue)
            elif node.type == NodeType.CODE_BLOCK:
                issues.extend(self.codeBlock_check(node, slide, predictor))

        risk = RiskLevel.LOW
        for issue in issues:
            if RISK_ORDER[issue.risk_level] > RISK_ORDER[risk]:
                risk = issue.risk_level

        recommendations: List[str] = []
        for issue in issues:
            if issue.recommendation not in recommendations:
                recommendations.append(issue.recommendation)

        return SlideAnalysis(
            slide_index=slide.index,
            layout=slide.layout,
            risk_level=risk,
            content_area=slide.content_area,
            metrics=slide.metrics,
            predicted_issues=issues,
            recommendations=recommendations,
        )

    def heading_check(
        self, node: ContentNode, slide: Slide, predictor: TextPredictor
    ) -> Optional[PredictedIssue]:
        """Width against the layout slot first, then the character ceiling"""
        text = node.text or ""
        level = node.level or 1
        measurement = predictor.text_measure(text, headingRole_get(level), slide.layout)

        if measurement.will_overflow:
            return PredictedIssue(
                type=IssueType.TEXT_OVERFLOW,
                element=f"h{level}",
                slide_index=slide.index,
                risk_level=RiskLevel.HIGH,
                line_start=node.line_start,
                line_end=node.line_end,
                recommendation=(
                    f"Heading is about {measurement.overflow_amount:.0f}px wider than the "
                    f"{measurement.available_width:g}px available; shorten it or reduce its size"
                ),
                measured_value=measurement.measured_width,
                threshold_value=measurement.available_width,
            )

        if predictor.headingOverflow_predict(text, level):
            ceiling = predictor.headingCeiling_get(level)
            return PredictedIssue(
                type=IssueType.TEXT_OVERFLOW,
                element=f"h{level}",
                slide_index=slide.index,
                risk_level=RiskLevel.MEDIUM,
                line_start=node.line_start,
                line_end=node.line_end,
                recommendation=f"Shorten h{level} to at most {ceiling} characters",
                measured_value=len(text),
                threshold_value=ceiling,
            )
        return None

    def codeBlock_check(
        self, node: ContentNode, slide: Slide, predictor: TextPredictor
    ) -> List[PredictedIssue]:
        issues: List[PredictedIssue] = []
        code = node.text or ""

        if predictor.codeBlockOverflow_predict(code):
            issues.append(PredictedIssue(
                type=IssueType.ELEMENT_OVERFLOW,
                element="pre",
                slide_index=slide.index,
                risk_level=RiskLevel.HIGH,
                line_start=node.line_start,
                line_end=node.line_end,
                recommendation=(
                    f"Split the code block; keep it under {predictor.thresholds.code_max_lines} lines"
                ),
                measured_value=len(code.split("\n")),
                threshold_value=predictor.thresholds.code_max_lines,
            ))

        longest = max(code.split("\n"), key=len) if code else ""
        measurement = predictor.text_measure(longest, TextRole.CODE, slide.layout)
        if measurement.will_overflow:
            issues.append(PredictedIssue(
                type=IssueType.SCROLLBAR,
                element="pre",
                slide_index=slide.index,
                risk_level=RiskLevel.MEDIUM,
                line_start=node.line_start,
                line_end=node.line_end,
                recommendation="Wrap or shorten long code lines to avoid horizontal scrolling",
                measured_value=measurement.measured_width,
                threshold_value=measurement.available_width,
            ))
        return issues
