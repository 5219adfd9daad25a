"""
Content analysis models

Predicted issues and per-slide analysis produced without rendering.
"""

from enum import Enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .geometry import ContentArea
from .issues import IssueType
from .presentation import SlideMetrics


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class PredictionThresholds:
    """
    Coarse ceilings that correlate with real overflow

    Attributes:
        h1_max_chars: Character ceiling for level-1 headings
        h2_max_chars: Character ceiling for level-2 headings
        h3_max_chars: Character ceiling for level-3 and deeper headings
        code_max_lines: Line ceiling for fenced code blocks
    """
    h1_max_chars: int = 60
    h2_max_chars: int = 80
    h3_max_chars: int = 100
    code_max_lines: int = 30

    @classmethod
    def thresholds_fromSettings(cls, settings: Optional[Any] = None) -> "PredictionThresholds":
        """Ceilings configured through SLIDEFIT_* settings"""
        if settings is None:
            from ..config import appsettings
            settings = appsettings
        return cls(
            h1_max_chars=settings.h1_max_chars,
            h2_max_chars=settings.h2_max_chars,
            h3_max_chars=settings.h3_max_chars,
            code_max_lines=settings.code_max_lines,
        )

    @classmethod
    def thresholds_fromConfig(
        cls,
        config: Optional[Dict[str, Any]],
        settings: Optional[Any] = None,
        warnings: Optional[List[str]] = None,
    ) -> "PredictionThresholds":
        """
        Build thresholds from an overflowChecker.thresholds mapping

        Starts from the configured settings. Unknown keys are ignored and
        missing keys keep their defaults. A value that is not a positive
        integer also keeps its default, and a message is appended to
        ``warnings`` when given.

        Example:
            >>> PredictionThresholds.thresholds_fromConfig({"h1MaxChars": 40}).h1_max_chars
            40
        """
        defaults = cls.thresholds_fromSettings(settings)
        if not isinstance(config, dict):
            return defaults

        values: Dict[str, int] = {}
        for key, attr in THRESHOLD_KEYS.items():
            if key not in config:
                continue
            raw = config[key]
            try:
                if isinstance(raw, bool):
                    raise TypeError(raw)
                value = int(raw)
            except (TypeError, ValueError):
                value = 0
            if value <= 0:
                default = getattr(defaults, attr)
                if warnings is not None:
                    warnings.append(f"Ignoring invalid threshold {key}={raw!r}, using {default}")
                continue
            values[attr] = value
        return replace(defaults, **values)


# Document metadata key -> PredictionThresholds field
THRESHOLD_KEYS: Dict[str, str] = {
    "h1MaxChars": "h1_max_chars",
    "h2MaxChars": "h2_max_chars",
    "h3MaxChars": "h3_max_chars",
    "codeMaxLines": "code_max_lines",
}


@dataclass(frozen=True)
class PredictedIssue:
    """An overflow the predictor expects, tied to a source line range"""
    type: IssueType
    element: str
    slide_index: int
    risk_level: RiskLevel
    line_start: int
    line_end: int
    recommendation: str
    confidence: str = "medium"
    measured_value: Optional[float] = None
    threshold_value: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "element": self.element,
            "slideIndex": self.slide_index,
            "riskLevel": self.risk_level.value,
            "lineRange": {"start": self.line_start, "end": self.line_end},
            "recommendation": self.recommendation,
            "confidence": self.confidence,
            "measuredValue": self.measured_value,
            "thresholdValue": self.threshold_value,
        }


@dataclass
class SlideAnalysis:
    """Prediction results for one slide"""
    slide_index: int
    layout: str
    risk_level: RiskLevel
    content_area: ContentArea
    metrics: SlideMetrics
    predicted_issues: List[PredictedIssue] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    skipped: bool = False
    skip_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slideIndex": self.slide_index,
            "layout": self.layout,
            "riskLevel": self.risk_level.value,
            "contentArea": {"width": self.content_area.width, "height": self.content_area.height},
            "metrics": self.metrics.to_dict(),
            "predictedIssues": [issue.to_dict() for issue in self.predicted_issues],
            "recommendations": list(self.recommendations),
            "skipped": self.skipped,
            "skipReason": self.skip_reason,
        }
