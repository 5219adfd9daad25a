"""
Settings and run state tests
"""

import pytest

from slidefit.config.settings import AppSettings
from slidefit.lib.analyzer import ContentAnalyzer
from slidefit.lib.parser import Parser, canvasHeight_calculate
from slidefit.lib.predictor import TextPredictor, calibration_createDefault
from slidefit.models.analysis import PredictionThresholds, RiskLevel
from slidefit.models.issues import DetectionConfig
from slidefit.models.state import CheckState, pipeline


class TestSettleWait:
    """Settle time shrinks with deck size"""

    @pytest.mark.parametrize("total,expected", [
        (0, 600),
        (10, 600),
        (19, 600),
        (20, 550),
        (40, 450),
        (100, 300),
        (500, 300),
    ])
    def test_settle_wait(self, total, expected):
        assert AppSettings().settleWait_compute(total) == expected


class TestEnvironment:
    """Test SLIDEFIT_ environment overrides"""

    def test_defaults(self):
        settings = AppSettings(_env_file=None)

        assert settings.threshold == 1.0
        assert settings.concurrency == 1
        assert settings.exclude == [".slidev-page-indicator", ".slidev-nav"]
        assert settings.source_candidates == ["slides.md", "index.md", "README.md"]

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SLIDEFIT_THRESHOLD", "2.5")
        monkeypatch.setenv("SLIDEFIT_CONCURRENCY", "4")
        monkeypatch.setenv("SLIDEFIT_EXCLUDE", '[".footer"]')
        settings = AppSettings(_env_file=None)

        assert settings.threshold == 2.5
        assert settings.concurrency == 4
        assert settings.exclude == [".footer"]

    def test_invalid_value_rejected(self, monkeypatch):
        monkeypatch.setenv("SLIDEFIT_CONCURRENCY", "0")
        with pytest.raises(ValueError):
            AppSettings(_env_file=None)


class TestCheckState:
    """Test run state creation and the pipeline helper"""

    def test_create_from_settings(self):
        state = CheckState.state_createFromSettings(
            "http://localhost:3030", concurrency=3, pages="1-2", bogus=True, waitMs=None
        )

        assert state.url == "http://localhost:3030"
        assert state.concurrency == 3
        assert state.pages == "1-2"
        assert state.waitMs == 0
        assert isinstance(state.detection, DetectionConfig)

    def test_copy_is_independent(self):
        state = CheckState(url="u")
        copied = state.copy()
        copied.totalSlides = 9

        assert state.totalSlides == 0
        assert copied.url == "u"

    def test_pipeline_order(self):
        def first(state):
            new_state = state.copy()
            new_state.pageRange = [1]
            return new_state

        def second(state):
            new_state = state.copy()
            new_state.pageRange = state.pageRange + [2]
            return new_state

        assert pipeline(CheckState(), first, second).pageRange == [1, 2]


class TestPredictionDefaults:
    """SLIDEFIT_ canvas and ceiling settings reach the predictor"""

    def test_heading_ceiling_from_env(self, monkeypatch):
        monkeypatch.setenv("SLIDEFIT_H1_MAX_CHARS", "5")
        settings = AppSettings(_env_file=None)
        parsed = Parser().presentation_parse("# A heading of twenty")

        analysis = ContentAnalyzer(settings=settings).presentation_analyze(parsed)[0]

        issue = analysis.predicted_issues[0]
        assert issue.risk_level == RiskLevel.MEDIUM
        assert issue.measured_value == 19
        assert issue.threshold_value == 5

    def test_document_overrides_settings(self, monkeypatch):
        monkeypatch.setenv("SLIDEFIT_CODE_MAX_LINES", "7")
        monkeypatch.setenv("SLIDEFIT_H2_MAX_CHARS", "20")
        settings = AppSettings(_env_file=None)

        thresholds = PredictionThresholds.thresholds_fromConfig({"codeMaxLines": 12}, settings=settings)

        assert thresholds.code_max_lines == 12
        assert thresholds.h2_max_chars == 20

    def test_canvas_from_env(self, monkeypatch):
        monkeypatch.setenv("SLIDEFIT_CANVAS_WIDTH", "1280")
        monkeypatch.setenv("SLIDEFIT_CANVAS_HEIGHT", "720")
        monkeypatch.setenv("SLIDEFIT_CODE_MAX_LINES", "7")
        monkeypatch.setattr("slidefit.config.appsettings", AppSettings(_env_file=None))

        calibration = calibration_createDefault()
        config = Parser().presentation_parse("# T").global_config

        assert (calibration.canvas_width, calibration.canvas_height) == (1280, 720)
        assert config.canvas_width == 1280
        assert canvasHeight_calculate(config.canvas_width, config.aspect_ratio) == 720
        assert TextPredictor(calibration).thresholds.code_max_lines == 7
