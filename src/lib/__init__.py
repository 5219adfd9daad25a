"""
slidefit library modules

Geometry, prediction, parsing, live detection, attribution and check
orchestration.
"""

from .layouts import layoutContentArea_get
from .predictor import TextPredictor, calibration_createDefault
from .parser import Parser
from .detector import OverflowDetector
from .mapper import SourceMapper
from .navigator import PageNavigator
from .analyzer import ContentAnalyzer
from .checker import check_run
from .log import LOG, WARN, state_connectToLogger

__all__ = [
    "layoutContentArea_get",
    "TextPredictor",
    "calibration_createDefault",
    "Parser",
    "OverflowDetector",
    "SourceMapper",
    "PageNavigator",
    "ContentAnalyzer",
    "check_run",
    "LOG",
    "WARN",
    "state_connectToLogger",
]
