"""
slidefit - Slide overflow checker

Detects slide content that exceeds its intended bounds, both predictively
from the markdown source and live on a rendered presentation, and
attributes each issue back to the source lines that produced it.
"""

__version__ = "1.0.0"

from .lib import (
    Parser,
    TextPredictor,
    OverflowDetector,
    SourceMapper,
    ContentAnalyzer,
    check_run,
    LOG,
    state_connectToLogger,
)

__all__ = [
    "Parser",
    "TextPredictor",
    "OverflowDetector",
    "SourceMapper",
    "ContentAnalyzer",
    "check_run",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
