"""
Check state model and pipeline helper

Defines CheckState dataclass for the functional pipeline pattern and
the pipeline() helper for composing check stages.
"""

from pathlib import Path
from typing import Any, Optional, Type, TypeVar, List, Callable, TYPE_CHECKING
from dataclasses import dataclass, field

from .issues import CheckResult, DetectionConfig, SlideResult

# Forward reference for type hint - avoid circular import
if TYPE_CHECKING:
    from ..lib.mapper import SourceMapper


CS = TypeVar("CS", bound="CheckState")


@dataclass
class CheckState:
    """
    Central state container for a check run (state bus pattern).

    This dataclass carries all run state through the functional pipeline,
    with each stage adding new fields as the check progresses.

    Pipeline stages and their state additions:
        - Initial: url, project, pages, verbosity, concurrency, waitMs,
          detection, sessionFactory
        - source_load: sourceMapper
        - slideCount_probe: totalSlides, pageRange
        - slides_check: slideResults, skipped
        - results_aggregate: checkResult

    Attributes:
        url: Address of the running presentation
        project: Optional project directory holding the markdown source
        pages: Optional page range string ("1-5,8")
        verbosity: Logging verbosity level (1-3)
        concurrency: Number of workers (independent rendering sessions)
        waitMs: Extra wait after each navigation, in ms
        detection: Detector configuration
        sessionFactory: Callable(url) returning a context manager that yields
                        a page; None selects the Playwright browser session
        sourceMapper: Loaded source mapper, None without a project
        totalSlides: Slide count reported by the presentation
        pageRange: Ascending slide numbers to check
        slideResults: Per-slide results, in worker-concatenated order
        skipped: Slide numbers skipped after recoverable failures
        checkResult: Final aggregate
    """

    # Run options
    url: str = field(default="")
    project: Optional[Path] = field(default=None)
    pages: Optional[str] = field(default=None)
    verbosity: int = field(default=1)
    concurrency: int = field(default=1)
    waitMs: int = field(default=0)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    sessionFactory: Optional[Callable[[str], Any]] = field(default=None)

    # Pipeline state
    sourceMapper: Optional["SourceMapper"] = field(default=None)
    totalSlides: int = field(default=0)
    pageRange: List[int] = field(default_factory=list)
    slideResults: List[SlideResult] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    checkResult: Optional[CheckResult] = field(default=None)

    @classmethod
    def state_createFromSettings(cls: Type["CheckState"], url: str, **overrides: Any) -> "CheckState":
        """
        Create CheckState from application settings plus explicit overrides.

        Settings supply concurrency, wait and detection defaults; any keyword
        that names a CheckState field replaces the settings value. Unknown
        keywords are ignored.

        Args:
            url: Address of the running presentation
            **overrides: CheckState fields to set explicitly

        Returns:
            CheckState instance ready for the check pipeline
        """
        from ..config import appsettings
        import dataclasses

        valid_fields = {f.name for f in dataclasses.fields(cls)}
        filtered = {k: v for k, v in overrides.items() if k in valid_fields and v is not None}

        merged_args = {
            "concurrency": appsettings.concurrency,
            "waitMs": appsettings.wait_ms,
            "detection": DetectionConfig.config_fromSettings(),
            **filtered,
            "url": url,
        }
        return cls(**merged_args)

    def copy(self: CS) -> CS:
        """
        Creates a shallow copy of the CheckState instance.

        Returns:
            A new CheckState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: CheckState, *stages: Callable[[CheckState], CheckState]
) -> CheckState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (CheckState) -> CheckState that receives
    the output of the previous stage and returns a new state.

    Args:
        initial_state: Starting CheckState
        *stages: Variable number of stage functions to execute in order

    Returns:
        Final CheckState after all transformations

    Example:
        final_state = pipeline(
            initial_state,
            source_load,
            slideCount_probe,
            slides_check,
            results_aggregate
        )
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
