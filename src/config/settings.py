"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use SLIDEFIT_ prefix (e.g., SLIDEFIT_THRESHOLD=2.5).

List-valued settings take JSON in the environment, e.g.
SLIDEFIT_EXCLUDE='[".slidev-nav", ".my-footer"]'.

Settings can also be loaded from a .env file in the project root.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use SLIDEFIT_ prefix.

    Examples:
        SLIDEFIT_THRESHOLD=2
        SLIDEFIT_CONCURRENCY=4
        SLIDEFIT_HEADLESS=false
    """

    model_config = SettingsConfigDict(
        env_prefix="SLIDEFIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Detection configuration
    threshold: float = Field(
        default=1.0,
        ge=0,
        description="Overflow in px that must be exceeded before an issue is reported",
    )

    exclude: List[str] = Field(
        default_factory=lambda: [".slidev-page-indicator", ".slidev-nav"],
        description="Selectors whose matches and descendants are never inspected",
    )

    hidden_marker_class: str = Field(
        default="slidev-vclick-hidden",
        description="Class marking click-reveal content that is not yet shown",
    )

    ancestor_visibility_depth: int = Field(
        default=3,
        ge=0,
        description="How many ancestors are checked for inherited opacity/visibility",
    )

    text_preview_length: int = Field(
        default=50,
        gt=0,
        description="Maximum characters of element text carried in an issue",
    )

    # Session configuration
    browser: str = Field(
        default="chromium",
        description="Playwright browser engine: chromium, firefox or webkit",
    )

    headless: bool = Field(
        default=True,
        description="Run the browser without a window",
    )

    viewport_width: int = Field(default=1920, gt=0, description="Browser viewport width")
    viewport_height: int = Field(default=1080, gt=0, description="Browser viewport height")

    concurrency: int = Field(
        default=1,
        ge=1,
        description="Number of workers, each with its own rendering session",
    )

    # Navigation timing (milliseconds)
    wait_ms: int = Field(
        default=0,
        ge=0,
        description="Extra wait after each slide navigation",
    )

    retry_backoff_ms: int = Field(
        default=500,
        ge=0,
        description="Fixed backoff before the single navigation retry",
    )

    ready_timeout_ms: int = Field(
        default=10000,
        gt=0,
        description="How long to wait for the first slide page to appear",
    )

    load_timeout_ms: int = Field(
        default=3000,
        gt=0,
        description="How long to wait for a navigated slide to become visible",
    )

    # Source attribution
    source_candidates: List[str] = Field(
        default_factory=lambda: ["slides.md", "index.md", "README.md"],
        description="Markdown files looked up, in order, in a project directory",
    )

    # Prediction defaults
    canvas_width: int = Field(default=980, gt=0, description="Default canvas width")
    canvas_height: int = Field(default=552, gt=0, description="Default canvas height")

    h1_max_chars: int = Field(default=60, gt=0, description="Character ceiling for h1")
    h2_max_chars: int = Field(default=80, gt=0, description="Character ceiling for h2")
    h3_max_chars: int = Field(default=100, gt=0, description="Character ceiling for h3 and deeper")
    code_max_lines: int = Field(default=30, gt=0, description="Line ceiling for code blocks")

    def settleWait_compute(self, total_slides: int) -> int:
        """
        Compute the settle time after a slide becomes visible.

        Larger decks get a shorter per-slide wait: 600 ms up to 10 slides,
        50 ms less for every further 10 slides, never below 300 ms.

        Args:
            total_slides: Number of slides in the presentation

        Returns:
            Wait in milliseconds

        Example:
            >>> settings = AppSettings()
            >>> settings.settleWait_compute(40)
            450
        """
        wait = 600
        if total_slides > 10:
            wait = max(300, 600 - ((total_slides - 10) // 10) * 50)
        return wait


# Singleton instance - import this in your code
appsettings = AppSettings()
