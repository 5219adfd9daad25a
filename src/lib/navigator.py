"""
Page navigation for a running presentation

Drives one rendered page slide by slide: reads the slide total, jumps to
a slide, and waits until the slide has rendered and settled. Every step
is a blocking round trip on the page.

Navigation gets one bounded retry after a fixed backoff. A slide that
still does not become visible raises SlideNavigationError, which the
checker turns into a skipped slide.
"""

from typing import Any, Optional

from playwright.sync_api import Error as PlaywrightError

from ..models.errors import PresentationNotReadyError, SlideNavigationError
from .inspection import SLIDE_PAGE_SELECTOR
from .log import LOG, WARN


TOTAL_SLIDES_SCRIPT = """() => {
  if (typeof window.$slidev !== 'undefined' && window.$slidev.nav &&
      typeof window.$slidev.nav.total === 'number') {
    return window.$slidev.nav.total;
  }
  if (typeof window.__slidev__ !== 'undefined') {
    const slidev = window.__slidev__;
    if (slidev.nav && typeof slidev.nav.total === 'number') {
      return slidev.nav.total;
    }
  }
  const indicator = document.querySelector('.slidev-page-indicator');
  if (indicator) {
    const match = (indicator.textContent || '').match(/\\/\\s*(\\d+)/);
    if (match) return parseInt(match[1], 10);
  }
  return document.querySelectorAll('.slidev-page').length;
}"""

CURRENT_SLIDE_SCRIPT = """() => {
  const indicator = document.querySelector('.slidev-page-number');
  if (indicator) {
    const num = parseInt(indicator.textContent || '0', 10);
    return num || 1;
  }
  const match = (window.location.hash || '').match(/(\\d+)/);
  return match ? parseInt(match[1], 10) : 1;
}"""

NAVIGATE_SCRIPT = """(n) => {
  delete window.__slideRenderComplete;
  if (typeof window.navigateToSlide === 'function') {
    window.navigateToSlide(n);
  } else if (typeof window.$slidev !== 'undefined' && window.$slidev.nav) {
    window.$slidev.nav.go(n);
  } else if (typeof window.__slidev__ !== 'undefined' && window.__slidev__.nav &&
             typeof window.__slidev__.nav.go === 'function') {
    window.__slidev__.nav.go(n);
  } else {
    window.location.hash = `${n}`;
  }
}"""

SLIDE_VISIBLE_SCRIPT = """() => Array.from(document.querySelectorAll('.slidev-page')).some((page) => {
  const rect = page.getBoundingClientRect();
  return rect.width > 0 && rect.height > 0;
})"""

SLIDEV_API_SCRIPT = """() =>
  (typeof window.$slidev !== 'undefined' && window.$slidev.nav &&
   typeof window.$slidev.nav.total === 'number') ||
  typeof window.__slidev__ !== 'undefined'"""

# How long to wait for the presentation's navigation API before falling
# back to counting slide pages
API_TIMEOUT_MS = 5000


class PageNavigator:
    """
    Navigate a rendered presentation page

    A navigator belongs to one page and is used by one worker only.
    """

    def __init__(
        self,
        page: Any,
        wait_ms: int = 0,
        retry_backoff_ms: Optional[int] = None,
        load_timeout_ms: Optional[int] = None,
        ready_timeout_ms: Optional[int] = None,
    ) -> None:
        """
        Initialize navigator

        Args:
            page: Playwright Page (or an object with the same methods)
            wait_ms: Extra wait after every navigation
            retry_backoff_ms: Backoff before the single navigation retry
            load_timeout_ms: Time allowed for a slide to become visible
            ready_timeout_ms: Time allowed for the first slide page to appear
        """
        from ..config import appsettings

        self.page = page
        self.wait_ms = wait_ms
        self.retry_backoff_ms = (
            appsettings.retry_backoff_ms if retry_backoff_ms is None else retry_backoff_ms
        )
        self.load_timeout_ms = appsettings.load_timeout_ms if load_timeout_ms is None else load_timeout_ms
        self.ready_timeout_ms = appsettings.ready_timeout_ms if ready_timeout_ms is None else ready_timeout_ms
        self.total_slides: Optional[int] = None

    def totalSlides_get(self) -> int:
        """
        Read the total slide count from the page.

        Sources, in order: the presentation's navigation API, its internal
        state object, the "n / N" page indicator, the number of slide pages.

        Returns:
            Slide count; 0 when the page cannot be queried
        """
        try:
            total = self.page.evaluate(TOTAL_SLIDES_SCRIPT)
        except PlaywrightError as e:
            WARN(f"Could not read slide count: {e}")
            return 0
        self.total_slides = int(total or 0)
        return self.total_slides

    def currentSlide_get(self) -> int:
        """Slide number shown by the page; 1 when it cannot be determined"""
        try:
            return int(self.page.evaluate(CURRENT_SLIDE_SCRIPT) or 1)
        except PlaywrightError as e:
            LOG(f"Could not read current slide: {e}", level=2)
            return 1

    def slide_navigate(self, slide_number: int) -> None:
        """
        Go to a slide and wait until it has rendered.

        Args:
            slide_number: 1-based slide number

        Raises:
            SlideNavigationError: If the slide is not reached after one retry
        """
        try:
            self.navigation_attempt(slide_number)
            return
        except PlaywrightError as e:
            WARN(f"Error navigating to slide {slide_number}, retrying: {e}")

        self.page.wait_for_timeout(self.retry_backoff_ms)
        try:
            self.navigation_attempt(slide_number)
        except PlaywrightError as e:
            raise SlideNavigationError(slide_number, str(e)) from e

    def navigation_attempt(self, slide_number: int) -> None:
        LOG(f"Navigating to slide {slide_number}", level=3)
        self.page.evaluate(NAVIGATE_SCRIPT, slide_number)
        self.slideLoad_wait()

    def slideLoad_wait(self) -> None:
        """
        Wait for a visible slide page, then let it settle.

        The settle time shrinks with deck size (see settleWait_compute);
        the configured extra wait is added on top.

        Raises:
            playwright Error: If no slide page becomes visible in time
        """
        from ..config import appsettings

        self.page.wait_for_function(SLIDE_VISIBLE_SCRIPT, timeout=self.load_timeout_ms)

        if not self.total_slides:
            self.totalSlides_get()
        self.page.wait_for_timeout(appsettings.settleWait_compute(self.total_slides or 0))

        if self.wait_ms > 0:
            self.page.wait_for_timeout(self.wait_ms)

    def ready_wait(self) -> None:
        """
        Wait until the presentation has rendered its first slide.

        The navigation API is optional; without it the slide count falls
        back to counting slide pages.

        Raises:
            PresentationNotReadyError: If no slide page appears in time
        """
        try:
            self.page.wait_for_selector(SLIDE_PAGE_SELECTOR, timeout=self.ready_timeout_ms)
        except PlaywrightError as e:
            raise PresentationNotReadyError(
                f"Presentation not found or failed to load: {e}"
            ) from e

        try:
            self.page.wait_for_function(SLIDEV_API_SCRIPT, timeout=API_TIMEOUT_MS)
        except PlaywrightError:
            LOG("Navigation API unavailable, counting slide pages instead", level=2)

        try:
            self.slideLoad_wait()
        except PlaywrightError as e:
            raise PresentationNotReadyError(f"No slide became visible: {e}") from e
