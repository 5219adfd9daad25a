"""
Check orchestration for a running presentation

Wires the pieces of a check run into a functional pipeline over
CheckState:

    source_load        parse the project markdown, if a project is given
    slideCount_probe   wait for the presentation, read the slide total,
                       resolve the page range
    slides_check       navigate and detect, sequentially or in chunks
    results_aggregate  build the CheckResult

Concurrency: with N workers the page range is cut into contiguous chunks
of ceil(len / N) slides. Each worker opens its own rendering session
against the same address and checks its chunk in ascending order.
Workers share no mutable state; their results are concatenated in chunk
order. Every worker is awaited before the first worker error, if any,
is re-raised.

Example:
    >>> state = CheckState.state_createFromSettings("http://localhost:3030", project=Path("talk"))
    >>> result = check_run(state)
    >>> result.to_dict()["issuesFound"]
    3
"""

import contextvars
import math
from concurrent.futures import ThreadPoolExecutor, wait
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, ContextManager, Dict, Iterator, List, Optional, Tuple

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from ..models.errors import (
    PageRangeError,
    PresentationNotReadyError,
    ProjectSourceNotFoundError,
    SlideNavigationError,
    SlidefitError,
)
from ..models.issues import CheckResult, IssueType, SlideResult, TypeSummary
from ..models.state import CheckState, pipeline
from .detector import OverflowDetector
from .log import LOG, WARN, state_connectToLogger
from .mapper import SourceMapper
from .navigator import PageNavigator


SessionFactory = Callable[[str], ContextManager[Any]]


def pageRange_parse(pages: Optional[str], total_slides: int) -> List[int]:
    """
    Resolve a page range string against the slide total.

    Comma-separated parts, each a single number or an inclusive "a-b"
    range. Numbers past the total are dropped. The result is sorted and
    free of duplicates.

    Args:
        pages: Range string such as "1-3,5", or None/"" for every slide
        total_slides: Slide count of the presentation

    Returns:
        Ascending 1-based slide numbers

    Raises:
        PageRangeError: If a part is not a number or a range of numbers

    Example:
        >>> pageRange_parse("5,1-3,2", 10)
        [1, 2, 3, 5]
    """
    if not pages or not pages.strip():
        return list(range(1, total_slides + 1))

    selected = set()
    for part in pages.split(","):
        trimmed = part.strip()
        if "-" in trimmed:
            bounds = trimmed.split("-")
            if len(bounds) != 2:
                raise PageRangeError(f"Invalid page range: {trimmed}")
            try:
                start, end = (int(bound.strip()) for bound in bounds)
            except ValueError:
                raise PageRangeError(f"Invalid page range: {trimmed}")
            for number in range(max(start, 1), min(end, total_slides) + 1):
                selected.add(number)
        else:
            try:
                number = int(trimmed)
            except ValueError:
                raise PageRangeError(f"Invalid page number: {trimmed}")
            if 1 <= number <= total_slides:
                selected.add(number)

    return sorted(selected)


def chunks_split(items: List[int], workers: int) -> List[List[int]]:
    """
    Cut items into contiguous chunks of ceil(len / workers).

    Example:
        >>> chunks_split([1, 2, 3, 4, 5], 2)
        [[1, 2, 3], [4, 5]]
    """
    if not items:
        return []
    size = math.ceil(len(items) / max(workers, 1))
    return [items[i:i + size] for i in range(0, len(items), size)]


@contextmanager
def browserSession_open(url: str) -> Iterator[Any]:
    """
    Open an independent Playwright session on the presentation.

    Each call starts its own Playwright driver and browser, so sessions
    may live on different threads.

    Args:
        url: Address of the running presentation

    Yields:
        A Page loaded at the address
    """
    from ..config import appsettings

    with sync_playwright() as playwright:
        browser_type = getattr(playwright, appsettings.browser)
        browser = browser_type.launch(headless=appsettings.headless)
        try:
            page = browser.new_page(viewport={
                "width": appsettings.viewport_width,
                "height": appsettings.viewport_height,
            })
            LOG(f"Opening {url} in {appsettings.browser}", level=2)
            page.goto(url, wait_until="networkidle")
            yield page
        finally:
            browser.close()


def session_open(state: CheckState) -> ContextManager[Any]:
    factory: SessionFactory = state.sessionFactory or browserSession_open
    return factory(state.url)


def navigator_create(state: CheckState, page: Any) -> PageNavigator:
    return PageNavigator(page, wait_ms=state.waitMs)


def slide_check(
    slide_number: int,
    navigator: PageNavigator,
    detector: OverflowDetector,
    mapper: Optional[SourceMapper],
) -> SlideResult:
    """
    Navigate to one slide, detect its issues and attribute them

    Raises:
        SlideNavigationError: If the slide cannot be reached
        ActiveSlideNotFoundError: If the page shows no slide at all
    """
    navigator.slide_navigate(slide_number)
    issues = detector.issues_detect()
    if mapper is not None:
        issues = [mapper.sourceInfo_add(slide_number, issue) for issue in issues]
    return SlideResult(page=slide_number, issues=issues)


def chunk_check(state: CheckState, chunk: List[int]) -> Tuple[List[SlideResult], List[int]]:
    """
    Check a contiguous chunk of slides in one session

    Runs on a worker thread (inside a copied context) or on the caller's
    thread for sequential runs. Slides that fail to navigate or fail
    during inspection are skipped with a warning.

    Args:
        state: Run state (read only here)
        chunk: Ascending slide numbers

    Returns:
        Tuple of (results for checked slides, skipped slide numbers)
    """
    state_connectToLogger(state)
    results: List[SlideResult] = []
    skipped: List[int] = []

    with session_open(state) as page:
        navigator = navigator_create(state, page)
        navigator.ready_wait()
        navigator.total_slides = state.totalSlides or None
        detector = OverflowDetector(page, state.detection)

        for slide_number in chunk:
            LOG(f"Checking slide {slide_number}/{state.totalSlides}", level=1)
            try:
                result = slide_check(slide_number, navigator, detector, state.sourceMapper)
            except SlideNavigationError as e:
                WARN(f"Skipping slide {slide_number}: {e}")
                skipped.append(slide_number)
                continue
            except PlaywrightError as e:
                WARN(f"Skipping slide {slide_number}: inspection failed: {e}")
                skipped.append(slide_number)
                continue
            if result.issue_count:
                LOG(f"Slide {slide_number}: {result.issue_count} issues", level=1)
            results.append(result)

    return results, skipped


def source_load(state: CheckState) -> CheckState:
    """
    Pipeline stage: load the project markdown for attribution

    A missing source is a warning; the run continues without attribution.
    """
    state_connectToLogger(state)
    new_state = state.copy()
    if state.project is None or state.sourceMapper is not None:
        return new_state

    try:
        new_state.sourceMapper = SourceMapper.project_load(state.project)
    except ProjectSourceNotFoundError as e:
        WARN(f"Could not load project markdown: {e}")
        return new_state

    for warning in new_state.sourceMapper.presentation.warnings:  # type: ignore[union-attr]
        LOG(f"Source: {warning}", level=1)
    return new_state


def slideCount_probe(state: CheckState) -> CheckState:
    """
    Pipeline stage: read the slide total and resolve the page range

    Raises:
        PresentationNotReadyError: If the presentation reports no slides
        PageRangeError: If the page range string is malformed
    """
    state_connectToLogger(state)
    new_state = state.copy()

    with session_open(state) as page:
        navigator = navigator_create(state, page)
        navigator.ready_wait()
        total = navigator.totalSlides_get()

    if total == 0:
        raise PresentationNotReadyError("No slides found in the presentation")

    new_state.totalSlides = total
    new_state.pageRange = pageRange_parse(state.pages, total)
    LOG(f"Presentation has {total} slides, checking {len(new_state.pageRange)}", level=1)
    return new_state


def slides_check(state: CheckState) -> CheckState:
    """
    Pipeline stage: check every slide of the page range

    One worker checks on the caller's thread. More workers each get a
    contiguous chunk and their own session on a thread pool; each thread
    runs in a copy of the caller's context so logging follows the run.

    Raises:
        The first worker error, after every worker has finished
    """
    state_connectToLogger(state)
    new_state = state.copy()
    workers = max(1, min(state.concurrency, len(state.pageRange)))
    chunks = chunks_split(state.pageRange, workers)

    outcomes: List[Tuple[List[SlideResult], List[int]]] = []
    if len(chunks) <= 1:
        outcomes = [chunk_check(state, chunk) for chunk in chunks]
    else:
        LOG(f"Checking {len(state.pageRange)} slides with {len(chunks)} workers", level=1)
        with ThreadPoolExecutor(max_workers=len(chunks)) as executor:
            futures = [
                executor.submit(contextvars.copy_context().run, chunk_check, state, chunk)
                for chunk in chunks
            ]
            wait(futures)
        for future in futures:
            error = future.exception()
            if error is not None:
                raise error
        outcomes = [future.result() for future in futures]

    new_state.slideResults = [result for results, _ in outcomes for result in results]
    new_state.skipped = [number for _, skipped in outcomes for number in skipped]
    return new_state


def results_aggregate(state: CheckState) -> CheckState:
    """Pipeline stage: fold slide results into the CheckResult"""
    state_connectToLogger(state)
    new_state = state.copy()
    new_state.checkResult = checkResult_build(state.totalSlides, state.slideResults, state.skipped)
    LOG(
        f"{new_state.checkResult.issues_found} issues on "
        f"{len(new_state.checkResult.slides_with_issues)} slides",
        level=1,
    )
    return new_state


def checkResult_build(
    total_slides: int, slide_results: List[SlideResult], skipped: Optional[List[int]] = None
) -> CheckResult:
    """
    Aggregate slide results

    Only slides with issues are kept. The per-type summary counts slides,
    not issues, and lists them in ascending order.

    Args:
        total_slides: Slide count of the presentation
        slide_results: Results in worker-concatenated order
        skipped: Slide numbers skipped during the run

    Returns:
        CheckResult stamped with the current UTC time
    """
    with_issues = [result for result in slide_results if result.issue_count]

    slides_by_type: Dict[IssueType, set] = {kind: set() for kind in IssueType}
    for result in with_issues:
        for issue in result.issues:
            slides_by_type[issue.type].add(result.page)

    return CheckResult(
        timestamp=datetime.now(timezone.utc).isoformat(),
        total_slides=total_slides,
        slides_with_issues=[result.page for result in with_issues],
        issues_found=sum(result.issue_count for result in with_issues),
        summary={
            kind: TypeSummary(count=len(pages), slides=sorted(pages))
            for kind, pages in slides_by_type.items()
        },
        slides=with_issues,
        skipped=sorted(skipped or []),
    )


def check_run(state: CheckState) -> CheckResult:
    """
    Run a complete check

    Args:
        state: Initial run state (see CheckState.state_createFromSettings)

    Returns:
        The aggregated CheckResult

    Raises:
        PresentationNotReadyError: If the presentation never shows a slide
        ActiveSlideNotFoundError: If a page shows no slide while checking
        PageRangeError: If the page range string is malformed
    """
    final_state = pipeline(
        state,
        source_load,
        slideCount_probe,
        slides_check,
        results_aggregate,
    )
    if final_state.checkResult is None:
        raise SlidefitError("Check pipeline finished without a result")
    return final_state.checkResult
