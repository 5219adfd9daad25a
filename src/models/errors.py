"""
Exception types for slidefit

Parsing and attribution never raise: they degrade to warnings and to the
whole-slide fallback respectively. The exceptions below cover the live
side (navigation, active slide resolution) and project loading.
"""


class SlidefitError(Exception):
    """Base class for all slidefit errors"""
    pass


class ActiveSlideNotFoundError(SlidefitError):
    """
    Raised when no slide can be resolved as active on the rendered page.

    Every step of the fallback chain (active marker, URL slide number,
    first visible slide, first slide) came up empty. There is nothing
    worth reporting, so the whole batch is aborted.
    """
    pass


class SlideNavigationError(SlidefitError):
    """Raised when a slide cannot be reached even after the retry"""

    def __init__(self, slide_number: int, message: str) -> None:
        self.slide_number = slide_number
        super().__init__(f"Slide {slide_number}: {message}")


class PresentationNotReadyError(SlidefitError):
    """Raised when the presentation never renders a slide page"""
    pass


class ProjectSourceNotFoundError(SlidefitError):
    """Raised when no presentation markdown exists in a project directory"""
    pass


class PageRangeError(SlidefitError):
    """Raised for a malformed page range such as '3-x'"""
    pass
