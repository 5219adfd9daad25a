"""
Source attribution for detected issues

Maps an issue found on a rendered slide back to the markdown lines that
produced it. DOM-to-source correspondence is not always exactly
inferable, so matching is an ordered cascade of strategies, each tried in
turn until one succeeds:

    1. element finders for <li> and <p>, tolerant of stripped emphasis
    2. inline tags (strong, em, span, a, code) by first text occurrence
    3. block tags mapped to source constructs (h1, h2, h3/h4, pre, img)
    4. images by the trailing segment of their resolved source
    5. substring search of the first 50 characters of rendered text
    6. the whole slide range, with a three line preview

The last strategy always succeeds, so attribution never fails once a
source is loaded.

Example:
    >>> mapper = SourceMapper.project_load("./talk")
    >>> issue = mapper.sourceInfo_add(3, issue)
    >>> issue.source.line
    42
"""

import dataclasses
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

from ..models.errors import ProjectSourceNotFoundError
from ..models.issues import ElementInfo, Issue, SourceInfo
from ..models.parser import FoundElement
from ..models.presentation import ParsedPresentation, Slide
from .log import LOG
from .parser import Parser


class TagStrategy(str, Enum):
    """How a rendered tag is located in the source"""
    LIST_ITEM = "list-item"
    PARAGRAPH = "paragraph"
    INLINE = "inline"
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    CODE_BLOCK = "code-block"
    IMAGE = "image"
    GENERIC = "generic"


TAG_STRATEGIES: Dict[str, TagStrategy] = {
    "li": TagStrategy.LIST_ITEM,
    "p": TagStrategy.PARAGRAPH,
    "strong": TagStrategy.INLINE,
    "em": TagStrategy.INLINE,
    "span": TagStrategy.INLINE,
    "a": TagStrategy.INLINE,
    "code": TagStrategy.INLINE,
    "h1": TagStrategy.H1,
    "h2": TagStrategy.H2,
    "h3": TagStrategy.H3,
    "h4": TagStrategy.H3,
    "pre": TagStrategy.CODE_BLOCK,
    "img": TagStrategy.IMAGE,
}

# Source construct searched for each block strategy
BLOCK_CONSTRUCTS: Dict[TagStrategy, str] = {
    TagStrategy.H1: "h1",
    TagStrategy.H2: "h2",
    TagStrategy.H3: "h3",
    TagStrategy.CODE_BLOCK: "code",
    TagStrategy.IMAGE: "img",
}

FALLBACK_PREVIEW_LINES = 3


def tagStrategy_get(tag: str) -> TagStrategy:
    return TAG_STRATEGIES.get(tag.lower(), TagStrategy.GENERIC)


Strategy = Callable[[Parser, Slide, ElementInfo, TagStrategy], Optional[FoundElement]]


def elementSpecific_find(
    parser: Parser, slide: Slide, element: ElementInfo, strategy: TagStrategy
) -> Optional[FoundElement]:
    """List items and paragraphs, compared without emphasis markers"""
    if not element.text:
        return None
    if strategy == TagStrategy.LIST_ITEM:
        return parser.listItem_find(slide, element.text)
    if strategy == TagStrategy.PARAGRAPH:
        return parser.paragraph_find(slide, element.text)
    return None


def inlineText_find(
    parser: Parser, slide: Slide, element: ElementInfo, strategy: TagStrategy
) -> Optional[FoundElement]:
    if strategy != TagStrategy.INLINE or not element.text:
        return None
    return parser.element_findByText(slide, element.text)


def blockConstruct_find(
    parser: Parser, slide: Slide, element: ElementInfo, strategy: TagStrategy
) -> Optional[FoundElement]:
    construct = BLOCK_CONSTRUCTS.get(strategy)
    if construct is None:
        return None
    return parser.element_findInSlide(slide, construct, element.text)


def imageSource_find(
    parser: Parser, slide: Slide, element: ElementInfo, strategy: TagStrategy
) -> Optional[FoundElement]:
    """Match an image by the last path segment of its resolved source"""
    if strategy != TagStrategy.IMAGE or not element.src:
        return None
    segment = element.src.split("?")[0].split("#")[0].rstrip("/").split("/")[-1]
    if not segment:
        return None
    return parser.element_findByText(slide, segment)


def textSubstring_find(
    parser: Parser, slide: Slide, element: ElementInfo, strategy: TagStrategy
) -> Optional[FoundElement]:
    if not element.text:
        return None
    return parser.element_findByText(slide, element.text)


def slideRange_fallback(
    parser: Parser, slide: Slide, element: ElementInfo, strategy: TagStrategy
) -> Optional[FoundElement]:
    """Attribute to the whole slide; always succeeds"""
    preview = "\n".join(slide.lines[:FALLBACK_PREVIEW_LINES]) + "..."
    return FoundElement(line=slide.line_start, line_end=slide.line_end, content=preview)


ATTRIBUTION_CASCADE: List[Strategy] = [
    elementSpecific_find,
    inlineText_find,
    blockConstruct_find,
    imageSource_find,
    textSubstring_find,
    slideRange_fallback,
]


class SourceMapper:
    """
    Attribute issues on numbered slides to a parsed markdown source

    A mapper without a loaded source leaves every issue unchanged.
    """

    def __init__(
        self,
        presentation: Optional[ParsedPresentation] = None,
        source_file: str = "",
        parser: Optional[Parser] = None,
        cascade: Optional[Sequence[Strategy]] = None,
    ) -> None:
        """
        Initialize mapper

        Args:
            presentation: Parsed source, or None for a mapper that never enriches
            source_file: File name reported in SourceInfo (e.g., "slides.md")
            parser: Parser whose lookups back the cascade
            cascade: Strategy list, tried in order; defaults to ATTRIBUTION_CASCADE
        """
        self.presentation = presentation
        self.source_file = source_file
        self.parser = parser or Parser()
        self.cascade: List[Strategy] = list(cascade or ATTRIBUTION_CASCADE)

    @classmethod
    def source_parse(cls, source: str, source_file: str = "slides.md") -> "SourceMapper":
        """Build a mapper from markdown text already in memory"""
        parser = Parser()
        return cls(parser.presentation_parse(source), source_file, parser)

    @classmethod
    def project_load(
        cls,
        project_dir: Union[str, Path],
        candidates: Optional[Sequence[str]] = None,
    ) -> "SourceMapper":
        """
        Load the presentation source from a project directory.

        Candidates are tried in order; the first existing file wins.

        Args:
            project_dir: Directory holding the markdown source
            candidates: File names to try; defaults to the configured
                        source candidates (slides.md, index.md, README.md)

        Returns:
            SourceMapper over the parsed file

        Raises:
            ProjectSourceNotFoundError: If no candidate file exists or can be read
        """
        if candidates is None:
            from ..config import appsettings
            candidates = appsettings.source_candidates

        directory = Path(project_dir)
        for name in candidates:
            path = directory / name
            if not path.is_file():
                continue
            try:
                source = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                LOG(f"Could not read {path}: {e}", level=2)
                continue
            LOG(f"Loaded presentation source {path}", level=1)
            return cls.source_parse(source, name)

        raise ProjectSourceNotFoundError(
            f"No presentation markdown found in {directory}. "
            f"Looked for: {', '.join(candidates)}"
        )

    def source_has(self) -> bool:
        return self.presentation is not None

    def slide_get(self, slide_number: int) -> Optional[Slide]:
        """Slide for a 1-based slide number, or None when out of range"""
        if self.presentation is None:
            return None
        index = slide_number - 1
        if index < 0 or index >= len(self.presentation.slides):
            return None
        return self.presentation.slides[index]

    def element_locate(self, slide: Slide, element: ElementInfo) -> FoundElement:
        """
        Run the cascade for one element

        Args:
            slide: Slide the element was rendered on
            element: Element descriptor from the issue

        Returns:
            First strategy result; the slide range when nothing else matches
        """
        strategy = tagStrategy_get(element.tag)
        for find in self.cascade:
            found = find(self.parser, slide, element, strategy)
            if found is not None:
                LOG(f"{element.selector}: matched by {find.__name__} at line {found.line}", level=3)
                return found
        return slideRange_fallback(self.parser, slide, element, strategy)  # type: ignore[return-value]

    def sourceInfo_add(self, slide_number: int, issue: Issue) -> Issue:
        """
        Enrich an issue with the source lines it came from

        Args:
            slide_number: 1-based slide number the issue was found on
            issue: Detected issue

        Returns:
            A copy of the issue carrying SourceInfo, or the issue unchanged
            when no source is loaded or the slide number is out of range
        """
        slide = self.slide_get(slide_number)
        if slide is None:
            return issue

        found = self.element_locate(slide, issue.element)
        source = SourceInfo(
            file=self.source_file,
            line=found.line,
            line_end=found.line_end,
            content=found.content,
        )
        return dataclasses.replace(issue, source=source)
