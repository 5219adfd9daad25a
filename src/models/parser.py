"""
Parser-specific data models

Type-safe structures for parser operations and return values.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .presentation import ContentNode


@dataclass
class ParseContext:
    """
    Mutable accumulator threaded through one parse call

    Created fresh by Parser.presentation_parse() and handed to every
    sub-parser, so the Parser itself holds no per-call state and can be
    shared between callers.

    Attributes:
        warnings: Human-readable warnings in the order they were raised

    Example:
        ctx = ParseContext()
        ctx.warning_add("Unclosed code block at line 12")
        ctx.warnings  # ['Unclosed code block at line 12']
    """
    warnings: List[str] = field(default_factory=list)

    def warning_add(self, message: str) -> None:
        self.warnings.append(message)


@dataclass
class RawSlide:
    """
    Slide text as cut from the document, before content extraction

    Attributes:
        content: Slide lines joined by newlines
        start_line: 1-based line of the first slide line in the document
        end_line: 1-based line of the last slide line in the document
    """
    content: str
    start_line: int
    end_line: int


@dataclass
class SubParseResult:
    """
    Result of one block sub-parser

    Attributes:
        node: The emitted node, or None when the lines formed nothing
        resume: Index (slide-relative) to continue scanning from. Always
                greater than the index the sub-parser was started on.
    """
    node: Optional[ContentNode]
    resume: int


@dataclass(frozen=True)
class FoundElement:
    """
    A located source range for a rendered element

    Attributes:
        line: First matching source line (1-based, original document)
        line_end: Last matching source line
        content: Source text of the range
    """
    line: int
    line_end: int
    content: str
