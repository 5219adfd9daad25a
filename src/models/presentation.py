"""
Parsed presentation models

Output structures of the markdown structure parser: slides with their
original line ranges, typed content nodes, slide metrics and the
document-wide configuration.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .geometry import ContentArea


class NodeType(str, Enum):
    """Kinds of content unit extracted from a slide body"""
    HEADING = "heading"
    LIST = "list"
    CODE_BLOCK = "code-block"
    IMAGE = "image"
    TABLE = "table"
    BLOCKQUOTE = "blockquote"
    PARAGRAPH = "paragraph"
    COMPONENT = "component"
    SLOT_SEPARATOR = "slot-separator"


@dataclass(frozen=True)
class ContentNode:
    """
    Typed semantic unit extracted from a slide body

    Line numbers are 1-based and refer to the original document, never to
    the slide. A node always lies within its slide's line range.

    Attributes:
        type: Node kind
        line_start: First source line of the node
        line_end: Last source line of the node (inclusive)
        slide_index: 0-based index of the owning slide
        content: Raw source lines of the node joined by newlines
        text: Plain text of the node, markers stripped (None for markers)
        char_count: Length of text (None when text is None)
        level: Heading level (headings only)
        metadata: Free-form per-type details (language, itemCount, src, ...)
        children: Nested nodes (sub-lists, nested quotes)

    Example:
        For "## Agenda" on line 7 of slide 2:
        ContentNode(type=NodeType.HEADING, line_start=7, line_end=7,
                    slide_index=2, content="## Agenda", text="Agenda",
                    char_count=6, level=2, metadata={"level": 2})
    """
    type: NodeType
    line_start: int
    line_end: int
    slide_index: int
    content: str
    text: Optional[str] = None
    char_count: Optional[int] = None
    level: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    children: List["ContentNode"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "type": self.type.value,
            "lineStart": self.line_start,
            "lineEnd": self.line_end,
            "slideIndex": self.slide_index,
            "content": self.content,
            "metadata": dict(self.metadata),
        }
        if self.level is not None:
            result["level"] = self.level
        if self.text is not None:
            result["text"] = self.text
            result["charCount"] = self.char_count
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


@dataclass(frozen=True)
class ElementCounts:
    headings: int = 0
    lists: int = 0
    code_blocks: int = 0
    images: int = 0
    tables: int = 0


@dataclass(frozen=True)
class SlideMetrics:
    """Counts derived from a slide's node list"""
    total_characters: int
    word_count: int
    element_counts: ElementCounts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCharacters": self.total_characters,
            "wordCount": self.word_count,
            "elementCounts": {
                "headings": self.element_counts.headings,
                "lists": self.element_counts.lists,
                "codeBlocks": self.element_counts.code_blocks,
                "images": self.element_counts.images,
                "tables": self.element_counts.tables,
            },
        }


@dataclass(frozen=True)
class Slide:
    """
    One logical slide of the presentation source

    Attributes:
        index: 0-based position among emitted slides
        content: Raw slide text, including its own metadata block if any
        line_start: First line of the slide in the original document
        line_end: Last line of the slide in the original document
        frontmatter: Per-slide metadata (empty when absent or malformed)
        layout: Layout name from metadata, "default" otherwise
        content_nodes: Ordered top-level content nodes
        content_area: Primary slot of the layout on the presentation canvas
        metrics: Counts derived from content_nodes
    """
    index: int
    content: str
    line_start: int
    line_end: int
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    layout: str = "default"
    content_nodes: List[ContentNode] = field(default_factory=list)
    content_area: ContentArea = field(default_factory=lambda: ContentArea(868, 472))
    metrics: SlideMetrics = field(
        default_factory=lambda: SlideMetrics(0, 0, ElementCounts())
    )

    @property
    def lines(self) -> List[str]:
        return self.content.split("\n")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "rawContent": self.content,
            "layout": self.layout,
            "contentNodes": [node.to_dict() for node in self.content_nodes],
            "contentArea": {"width": self.content_area.width, "height": self.content_area.height},
            "metrics": self.metrics.to_dict(),
            "frontmatter": dict(self.frontmatter),
            "lineStart": self.line_start,
            "lineEnd": self.line_end,
        }


@dataclass(frozen=True)
class GlobalConfig:
    """
    Document-wide configuration from the leading metadata block

    Attributes:
        theme: Theme name
        canvas_width: Canvas width in px
        aspect_ratio: "w/h" string
        fonts: Font family overrides (sans/serif/mono), if declared
        overflow_checker: Checker settings embedded in the document, if declared
        raw: The full parsed metadata mapping
    """
    theme: str = "default"
    canvas_width: float = 980
    aspect_ratio: str = "16/9"
    fonts: Optional[Dict[str, Any]] = None
    overflow_checker: Optional[Dict[str, Any]] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "theme": self.theme,
            "canvasWidth": self.canvas_width,
            "aspectRatio": self.aspect_ratio,
            "fonts": self.fonts,
            "overflowChecker": self.overflow_checker,
        }


@dataclass(frozen=True)
class ParsedPresentation:
    """Complete parse result: config, slides, warnings and line count"""
    global_config: GlobalConfig
    slides: List[Slide]
    warnings: List[str]
    total_lines: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "globalConfig": self.global_config.to_dict(),
            "slides": [slide.to_dict() for slide in self.slides],
            "warnings": list(self.warnings),
            "totalLines": self.total_lines,
        }


@dataclass(frozen=True)
class SlideAnalysisSummary:
    slide_index: int
    layout: str
    node_count: int
    character_count: int
