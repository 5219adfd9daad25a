"""
Parser for slide markdown

Transforms a markdown presentation into ordered slides and typed content
nodes, keeping original 1-based line numbers throughout.

The parser operates in two phases:
1. Splitting: Cut the document on standalone '---' lines into slides,
   separating the document-wide metadata block from per-slide blocks
2. Extraction: One forward pass per slide emitting ContentNodes for
   headings, code fences, lists, images, tables, quotes, components,
   slot separators and paragraphs

Key features:
- Line numbers always refer to the original document, never to the slide
- Malformed metadata and unterminated fences become warnings, never errors
- Warnings accumulate in a ParseContext created per call, so one Parser
  can serve any number of callers
- Every block sub-parser returns the index to resume from, always past
  its own start line

Example:
    >>> parsed = Parser().presentation_parse("# One\\n\\n---\\n\\n# Two\\n")
    >>> [(s.line_start, s.line_end) for s in parsed.slides]
    [(1, 2), (4, 6)]
    >>> parsed.slides[1].content_nodes[0].text
    'Two'
"""

import math
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

from ..models.geometry import ContentArea
from ..models.parser import FoundElement, ParseContext, RawSlide, SubParseResult
from ..models.presentation import (
    ContentNode,
    ElementCounts,
    GlobalConfig,
    NodeType,
    ParsedPresentation,
    Slide,
    SlideAnalysisSummary,
    SlideMetrics,
)
from .layouts import layoutContentArea_get
from .log import LOG


SEPARATOR = "---"

# Keys that mark the leading block as document-wide configuration
GLOBAL_KEYS: Tuple[str, ...] = (
    "theme", "highlighter", "colorSchema", "favicon", "fonts", "canvasWidth", "aspectRatio",
)

# Keys that mark a block after a separator as per-slide metadata
SLIDE_KEYS: Tuple[str, ...] = (
    "layout", "class", "clicks", "transition", "background", "backgroundSize",
    "dragPos", "preload", "routeAlias", "hide",
)

DEFAULT_ASPECT_RATIO = "16/9"

HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
FENCE_INFO_RE = re.compile(r"^\s*```\s*([\w+#.-]*)")
UNORDERED_RE = re.compile(r"^\s*[-*+]\s+")
ORDERED_RE = re.compile(r"^\s*\d+\.\s+")
UNORDERED_START_RE = re.compile(r"^\s*[-*+]\s+\S")
ORDERED_START_RE = re.compile(r"^\s*\d+\.\s+\S")
LIST_MARKER_RE = re.compile(r"^\s*(?:[-*+]|\d+\.)\s+")
IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
QUOTE_MARKERS_RE = re.compile(r"^\s*((?:>\s*)+)")
COMPONENT_OPEN_RE = re.compile(r"<(v-clicks|v-click)(\s[^>]*)?>")
COMPONENT_CLOSE_RE = re.compile(r"</(v-clicks|v-click)>")
SLOT_RE = re.compile(r"^::(\w+)::$")

# Inline markup stripped before comparing rendered text with source text
LINK_RE = re.compile(r"!?\[([^\]]*)\]\([^)]*\)")
HTML_TAG_RE = re.compile(r"<[^>]+>")
EMPHASIS_RE = re.compile(r"(\*\*|__|~~|`|\*|_)")
WHITESPACE_RE = re.compile(r"\s+")


def text_normalize(text: str) -> str:
    """
    Reduce markdown or rendered text to comparable plain text.

    Strips link/image syntax down to its label, HTML tags, emphasis markers
    (** __ ~~ ` * _) and collapses whitespace. Applied to both sides of a
    comparison, so lossy removals cancel out.

    Args:
        text: Source line or DOM text

    Returns:
        Normalized text

    Example:
        >>> text_normalize("Use **bold** and [links](http://x)  here")
        'Use bold and links here'
    """
    result = LINK_RE.sub(r"\1", text)
    result = HTML_TAG_RE.sub("", result)
    result = EMPHASIS_RE.sub("", result)
    return WHITESPACE_RE.sub(" ", result).strip()


def indent_width(line: str) -> int:
    return len(line) - len(line.lstrip())


def depth_fromIndent(line: str) -> int:
    """List nesting depth: two columns of indent per level"""
    return indent_width(line) // 2


def quote_depth(line: str) -> int:
    """Number of leading '>' markers, spaces between markers allowed"""
    match = QUOTE_MARKERS_RE.match(line)
    if not match:
        return 0
    return match.group(1).count(">")


def tableSeparator_is(line: str) -> bool:
    """True for a header separator row such as '| --- | :-: |'"""
    stripped = line.strip()
    return stripped.startswith("|") and "-" in stripped and set(stripped) <= set("|-: \t")


def canvasHeight_calculate(width: float, aspect_ratio: str) -> float:
    """
    Canvas height for a width and an aspect ratio string.

    The configured default width with the default ratio keeps the
    configured default height (552px for the 980px theme canvas);
    otherwise height is ceil(width * h / w). A malformed ratio falls back
    to the default height.
    """
    from ..config import appsettings

    default_height = appsettings.canvas_height
    if width == appsettings.canvas_width and (aspect_ratio == DEFAULT_ASPECT_RATIO or not aspect_ratio):
        return default_height

    parts = str(aspect_ratio).split("/")
    if len(parts) == 2:
        try:
            w = float(parts[0])
            h = float(parts[1])
        except ValueError:
            return default_height
        if w > 0 and h > 0:
            return math.ceil(width * (h / w))
    return default_height


class Parser:
    """
    Parser for slide markdown presentations

    Handles:
    - Document-wide and per-slide YAML metadata blocks
    - Slide splitting with original line tracking
    - Typed content extraction per slide
    - Lookups used by source attribution (headings, images, code, text)

    The parser keeps no per-call state; warnings travel in a ParseContext.
    """

    def __init__(
        self,
        global_keys: Sequence[str] = GLOBAL_KEYS,
        slide_keys: Sequence[str] = SLIDE_KEYS,
    ) -> None:
        """
        Initialize parser

        Args:
            global_keys: Keys recognizing the document-wide metadata block
            slide_keys: Keys recognizing a per-slide metadata block
        """
        self.global_keys = tuple(global_keys)
        self.slide_keys = tuple(slide_keys)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def presentation_parse(self, source: str) -> ParsedPresentation:
        """
        Parse a complete presentation

        Main entry point. Splits the document into slides, builds the
        global configuration and extracts content nodes and metrics for
        every slide.

        Args:
            source: Raw markdown document

        Returns:
            ParsedPresentation with global config, slides, warnings and the
            document's line count. Empty or whitespace-only input yields no
            slides.
        """
        ctx = ParseContext()
        lines = source.replace("\r\n", "\n").split("\n")

        raw_slides, global_meta = self.slides_split(lines, ctx)
        global_config = self.globalConfig_build(global_meta, ctx)

        slides = [
            self.slideContent_parse(raw, index, global_config, ctx)
            for index, raw in enumerate(raw_slides)
        ]
        LOG(f"Parsed {len(slides)} slides from {len(lines)} lines", level=2)

        return ParsedPresentation(
            global_config=global_config,
            slides=slides,
            warnings=list(ctx.warnings),
            total_lines=len(lines),
        )

    def slides_parse(self, source: str) -> List[RawSlide]:
        """
        Split a document into raw slides only, without content extraction

        Args:
            source: Raw markdown document

        Returns:
            RawSlide list with original line ranges
        """
        lines = source.replace("\r\n", "\n").split("\n")
        raw_slides, _ = self.slides_split(lines, ParseContext())
        return raw_slides

    # ------------------------------------------------------------------
    # Phase 1: splitting
    # ------------------------------------------------------------------

    def slides_split(
        self, lines: List[str], ctx: ParseContext
    ) -> Tuple[List[RawSlide], Dict[str, Any]]:
        """
        Split document lines into slides

        Rules:
            - A '---' on line 1 opens the document-wide block when one of the
              global keys appears before its closing '---'; otherwise it opens
              the first slide's own metadata block
            - The document-wide block belongs to no slide
            - A standalone '---' ends the current slide. If per-slide metadata
              follows, the '---' is the first line of the next slide; otherwise
              it is a plain boundary owned by neither slide
            - While a per-slide block is open, the next '---' closes it
            - Whitespace-only slides are dropped

        Args:
            lines: Document lines
            ctx: Parse context collecting warnings

        Returns:
            Tuple of (raw slides, parsed document-wide metadata)
        """
        if not any(line.strip() for line in lines):
            return [], {}

        slides: List[RawSlide] = []
        current: List[str] = []
        slide_start = 1
        global_meta: Dict[str, Any] = {}

        in_global = False
        in_slide_meta = False
        slide_meta_line = 0

        for i, line in enumerate(lines):
            line_number = i + 1
            stripped = line.strip()

            if line_number == 1 and stripped == SEPARATOR:
                if self.globalBlock_looksLike(lines, i):
                    in_global = True
                    continue
                current.append(line)
                slide_start = line_number
                in_slide_meta = True
                slide_meta_line = line_number
                continue

            if in_global:
                if stripped == SEPARATOR:
                    in_global = False
                    global_meta = self.metadata_parse(lines[1:i], 1, ctx)
                    slide_start = line_number + 1
                continue

            if in_slide_meta and stripped == SEPARATOR:
                current.append(line)
                in_slide_meta = False
                continue

            if stripped == SEPARATOR:
                if current:
                    slides.append(RawSlide("\n".join(current), slide_start, line_number - 1))
                    current = []
                slide_start = line_number
                if self.slideBlock_looksLike(lines, i):
                    current.append(line)
                    in_slide_meta = True
                    slide_meta_line = line_number
                else:
                    slide_start = line_number + 1
                continue

            current.append(line)

        if in_global:
            ctx.warning_add("Unclosed global metadata block at line 1, using defaults")
        if in_slide_meta:
            ctx.warning_add(f"Unclosed slide metadata block at line {slide_meta_line}")

        if current:
            slides.append(RawSlide("\n".join(current), slide_start, len(lines)))

        return [slide for slide in slides if slide.content.strip()], global_meta

    def globalBlock_looksLike(self, lines: List[str], start: int) -> bool:
        """True when a global key appears before the block's closing '---'"""
        for line in lines[start + 1:]:
            stripped = line.strip()
            if stripped == SEPARATOR:
                break
            if any(stripped.startswith(key + ":") for key in self.global_keys):
                return True
        return False

    def slideBlock_looksLike(self, lines: List[str], start: int) -> bool:
        """
        Decide whether the lines after a '---' are per-slide metadata

        A slide key makes it metadata. So does reaching the closing '---'
        before any blank line or heading. A blank line or heading first
        means the '---' was a plain boundary.
        """
        for line in lines[start + 1:]:
            stripped = line.strip()
            if stripped == SEPARATOR:
                return True
            if stripped == "" or stripped.startswith("#"):
                return False
            if any(stripped.startswith(key + ":") for key in self.slide_keys):
                return True
        return False

    def metadata_parse(self, block: List[str], line_number: int, ctx: ParseContext) -> Dict[str, Any]:
        """
        Parse the body of a metadata block with YAML

        Args:
            block: Lines between the opening and closing '---'
            line_number: Line of the opening '---' (for warnings)
            ctx: Parse context collecting warnings

        Returns:
            Parsed mapping, or {} with a warning when the YAML is malformed
            or is not a mapping
        """
        text = "\n".join(block)
        if not text.strip():
            return {}

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            problem = getattr(e, "problem", None) or str(e).split("\n")[0]
            ctx.warning_add(
                f"Failed to parse metadata block at line {line_number} ({problem}), using defaults"
            )
            LOG(f"Metadata YAML error at line {line_number}: {e}", level=3)
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            ctx.warning_add(f"Metadata block at line {line_number} is not a mapping, using defaults")
            return {}
        return data

    def globalConfig_build(self, meta: Dict[str, Any], ctx: ParseContext) -> GlobalConfig:
        """
        Build the document-wide configuration

        Missing or unusable values fall back to the defaults: theme
        "default", the canvas_width setting (980), aspect ratio "16/9".
        """
        from ..config import appsettings

        canvas_width: float = appsettings.canvas_width
        raw_width = meta.get("canvasWidth")
        if raw_width is not None:
            if isinstance(raw_width, (int, float)) and not isinstance(raw_width, bool) and raw_width > 0:
                canvas_width = raw_width
            else:
                ctx.warning_add(f"Ignoring invalid canvasWidth {raw_width!r}, using {appsettings.canvas_width}")

        fonts = meta.get("fonts")
        overflow_checker = meta.get("overflowChecker")

        return GlobalConfig(
            theme=str(meta.get("theme") or "default"),
            canvas_width=canvas_width,
            aspect_ratio=str(meta.get("aspectRatio") or DEFAULT_ASPECT_RATIO),
            fonts=fonts if isinstance(fonts, dict) else None,
            overflow_checker=overflow_checker if isinstance(overflow_checker, dict) else None,
            raw=dict(meta),
        )

    # ------------------------------------------------------------------
    # Phase 2: per-slide extraction
    # ------------------------------------------------------------------

    def slideContent_parse(
        self, raw: RawSlide, index: int, global_config: GlobalConfig, ctx: ParseContext
    ) -> Slide:
        """
        Enrich a raw slide with metadata, layout, nodes and metrics

        Args:
            raw: Raw slide text and line range
            index: 0-based slide index
            global_config: Document-wide configuration (canvas size)
            ctx: Parse context collecting warnings

        Returns:
            Fully populated Slide
        """
        lines = raw.content.split("\n")
        frontmatter, body_start = self.slideFrontmatter_extract(lines, raw.start_line, ctx)
        layout = str(frontmatter.get("layout") or "default")

        canvas_width = global_config.canvas_width
        canvas_height = canvasHeight_calculate(canvas_width, global_config.aspect_ratio)
        area = layoutContentArea_get(layout, canvas_width, canvas_height)
        primary = area.slots[0]

        nodes = self.contentNodes_extract(lines, body_start, index, raw.start_line, ctx)

        return Slide(
            index=index,
            content=raw.content,
            line_start=raw.start_line,
            line_end=raw.end_line,
            frontmatter=frontmatter,
            layout=layout,
            content_nodes=nodes,
            content_area=ContentArea(width=primary.width, height=primary.height),
            metrics=self.metrics_calculate(nodes),
        )

    def slideFrontmatter_extract(
        self, lines: List[str], slide_start: int, ctx: ParseContext
    ) -> Tuple[Dict[str, Any], int]:
        """
        Read a slide's own metadata block

        Returns:
            Tuple of (metadata, index of the first body line). A slide without
            a block returns ({}, 0).
        """
        if not lines or lines[0].strip() != SEPARATOR:
            return {}, 0

        for j in range(1, len(lines)):
            if lines[j].strip() == SEPARATOR:
                return self.metadata_parse(lines[1:j], slide_start, ctx), j + 1

        return {}, 1

    def contentNodes_extract(
        self,
        lines: List[str],
        body_start: int,
        slide_index: int,
        slide_start: int,
        ctx: ParseContext,
    ) -> List[ContentNode]:
        """
        Single forward pass emitting content nodes for one slide

        Construct order: heading, code fence, unordered list, ordered list,
        image, table, blockquote, component tag, slot separator, HTML
        comment (skipped), paragraph.

        Args:
            lines: Slide lines
            body_start: First line index after the slide's metadata block
            slide_index: 0-based slide index
            slide_start: Original line number of lines[0]
            ctx: Parse context collecting warnings

        Returns:
            Ordered list of top-level ContentNodes
        """
        nodes: List[ContentNode] = []
        i = body_start

        while i < len(lines):
            line = lines[i]
            stripped = line.strip()

            if not stripped:
                i += 1
                continue

            result: SubParseResult
            heading_match = HEADING_RE.match(line)
            image_match = IMAGE_RE.search(line)
            component_match = COMPONENT_OPEN_RE.search(line) or COMPONENT_CLOSE_RE.search(line)
            slot_match = SLOT_RE.match(stripped)
            if heading_match:
                result = self.heading_parse(heading_match, line, i, slide_index, slide_start)
            elif stripped.startswith("```"):
                result = self.codeBlock_parse(lines, i, slide_index, slide_start, ctx)
            elif UNORDERED_START_RE.match(line):
                result = self.list_parse(lines, i, slide_index, slide_start, ordered=False)
            elif ORDERED_START_RE.match(line):
                result = self.list_parse(lines, i, slide_index, slide_start, ordered=True)
            elif image_match:
                result = self.image_parse(image_match, line, i, slide_index, slide_start)
            elif stripped.startswith("|"):
                result = self.table_parse(lines, i, slide_index, slide_start)
            elif stripped.startswith(">"):
                result = self.blockquote_parse(lines, i, slide_index, slide_start)
            elif component_match:
                result = self.component_parse(component_match, line, i, slide_index, slide_start)
            elif slot_match:
                result = self.slotSeparator_parse(slot_match, line, i, slide_index, slide_start)
            elif stripped.startswith("<!--"):
                result = self.comment_skip(lines, i, slide_start, ctx)
            else:
                result = self.paragraph_parse(lines, i, slide_index, slide_start)

            if result.node is not None:
                nodes.append(result.node)
            i = result.resume

        return nodes

    def heading_parse(
        self, match: "re.Match[str]", line: str, index: int, slide_index: int, slide_start: int
    ) -> SubParseResult:
        level = len(match.group(1))
        text = match.group(2).strip()
        node = ContentNode(
            type=NodeType.HEADING,
            line_start=slide_start + index,
            line_end=slide_start + index,
            slide_index=slide_index,
            content=line,
            text=text,
            char_count=len(text),
            level=level,
            metadata={"level": level},
        )
        return SubParseResult(node, index + 1)

    def codeBlock_parse(
        self,
        lines: List[str],
        start: int,
        slide_index: int,
        slide_start: int,
        ctx: ParseContext,
    ) -> SubParseResult:
        """
        Parse a fenced code block

        An unterminated fence closes implicitly at the slide's last line and
        adds a warning naming the opening line.

        Returns:
            SubParseResult with a code-block node; metadata holds language,
            lineCount and whether the fence was closed
        """
        info = FENCE_INFO_RE.match(lines[start])
        language = info.group(1) if info else ""

        end = start + 1
        closed = False
        while end < len(lines):
            if lines[end].strip() == "```":
                closed = True
                break
            end += 1

        if closed:
            code_lines = lines[start + 1:end]
        else:
            end = len(lines) - 1
            code_lines = lines[start + 1:]
            ctx.warning_add(f"Unclosed code block at line {slide_start + start}")

        code = "\n".join(code_lines)
        node = ContentNode(
            type=NodeType.CODE_BLOCK,
            line_start=slide_start + start,
            line_end=slide_start + end,
            slide_index=slide_index,
            content="\n".join(lines[start:end + 1]),
            text=code,
            char_count=len(code),
            metadata={"language": language, "lineCount": len(code_lines), "closed": closed},
        )
        return SubParseResult(node, end + 1)

    def list_parse(
        self,
        lines: List[str],
        start: int,
        slide_index: int,
        slide_start: int,
        ordered: bool,
    ) -> SubParseResult:
        """
        Parse an ordered or unordered list

        The list continues over item lines of its own kind and over indented
        non-blank lines (nested items, wrapped text). A single blank line is
        tolerated when the next line is an item; two blank lines end it.

        Returns:
            SubParseResult with a list node; metadata holds ordered,
            itemCount and maxDepth (floor(indent / 2)); children are the
            nested sub-lists
        """
        pattern = ORDERED_RE if ordered else UNORDERED_RE
        collected: List[int] = []
        end = start

        while end < len(lines):
            line = lines[end]
            if pattern.match(line) or (collected and line.strip() and line[:1].isspace()):
                collected.append(end)
                end += 1
            elif not line.strip() and end + 1 < len(lines) and pattern.match(lines[end + 1]):
                collected.append(end)
                end += 1
            else:
                break

        filled = [idx for idx in collected if lines[idx].strip()]
        item_count = sum(1 for idx in filled if pattern.match(lines[idx]))
        max_depth = max(depth_fromIndent(lines[idx]) for idx in filled)
        text = "\n".join(LIST_MARKER_RE.sub("", lines[idx]).strip() for idx in filled)

        node = ContentNode(
            type=NodeType.LIST,
            line_start=slide_start + start,
            line_end=slide_start + end - 1,
            slide_index=slide_index,
            content="\n".join(lines[start:end]),
            text=text,
            char_count=len(text),
            metadata={"ordered": ordered, "itemCount": item_count, "maxDepth": max_depth},
            children=self.listChildren_build(lines, filled, slide_index, slide_start),
        )
        return SubParseResult(node, end)

    def listChildren_build(
        self, lines: List[str], filled: List[int], slide_index: int, slide_start: int
    ) -> List[ContentNode]:
        """
        Group deeper-indented item runs into nested list nodes

        A run opens on an item line deeper than the list's first line and
        takes every following deeper line. Deeper non-item lines outside a
        run are wrapped text of a parent item.
        """
        if not filled:
            return []

        base = depth_fromIndent(lines[filled[0]])
        children: List[ContentNode] = []
        run: List[int] = []

        for idx in filled[1:]:
            line = lines[idx]
            deeper = depth_fromIndent(line) > base
            if deeper and (run or LIST_MARKER_RE.match(line)):
                run.append(idx)
                continue
            if run:
                children.append(self.subList_make(lines, run, slide_index, slide_start))
                run = []

        if run:
            children.append(self.subList_make(lines, run, slide_index, slide_start))
        return children

    def subList_make(
        self, lines: List[str], run: List[int], slide_index: int, slide_start: int
    ) -> ContentNode:
        ordered = bool(ORDERED_RE.match(lines[run[0]]))
        text = "\n".join(LIST_MARKER_RE.sub("", lines[idx]).strip() for idx in run)
        return ContentNode(
            type=NodeType.LIST,
            line_start=slide_start + run[0],
            line_end=slide_start + run[-1],
            slide_index=slide_index,
            content="\n".join(lines[run[0]:run[-1] + 1]),
            text=text,
            char_count=len(text),
            metadata={
                "ordered": ordered,
                "itemCount": sum(1 for idx in run if LIST_MARKER_RE.match(lines[idx])),
                "maxDepth": max(depth_fromIndent(lines[idx]) for idx in run),
            },
            children=self.listChildren_build(lines, run, slide_index, slide_start),
        )

    def image_parse(
        self, match: "re.Match[str]", line: str, index: int, slide_index: int, slide_start: int
    ) -> SubParseResult:
        target = match.group(2).strip()
        # drop an optional title: ![alt](path "title")
        src = target.split()[0] if target else target
        node = ContentNode(
            type=NodeType.IMAGE,
            line_start=slide_start + index,
            line_end=slide_start + index,
            slide_index=slide_index,
            content=line,
            metadata={"alt": match.group(1), "src": src},
        )
        return SubParseResult(node, index + 1)

    def table_parse(
        self, lines: List[str], start: int, slide_index: int, slide_start: int
    ) -> SubParseResult:
        """
        Parse a pipe table

        Columns are the largest non-empty cell count over all rows. Rows
        exclude the header separator and the header itself, never below 0.
        """
        end = start
        columns = 0
        rows = 0
        row_texts: List[str] = []

        while end < len(lines) and "|" in lines[end]:
            line = lines[end]
            cells = [cell.strip() for cell in line.split("|") if cell.strip()]
            columns = max(columns, len(cells))
            if not tableSeparator_is(line):
                rows += 1
                row_texts.append(" ".join(cells))
            end += 1

        text = "\n".join(row_texts)
        node = ContentNode(
            type=NodeType.TABLE,
            line_start=slide_start + start,
            line_end=slide_start + end - 1,
            slide_index=slide_index,
            content="\n".join(lines[start:end]),
            text=text,
            char_count=len(text),
            metadata={"columns": columns, "rows": max(0, rows - 1)},
        )
        return SubParseResult(node, end)

    def blockquote_parse(
        self, lines: List[str], start: int, slide_index: int, slide_start: int
    ) -> SubParseResult:
        """
        Parse a block quote

        Depth is the largest count of leading '>' markers. A single blank
        line is tolerated when the next line continues the quote.
        """
        end = self.quoteEnd_find(lines, start)
        filled = [idx for idx in range(start, end) if lines[idx].strip()]
        return SubParseResult(self.quote_make(lines, filled, start, end, slide_index, slide_start), end)

    def quoteEnd_find(self, lines: List[str], start: int) -> int:
        end = start
        while end < len(lines):
            line = lines[end]
            if line.strip().startswith(">"):
                end += 1
            elif not line.strip() and end + 1 < len(lines) and lines[end + 1].strip().startswith(">"):
                end += 1
            else:
                break
        return end

    def quote_make(
        self,
        lines: List[str],
        filled: List[int],
        start: int,
        end: int,
        slide_index: int,
        slide_start: int,
    ) -> ContentNode:
        text = " ".join(
            part for part in (QUOTE_MARKERS_RE.sub("", lines[idx]).strip() for idx in filled) if part
        )

        base = quote_depth(lines[filled[0]])
        children: List[ContentNode] = []
        run: List[int] = []
        for idx in filled[1:]:
            if quote_depth(lines[idx]) > base:
                run.append(idx)
                continue
            if run:
                children.append(self.quote_make(lines, run, run[0], run[-1] + 1, slide_index, slide_start))
                run = []
        if run:
            children.append(self.quote_make(lines, run, run[0], run[-1] + 1, slide_index, slide_start))

        return ContentNode(
            type=NodeType.BLOCKQUOTE,
            line_start=slide_start + start,
            line_end=slide_start + end - 1,
            slide_index=slide_index,
            content="\n".join(lines[start:end]),
            text=text,
            char_count=len(text),
            metadata={"depth": max(quote_depth(lines[idx]) for idx in filled)},
            children=children,
        )

    def component_parse(
        self, match: "re.Match[str]", line: str, index: int, slide_index: int, slide_start: int
    ) -> SubParseResult:
        node = ContentNode(
            type=NodeType.COMPONENT,
            line_start=slide_start + index,
            line_end=slide_start + index,
            slide_index=slide_index,
            content=line,
            metadata={"component": match.group(1), "closing": match.re is COMPONENT_CLOSE_RE},
        )
        return SubParseResult(node, index + 1)

    def slotSeparator_parse(
        self, match: "re.Match[str]", line: str, index: int, slide_index: int, slide_start: int
    ) -> SubParseResult:
        node = ContentNode(
            type=NodeType.SLOT_SEPARATOR,
            line_start=slide_start + index,
            line_end=slide_start + index,
            slide_index=slide_index,
            content=line,
            metadata={"slotName": match.group(1)},
        )
        return SubParseResult(node, index + 1)

    def comment_skip(
        self, lines: List[str], start: int, slide_start: int, ctx: ParseContext
    ) -> SubParseResult:
        """Skip an HTML comment, which may span several lines"""
        first = lines[start]
        if "-->" in first[first.index("<!--") + 4:]:
            return SubParseResult(None, start + 1)

        for end in range(start + 1, len(lines)):
            if "-->" in lines[end]:
                return SubParseResult(None, end + 1)

        ctx.warning_add(f"Unclosed HTML comment at line {slide_start + start}")
        return SubParseResult(None, len(lines))

    def paragraph_parse(
        self, lines: List[str], start: int, slide_index: int, slide_start: int
    ) -> SubParseResult:
        """
        Accumulate plain lines into a paragraph

        Stops at a blank line or at a line that opens another construct.
        A start line that opens nothing and cannot begin a paragraph (raw
        HTML, a bare '#word') is skipped.
        """
        end = start
        while end < len(lines) and not self.paragraphBreak_is(lines[end]):
            end += 1

        if end == start:
            return SubParseResult(None, start + 1)

        paragraph_lines = lines[start:end]
        text = " ".join(line.strip() for line in paragraph_lines).strip()
        node = ContentNode(
            type=NodeType.PARAGRAPH,
            line_start=slide_start + start,
            line_end=slide_start + end - 1,
            slide_index=slide_index,
            content="\n".join(paragraph_lines),
            text=text,
            char_count=len(text),
        )
        return SubParseResult(node, end)

    def paragraphBreak_is(self, line: str) -> bool:
        stripped = line.strip()
        if not stripped:
            return True
        if UNORDERED_RE.match(line) or ORDERED_RE.match(line):
            return True
        return stripped.startswith(("#", "```", ">", "|", "<", "::"))

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def metrics_calculate(self, nodes: List[ContentNode]) -> SlideMetrics:
        """
        Derive slide metrics from the emitted node list

        Character and word counts sum the top-level nodes' text, so nested
        children are not counted twice and markers never count.
        """
        def count(kind: NodeType) -> int:
            return sum(1 for node in nodes if node.type == kind)

        return SlideMetrics(
            total_characters=sum(node.char_count or 0 for node in nodes),
            word_count=sum(len(node.text.split()) for node in nodes if node.text),
            element_counts=ElementCounts(
                headings=count(NodeType.HEADING),
                lists=count(NodeType.LIST),
                code_blocks=count(NodeType.CODE_BLOCK),
                images=count(NodeType.IMAGE),
                tables=count(NodeType.TABLE),
            ),
        )

    def analysisSummary_get(self, presentation: ParsedPresentation) -> List[SlideAnalysisSummary]:
        """One summary line per slide: layout, node count, character count"""
        return [
            SlideAnalysisSummary(
                slide_index=slide.index,
                layout=slide.layout,
                node_count=len(slide.content_nodes),
                character_count=slide.metrics.total_characters,
            )
            for slide in presentation.slides
        ]

    # ------------------------------------------------------------------
    # Lookups used by source attribution
    # ------------------------------------------------------------------

    def element_findInSlide(
        self, slide: Slide, construct: str, text: Optional[str] = None
    ) -> Optional[FoundElement]:
        """
        Find the first occurrence of a construct in a slide

        Args:
            slide: Parsed slide
            construct: "h1", "h2", "h3", "img", "pre" or "code"
            text: Rendered text; when given, the first construct whose text
                  matches wins over the first construct overall

        Returns:
            FoundElement covering the construct's lines, or None
        """
        candidates: List[ContentNode]
        if construct in ("h1", "h2", "h3"):
            level = int(construct[1])
            candidates = [
                node for node in slide.content_nodes
                if node.type == NodeType.HEADING and node.level == level
            ]
        elif construct == "img":
            candidates = [node for node in slide.content_nodes if node.type == NodeType.IMAGE]
        elif construct in ("pre", "code"):
            candidates = [node for node in slide.content_nodes if node.type == NodeType.CODE_BLOCK]
        else:
            return None

        if not candidates:
            return None

        chosen = candidates[0]
        if text:
            needle = text_normalize(text)
            for node in candidates:
                if node.text and textPrefix_matches(text_normalize(node.text), needle):
                    chosen = node
                    break

        return FoundElement(line=chosen.line_start, line_end=chosen.line_end, content=chosen.content)

    def element_findByText(self, slide: Slide, text: str) -> Optional[FoundElement]:
        """
        Find the first slide line containing the text's first 50 characters

        Returns:
            Single-line FoundElement, or None for empty text or no match
        """
        search = text.strip()[:50]
        if not search:
            return None

        for offset, line in enumerate(slide.lines):
            if search in line:
                number = slide.line_start + offset
                return FoundElement(line=number, line_end=number, content=line)
        return None

    def listItem_find(self, slide: Slide, text: str) -> Optional[FoundElement]:
        """
        Find the list item a rendered <li> came from

        Compares emphasis-stripped text. An exact match anywhere in the
        slide's lists wins; otherwise the first item whose text and the
        rendered text share a prefix. Wrapped continuation lines of the item
        are included in the range.
        """
        needle = text_normalize(text)
        if not needle:
            return None

        items: List[Tuple[int, str]] = []
        for node in slide.content_nodes:
            if node.type != NodeType.LIST:
                continue
            for number in range(node.line_start, node.line_end + 1):
                line = slide.lines[number - slide.line_start]
                if LIST_MARKER_RE.match(line):
                    items.append((number, text_normalize(LIST_MARKER_RE.sub("", line))))

        match = next((number for number, item in items if item == needle), None)
        if match is None:
            match = next(
                (number for number, item in items if item and textPrefix_matches(item, needle)),
                None,
            )
        if match is None:
            return None

        last = self.itemEnd_find(slide, match)
        content = "\n".join(slide.lines[match - slide.line_start:last - slide.line_start + 1])
        return FoundElement(line=match, line_end=last, content=content)

    def itemEnd_find(self, slide: Slide, item_line: int) -> int:
        """Last line of a list item, following wrapped deeper non-item lines"""
        lines = slide.lines
        offset = item_line - slide.line_start
        item_indent = indent_width(lines[offset])
        end = offset
        for nxt in range(offset + 1, len(lines)):
            line = lines[nxt]
            if not line.strip() or LIST_MARKER_RE.match(line) or indent_width(line) <= item_indent:
                break
            end = nxt
        return slide.line_start + end

    def paragraph_find(self, slide: Slide, text: str) -> Optional[FoundElement]:
        """
        Find the paragraph a rendered <p> came from

        Paragraph text is compared emphasis-stripped; an exact match wins,
        then the first paragraph sharing a prefix with the rendered text.
        """
        needle = text_normalize(text)
        if not needle:
            return None

        paragraphs = [node for node in slide.content_nodes if node.type == NodeType.PARAGRAPH]
        normalized = [(node, text_normalize(node.text or "")) for node in paragraphs]

        found = next((node for node, body in normalized if body == needle), None)
        if found is None:
            found = next(
                (node for node, body in normalized if body and textPrefix_matches(body, needle)),
                None,
            )
        if found is None:
            return None
        return FoundElement(line=found.line_start, line_end=found.line_end, content=found.content)


def textPrefix_matches(source: str, rendered: str) -> bool:
    """
    Whether normalized source text and rendered text agree

    Rendered previews are truncated and may carry nested content after the
    element's own text, so either side may be a prefix of the other.
    """
    if not source or not rendered:
        return False
    return source.startswith(rendered) or rendered.startswith(source)
