"""
Layout geometry for the built-in slide layouts

Maps a layout name and canvas size to the named content slots the layout
grants. Every definition is a pure function of (width, height), so equal
inputs always produce equal slots.

Padding follows the default theme's px-14 py-10 insets:
    px-14 = 3.5rem = 56px left and right
    py-10 = 2.5rem = 40px top and bottom

Example:
    >>> area = layoutContentArea_get("two-cols", 980, 552)
    >>> [(s.name, s.width, s.height) for s in area.slots]
    [('left', 426, 472), ('right', 426, 472)]
"""

from typing import Callable, Dict, List

from ..models.geometry import ContentArea, LayoutContentArea, Padding, Slot, SlotPosition


DEFAULT_PADDING = Padding(left=56, right=56, top=40, bottom=40)

# Gap between columns in multi-column layouts
COLUMN_GAP = 16

# Extra horizontal inset for emphasis layouts (fact, quote), split over both sides
EMPHASIS_EXTRA_PADDING = 100

# Estimated header height for two-cols-header
HEADER_HEIGHT = 80

DEFAULT_LAYOUT = "default"


def contentArea_calculate(
    canvas_width: float, canvas_height: float, padding: Padding = DEFAULT_PADDING
) -> ContentArea:
    """
    Subtract padding from the canvas.

    Args:
        canvas_width: Canvas width in px
        canvas_height: Canvas height in px
        padding: Insets to subtract

    Returns:
        Remaining usable width and height
    """
    return ContentArea(
        width=canvas_width - padding.left - padding.right,
        height=canvas_height - padding.top - padding.bottom,
    )


def _area_make(slots: List[Slot]) -> Dict[str, object]:
    return {"slots": slots, "total_available_area": sum(slot.area for slot in slots)}


def _single_padded(canvas_width: float, canvas_height: float) -> Dict[str, object]:
    area = contentArea_calculate(canvas_width, canvas_height)
    return _area_make([Slot("default", area.width, area.height, SlotPosition.FULL)])


def _full_bleed(canvas_width: float, canvas_height: float) -> Dict[str, object]:
    return _area_make([Slot("default", canvas_width, canvas_height, SlotPosition.FULL)])


def _two_cols(canvas_width: float, canvas_height: float) -> Dict[str, object]:
    area = contentArea_calculate(canvas_width, canvas_height)
    col_width = (area.width - COLUMN_GAP) // 2
    return _area_make([
        Slot("left", col_width, area.height, SlotPosition.LEFT),
        Slot("right", col_width, area.height, SlotPosition.RIGHT),
    ])


def _two_cols_header(canvas_width: float, canvas_height: float) -> Dict[str, object]:
    area = contentArea_calculate(canvas_width, canvas_height)
    col_width = (area.width - COLUMN_GAP) // 2
    body_height = area.height - HEADER_HEIGHT - COLUMN_GAP
    return _area_make([
        Slot("header", area.width, HEADER_HEIGHT, SlotPosition.TOP),
        Slot("left", col_width, body_height, SlotPosition.LEFT),
        Slot("right", col_width, body_height, SlotPosition.RIGHT),
    ])


def _emphasis(canvas_width: float, canvas_height: float) -> Dict[str, object]:
    padding = Padding(
        left=DEFAULT_PADDING.left + EMPHASIS_EXTRA_PADDING / 2,
        right=DEFAULT_PADDING.right + EMPHASIS_EXTRA_PADDING / 2,
        top=DEFAULT_PADDING.top,
        bottom=DEFAULT_PADDING.bottom,
    )
    area = contentArea_calculate(canvas_width, canvas_height, padding)
    return _area_make([Slot("default", area.width, area.height, SlotPosition.FULL)])


def _media_left(canvas_width: float, canvas_height: float) -> Dict[str, object]:
    # media occupies the left half, text gets the right half minus its outer padding
    content_width = canvas_width // 2 - DEFAULT_PADDING.right
    content_height = canvas_height - DEFAULT_PADDING.top - DEFAULT_PADDING.bottom
    return _area_make([Slot("default", content_width, content_height, SlotPosition.RIGHT)])


def _media_right(canvas_width: float, canvas_height: float) -> Dict[str, object]:
    content_width = canvas_width // 2 - DEFAULT_PADDING.left
    content_height = canvas_height - DEFAULT_PADDING.top - DEFAULT_PADDING.bottom
    return _area_make([Slot("default", content_width, content_height, SlotPosition.LEFT)])


LayoutDefinition = Callable[[float, float], Dict[str, object]]

LAYOUT_DEFINITIONS: Dict[str, LayoutDefinition] = {
    "default": _single_padded,
    "center": _single_padded,
    "cover": _single_padded,
    "statement": _single_padded,
    "section": _single_padded,
    "intro": _single_padded,
    "end": _single_padded,
    "none": _single_padded,
    "full": _full_bleed,
    "image": _full_bleed,
    "iframe": _full_bleed,
    "two-cols": _two_cols,
    "two-cols-header": _two_cols_header,
    "fact": _emphasis,
    "quote": _emphasis,
    "image-left": _media_left,
    "iframe-left": _media_left,
    "image-right": _media_right,
    "iframe-right": _media_right,
}


def layoutContentArea_get(layout: str, canvas_width: float, canvas_height: float) -> LayoutContentArea:
    """
    Get the content area a layout grants on a canvas.

    Unknown layout names use the default layout's geometry but keep the
    requested name in the result.

    Args:
        layout: Layout name (open set, e.g. "two-cols", "my-custom-layout")
        canvas_width: Canvas width in px, positive
        canvas_height: Canvas height in px, positive

    Returns:
        LayoutContentArea with ordered slots and their total area

    Raises:
        ValueError: If either canvas dimension is not positive
    """
    if canvas_width <= 0 or canvas_height <= 0:
        raise ValueError(f"Canvas must be positive, got {canvas_width}x{canvas_height}")

    definition = LAYOUT_DEFINITIONS.get(layout, LAYOUT_DEFINITIONS[DEFAULT_LAYOUT])
    result = definition(canvas_width, canvas_height)
    return LayoutContentArea(
        layout=layout,
        slots=list(result["slots"]),  # type: ignore[arg-type]
        total_available_area=result["total_available_area"],  # type: ignore[arg-type]
    )


def primarySlotWidth_get(layout: str, canvas_width: float, canvas_height: float) -> float:
    """Width of the first slot of a layout, the one quick width checks use"""
    area = layoutContentArea_get(layout, canvas_width, canvas_height)
    if area.slots:
        return area.slots[0].width
    return contentArea_calculate(canvas_width, canvas_height).width


def layouts_listKnown() -> List[str]:
    """Names of all layouts with a dedicated definition"""
    return sorted(LAYOUT_DEFINITIONS)
