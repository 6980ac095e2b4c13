"""
Geometry Service Module

Converts highlight rectangles between viewport pixel space and page-relative
percentage space, and consolidates the per-fragment rectangles a text
selection produces into fewer display rectangles.

Percentage rectangles are fractions of the container's bounding box, so a
stored highlight can be re-projected onto a page of any rendered size. The
container must have a non-zero measured size before converting into
percentage space; a zero-sized container raises ZeroDivisionError.
"""

import logging
import math
import re
from decimal import Decimal
from typing import Iterable, Protocol

from learningly.models.highlight_types import ClientRect, PercentageRect, PixelRect

logger = logging.getLogger(__name__)

# Merge tolerances, as fractions of container height / width
SAME_LINE_TOLERANCE = 0.01
ADJACENT_TOLERANCE = 0.02


class SelectionContainer(Protocol):
    """A bounded document surface that can report its live bounding box"""

    def get_bounding_client_rect(self) -> ClientRect: ...


def _snapshot_box(container: SelectionContainer | ClientRect) -> ClientRect:
    if isinstance(container, ClientRect):
        return container
    return container.get_bounding_client_rect()


def convert_rects_to_percentage(
    rects: Iterable[ClientRect], container: SelectionContainer | ClientRect
) -> list[PercentageRect]:
    """
    Convert viewport pixel rectangles to fractions of the container's box.

    The container box is read once for the whole batch so every output
    rectangle refers to the same snapshot. Ordering is preserved and no
    rectangle is dropped, even when it lies outside the container.

    Args:
        rects: Client rectangles reported for a selection range
        container: Container element, or an already captured bounding box

    Returns:
        list[PercentageRect]: One percentage rectangle per input rectangle
    """
    box = _snapshot_box(container)

    return [
        PercentageRect(
            x=(rect.left - box.left) / box.width,
            y=(rect.top - box.top) / box.height,
            width=rect.width / box.width,
            height=rect.height / box.height,
        )
        for rect in rects
    ]


def convert_percentage_to_pixels(
    rects: Iterable[PercentageRect], page_width: float, page_height: float
) -> list[PixelRect]:
    """
    Project percentage rectangles onto a page of the given size.

    Args:
        rects: Stored percentage rectangles
        page_width: Current rendered page width
        page_height: Current rendered page height

    Returns:
        list[PixelRect]: Rectangles in the same units as the page dimensions
    """
    return [
        PixelRect(
            left=rect.x * page_width,
            top=rect.y * page_height,
            width=rect.width * page_width,
            height=rect.height * page_height,
        )
        for rect in rects
    ]


def _css_number(value: float) -> str:
    """
    Format a number the way a browser stringifies it into a style value.

    Integral values drop the fractional part; magnitudes outside [1e-6, 1e21)
    use an exponent without zero padding.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"

    magnitude = abs(value)
    if value.is_integer() and magnitude < 1e21:
        return str(int(value))
    if 1e-6 <= magnitude < 1e21:
        return format(Decimal(repr(value)), "f")

    return re.sub(r"e([+-])0*(\d)", r"e\1\2", repr(value))


def to_css_style(rect: PixelRect) -> dict[str, str]:
    """Format a pixel rectangle as absolute-positioning style values"""
    return {
        "left": f"{_css_number(rect.left)}px",
        "top": f"{_css_number(rect.top)}px",
        "width": f"{_css_number(rect.width)}px",
        "height": f"{_css_number(rect.height)}px",
    }


def is_selection_in_bounds(
    rects: Iterable[ClientRect], container: SelectionContainer | ClientRect
) -> bool:
    """Check that at least one rectangle lies fully inside the container box"""
    box = _snapshot_box(container)

    for rect in rects:
        if (
            rect.left >= box.left
            and rect.right <= box.right
            and rect.top >= box.top
            and rect.bottom <= box.bottom
        ):
            return True

    return False


def merge_highlight_rects(rects: list[PercentageRect]) -> list[PercentageRect]:
    """
    Merge same-line, horizontally adjacent rectangles.

    Rectangles are sorted top-to-bottom then left-to-right, and each one is
    compared only with the last rectangle already in the output. A merge
    extends that rectangle rightwards to the candidate's right edge and keeps
    the taller height; its x/y never move. Rectangles separated by a
    rectangle on another line are not merged.

    The input rectangles are left untouched.

    Args:
        rects: Percentage rectangles of one highlight

    Returns:
        list[PercentageRect]: Merged rectangles in sorted order
    """
    if len(rects) <= 1:
        return list(rects)

    sorted_rects = sorted(rects, key=lambda r: (r.y, r.x))
    merged: list[PercentageRect] = []

    for rect in sorted_rects:
        if not merged:
            merged.append(rect.model_copy())
            continue

        last = merged[-1]

        same_line = abs(rect.y - last.y) < SAME_LINE_TOLERANCE
        adjacent = abs(rect.x - (last.x + last.width)) < ADJACENT_TOLERANCE

        if same_line and adjacent:
            last.width = rect.x + rect.width - last.x
            last.height = max(last.height, rect.height)
        else:
            merged.append(rect.model_copy())

    logger.debug(f"Merged {len(rects)} highlight rects into {len(merged)}")
    return merged
