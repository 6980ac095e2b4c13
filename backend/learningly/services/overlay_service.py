"""
Builds the highlight overlay for one rendered page.

Stored percentage rectangles are merged for display and projected onto the
page's current size on every render pass; nothing here is persisted.
"""

import logging
from typing import Iterable

from learningly.config import Config
from learningly.models.highlight_types import Highlight, OverlayBox

from .geometry_service import (
    convert_percentage_to_pixels,
    merge_highlight_rects,
    to_css_style,
)

logger = logging.getLogger(__name__)

TITLE_PREVIEW_LENGTH = 50


def highlight_title(selected_text: str) -> str:
    preview = selected_text[:TITLE_PREVIEW_LENGTH]
    if len(selected_text) > TITLE_PREVIEW_LENGTH:
        preview += "..."
    return f'Highlight: "{preview}"'


def build_page_overlay(
    highlights: Iterable[Highlight],
    page_number: int,
    page_width: float,
    page_height: float,
    merge: bool = True,
) -> list[OverlayBox]:
    """
    Position the highlights of one page at the page's current size.

    Args:
        highlights: Highlights of the document; other pages are skipped
        page_number: Page being rendered
        page_width: Rendered page width
        page_height: Rendered page height
        merge: Consolidate adjacent rectangles before projecting

    Returns:
        list[OverlayBox]: Boxes in highlight order, then rectangle order
    """
    boxes = []

    for highlight in highlights:
        if highlight.page_number != page_number:
            continue

        rects = merge_highlight_rects(highlight.rects) if merge else highlight.rects
        title = highlight_title(highlight.selected_text)

        for pixel_rect in convert_percentage_to_pixels(rects, page_width, page_height):
            boxes.append(
                OverlayBox(
                    highlight_id=highlight.id,
                    left=pixel_rect.left,
                    top=pixel_rect.top,
                    width=pixel_rect.width,
                    height=pixel_rect.height,
                    color=highlight.color,
                    opacity=Config.HIGHLIGHT_OPACITY,
                    title=title,
                    has_question=bool(highlight.question),
                    style=to_css_style(pixel_rect),
                )
            )

    logger.debug(f"Built {len(boxes)} overlay boxes for page {page_number}")
    return boxes
