"""
Services Package

This package contains the highlight services: geometry conversion and
merging, selection validation and capture, highlight persistence and the
page overlay render pass.
"""

from .base_database_service import BaseDatabaseService
from .geometry_service import (
    convert_percentage_to_pixels,
    convert_rects_to_percentage,
    merge_highlight_rects,
)
from .highlights_service import HighlightsService
from .selection_capture import SelectionCapture

__all__ = [
    "BaseDatabaseService",
    "HighlightsService",
    "SelectionCapture",
    "convert_rects_to_percentage",
    "convert_percentage_to_pixels",
    "merge_highlight_rects",
]
