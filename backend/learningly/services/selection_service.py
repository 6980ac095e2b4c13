"""
Selection Service Module

Validation and normalization helpers for text selections made inside a
document page, plus the identifiers used to store the resulting highlights.

The selection itself is reached through a SelectionSurface, an explicit
capability over the platform's selection state, so everything here can be
exercised with a plain fake object.
"""

import logging
import random
import time
from enum import Enum
from typing import Protocol

from learningly.config import Config
from learningly.models.highlight_types import ClientRect
from learningly.utils.selection_text import (
    is_valid_selection_text,
    sanitize_highlight_text,
)

from .geometry_service import SelectionContainer, is_selection_in_bounds

logger = logging.getLogger(__name__)

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


class SelectionSurface(Protocol):
    """Access to the current text selection of a rendering surface"""

    def get_current_selection_text(self) -> str | None: ...

    def get_selection_range_count(self) -> int: ...

    def get_client_rects(self) -> list[ClientRect]: ...

    def clear_selection(self) -> None: ...


class SelectionRejection(Enum):
    """Why a selection was not turned into a highlight"""

    EMPTY_SELECTION = "empty_selection"
    TEXT_TOO_SHORT = "text_too_short"
    NO_CLIENT_RECTS = "no_client_rects"
    OUT_OF_BOUNDS = "out_of_bounds"


def check_selection(
    surface: SelectionSurface, container: SelectionContainer | ClientRect
) -> SelectionRejection | None:
    """
    Run the selection checks in order and report the first failure.

    Checks:
    1. A non-empty selection with at least one range
    2. Trimmed text of at least two characters with a non-whitespace character
    3. At least one client rectangle
    4. At least one client rectangle fully inside the container

    Args:
        surface: Selection state of the rendering surface
        container: Container the selection must fall inside

    Returns:
        SelectionRejection | None: The failed check, or None if the selection is valid
    """
    text = surface.get_current_selection_text()
    if not text or surface.get_selection_range_count() < 1:
        return SelectionRejection.EMPTY_SELECTION

    if not is_valid_selection_text(text):
        return SelectionRejection.TEXT_TOO_SHORT

    rects = surface.get_client_rects()
    if not rects:
        return SelectionRejection.NO_CLIENT_RECTS

    if not is_selection_in_bounds(rects, container):
        return SelectionRejection.OUT_OF_BOUNDS

    return None


def validate_selection(
    surface: SelectionSurface, container: SelectionContainer | ClientRect
) -> bool:
    """Whether the selection passes every check of check_selection"""
    return check_selection(surface, container) is None


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"

    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_highlight_id() -> str:
    """Generate a unique highlight ID: highlight_<epoch ms>_<random base36>"""
    timestamp = int(time.time() * 1000)
    suffix = "".join(random.choices(_BASE36_DIGITS, k=9))
    return f"highlight_{timestamp}_{suffix}"


def generate_question_id() -> str:
    return f"q-{int(time.time() * 1000)}"


def _simple_hash(value: str) -> str:
    # 32-bit shift-subtract hash over UTF-16 code units
    encoded = value.encode("utf-16-le")
    hash_value = 0
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        hash_value = ((hash_value << 5) - hash_value + code_unit) & 0xFFFFFFFF

    if hash_value >= 0x80000000:
        hash_value -= 0x100000000

    return _to_base36(abs(hash_value))


def get_highlight_storage_key(document_url: str) -> str:
    """
    Build the stable per-document key highlights are stored under.

    The query string is ignored so signed or cache-busted URLs of the same
    document share one key.
    """
    clean_url = document_url.split("?")[0]
    return f"{Config.HIGHLIGHT_STORAGE_KEY_PREFIX}-{_simple_hash(clean_url)}"
