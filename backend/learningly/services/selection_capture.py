"""
Selection Capture

Turns pointer-release activity on a document page into at most one
validated SelectionEvent per gesture.

Each pointer release restarts a quiet-period timer (trailing-edge debounce);
only when the timer fires is the current selection evaluated. Evaluation is
synchronous, so the container box and client rectangles it reads are always
mutually consistent.

Usage:
    capture = SelectionCapture(page, surface, on_highlight_create)
    page.on("mouseup", capture.handle_pointer_release)
    ...
    capture.close()
"""

import asyncio
import logging
from typing import Any, Callable, Protocol

from learningly.config import Config
from learningly.models.highlight_types import SelectionEvent

from .geometry_service import SelectionContainer, convert_rects_to_percentage
from .selection_service import SelectionSurface, check_selection

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


# Schedules callback after delay seconds and returns a cancellable handle
Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


def _loop_scheduler(delay: float, callback: Callable[[], None]) -> TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


class SelectionCapture:
    """
    Debounced selection capture bound to one page container.

    Args:
        container: Page element whose bounding box bounds valid selections
        surface: Selection state of the rendering surface
        on_highlight_create: Called with each accepted SelectionEvent
        debounce_seconds: Quiet period after the last pointer release
        call_later: Scheduler used for the quiet-period timer; defaults to
            the running asyncio loop
    """

    def __init__(
        self,
        container: SelectionContainer,
        surface: SelectionSurface,
        on_highlight_create: Callable[[SelectionEvent], None],
        debounce_seconds: float | None = None,
        call_later: Scheduler | None = None,
    ):
        self.container = container
        self.surface = surface
        self.on_highlight_create = on_highlight_create
        self.debounce_seconds = (
            Config.debounce_seconds() if debounce_seconds is None else debounce_seconds
        )
        self._call_later = call_later or _loop_scheduler
        self._pending: TimerHandle | None = None
        self._closed = False

    @property
    def pending(self) -> bool:
        """Whether an evaluation is waiting for the quiet period to end"""
        return self._pending is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def handle_pointer_release(self) -> None:
        """Restart the quiet-period timer for a pointer release on the page"""
        if self._closed:
            return

        self._cancel_pending()
        self._pending = self._call_later(self.debounce_seconds, self._on_timer)

    def _on_timer(self) -> None:
        self._pending = None
        if self._closed:
            return
        self.evaluate_selection()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def evaluate_selection(self) -> SelectionEvent | None:
        """
        Validate the current selection and emit it if it passes.

        On success the callback is invoked once and the live selection is
        cleared. A rejected selection is left untouched and nothing is emitted.

        Returns:
            SelectionEvent | None: The emitted event, or None if rejected
        """
        # One box snapshot serves both the bounds check and the conversion
        container_box = self.container.get_bounding_client_rect()

        rejection = check_selection(self.surface, container_box)
        if rejection is not None:
            logger.debug(f"Selection ignored: {rejection.value}")
            return None

        rects = self.surface.get_client_rects()
        percentage_rects = convert_rects_to_percentage(rects, container_box)

        event = SelectionEvent(
            text=self.surface.get_current_selection_text(),
            rects=percentage_rects,
        )

        self.on_highlight_create(event)
        self.surface.clear_selection()

        logger.debug(
            f"Selection captured: {len(event.text)} chars, {len(event.rects)} rects"
        )
        return event

    def reconfigure(
        self,
        container: SelectionContainer | None = None,
        on_highlight_create: Callable[[SelectionEvent], None] | None = None,
    ) -> None:
        """Swap the container or callback, dropping any pending evaluation"""
        self._cancel_pending()
        if container is not None:
            self.container = container
        if on_highlight_create is not None:
            self.on_highlight_create = on_highlight_create

    def close(self) -> None:
        """Cancel any pending evaluation and stop reacting to pointer releases"""
        self._cancel_pending()
        self._closed = True
