"""
Highlight Type Models

Pydantic models for text highlights captured inside a rendered document page.
Geometry is stored as fractions of the page container so a highlight replays
at any render size; pixel rectangles only exist during a render pass.
"""

from pydantic import BaseModel, Field, field_validator

from learningly.utils.selection_text import (
    is_valid_selection_text,
    sanitize_highlight_text,
)


class ClientRect(BaseModel):
    """A pixel rectangle relative to the viewport (selection fragment or container box)"""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


class PercentageRect(BaseModel):
    """
    A rectangle expressed as fractions of a container's bounding box.

    Values are not clamped to [0, 1]; they are only meaningful against the
    container snapshot they were computed from.
    """

    x: float
    y: float
    width: float
    height: float


class PixelRect(BaseModel):
    """A rendering-ready rectangle in the units of the target page dimensions"""

    left: float
    top: float
    width: float
    height: float


class SelectionEvent(BaseModel):
    """One accepted selection gesture, handed to the host feature"""

    text: str
    rects: list[PercentageRect] = Field(min_length=1)

    @field_validator("text")
    @classmethod
    def text_must_be_selectable(cls, value: str) -> str:
        if not is_valid_selection_text(value):
            raise ValueError("selected text must have at least 2 non-blank characters")
        return sanitize_highlight_text(value)


class Highlight(BaseModel):
    """A persisted highlight owned by one document"""

    id: str
    document_key: str
    page_number: int
    selected_text: str
    rects: list[PercentageRect]
    color: str
    question: str | None = None
    question_id: str | None = None

    created_at: str  # SQLite timestamp string
    updated_at: str


class OverlayBox(BaseModel):
    """One positioned box of a page's highlight overlay"""

    highlight_id: str
    left: float
    top: float
    width: float
    height: float
    color: str
    opacity: float
    title: str
    has_question: bool
    style: dict[str, str]  # left/top/width/height as "<n>px"
