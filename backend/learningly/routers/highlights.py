from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, ValidationError

from ..models.highlight_types import (
    ClientRect,
    Highlight,
    OverlayBox,
    PercentageRect,
    PixelRect,
    SelectionEvent,
)
from ..services.geometry_service import (
    convert_percentage_to_pixels,
    convert_rects_to_percentage,
    merge_highlight_rects,
)
from ..services.highlights_service import HighlightsService
from ..services.overlay_service import build_page_overlay
from ..services.selection_service import (
    get_highlight_storage_key,
    is_valid_selection_text,
)

router = APIRouter(prefix="/highlights", tags=["highlights"])

# Initialize services
highlights_service = HighlightsService()


class HighlightCreateRequest(BaseModel):
    document_url: str = Field(..., min_length=1)
    page_number: int
    text: str
    rects: List[PercentageRect] = Field(..., min_length=1)
    color: Optional[str] = None


class UpdateColorRequest(BaseModel):
    color: str


class UpdateTextRequest(BaseModel):
    selected_text: str


class QuestionRequest(BaseModel):
    question: str = Field(..., min_length=1)
    question_id: Optional[str] = None


class PercentageConversionRequest(BaseModel):
    rects: List[ClientRect]
    container: ClientRect


class PixelConversionRequest(BaseModel):
    rects: List[PercentageRect]
    page_width: float = Field(..., gt=0)
    page_height: float = Field(..., gt=0)


class MergeRequest(BaseModel):
    rects: List[PercentageRect]


class OverlayRequest(BaseModel):
    page_width: float = Field(..., gt=0)
    page_height: float = Field(..., gt=0)
    merge: bool = True


@router.post("/", response_model=Highlight)
async def create_highlight(highlight_data: HighlightCreateRequest):
    """
    Create a highlight from an accepted selection on a document page.

    Args:
        highlight_data: Document URL, page number, selected text, percentage rects and color

    Returns:
        Highlight: The stored highlight with its assigned ID

    Raises:
        HTTPException: 400 if the text is too short, 500 if the highlight cannot be stored
    """
    try:
        selection = SelectionEvent(text=highlight_data.text, rects=highlight_data.rects)
    except ValidationError:
        raise HTTPException(
            status_code=400,
            detail="Selected text must contain at least 2 non-blank characters",
        )

    try:
        highlight = highlights_service.create_from_selection(
            document_url=highlight_data.document_url,
            page_number=highlight_data.page_number,
            selection=selection,
            color=highlight_data.color,
        )
        if highlight is None:
            raise HTTPException(status_code=500, detail="Failed to create highlight")

        return highlight

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error creating highlight: {str(e)}"
        )


@router.get("/key")
async def get_storage_key(document_url: str):
    """Resolve the storage key highlights of a document URL are kept under"""
    return {"document_key": get_highlight_storage_key(document_url)}


@router.get("/document/{document_key}", response_model=List[Highlight])
async def get_highlights_for_document(
    document_key: str, page_number: Optional[int] = None
):
    """
    Get all highlights of a document, optionally filtered by page number.
    """
    try:
        return highlights_service.get_highlights_for_document(document_key, page_number)
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error retrieving highlights: {str(e)}"
        )


@router.get("/document/{document_key}/page/{page_number}", response_model=List[Highlight])
async def get_highlights_for_page(document_key: str, page_number: int):
    try:
        return highlights_service.get_highlights_for_page(document_key, page_number)
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error retrieving page highlights: {str(e)}"
        )


@router.post(
    "/document/{document_key}/page/{page_number}/overlay",
    response_model=List[OverlayBox],
)
async def get_page_overlay(document_key: str, page_number: int, request: OverlayRequest):
    """
    Position a page's highlights for its current rendered size.

    Args:
        document_key: Storage key of the document
        page_number: Page being rendered
        request: Current page width/height and whether to merge adjacent rects

    Returns:
        List[OverlayBox]: Overlay boxes in page units
    """
    try:
        highlights = highlights_service.get_highlights_for_page(document_key, page_number)
        return build_page_overlay(
            highlights,
            page_number,
            request.page_width,
            request.page_height,
            merge=request.merge,
        )
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error building page overlay: {str(e)}"
        )


@router.delete("/document/{document_key}")
async def delete_highlights_for_document(document_key: str):
    """Delete every highlight of a document"""
    try:
        deleted = highlights_service.delete_highlights_for_document(document_key)
        return {"message": "Highlights deleted successfully", "deleted": deleted}
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error deleting highlights: {str(e)}"
        )


@router.get("/id/{highlight_id}", response_model=Highlight)
async def get_highlight_by_id(highlight_id: str):
    """
    Get a specific highlight by its ID.

    Raises:
        HTTPException: If highlight is not found
    """
    try:
        highlight = highlights_service.get_highlight_by_id(highlight_id)
        if highlight is None:
            raise HTTPException(status_code=404, detail="Highlight not found")

        return highlight
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error retrieving highlight: {str(e)}"
        )


@router.delete("/{highlight_id}")
async def delete_highlight(highlight_id: str):
    """
    Delete a specific highlight by its ID.

    Raises:
        HTTPException: If highlight is not found or deletion fails
    """
    try:
        success = highlights_service.delete_highlight(highlight_id)
        if not success:
            raise HTTPException(status_code=404, detail="Highlight not found")

        return {"message": "Highlight deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error deleting highlight: {str(e)}"
        )


@router.put("/{highlight_id}/color")
async def update_highlight_color(highlight_id: str, color_data: UpdateColorRequest):
    try:
        success = highlights_service.update_color(highlight_id, color_data.color)
        if not success:
            raise HTTPException(status_code=404, detail="Highlight not found")

        return {"message": "Highlight color updated successfully"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error updating highlight color: {str(e)}"
        )


@router.put("/{highlight_id}/text")
async def update_highlight_text(highlight_id: str, text_data: UpdateTextRequest):
    try:
        if not is_valid_selection_text(text_data.selected_text):
            raise HTTPException(
                status_code=400,
                detail="Selected text must contain at least 2 non-blank characters",
            )

        success = highlights_service.update_selected_text(
            highlight_id, text_data.selected_text
        )
        if not success:
            raise HTTPException(status_code=404, detail="Highlight not found")

        return {"message": "Highlight text updated successfully"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error updating highlight text: {str(e)}"
        )


@router.put("/{highlight_id}/question")
async def add_question_to_highlight(highlight_id: str, question_data: QuestionRequest):
    """
    Attach a question to a highlight.

    Returns:
        Dict: Success message and the question ID
    """
    try:
        question_id = highlights_service.add_question_to_highlight(
            highlight_id, question_data.question, question_data.question_id
        )
        if question_id is None:
            raise HTTPException(status_code=404, detail="Highlight not found")

        return {"message": "Question added successfully", "question_id": question_id}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error adding question: {str(e)}"
        )


@router.delete("/{highlight_id}/question")
async def remove_question_from_highlight(highlight_id: str):
    try:
        success = highlights_service.remove_question_from_highlight(highlight_id)
        if not success:
            raise HTTPException(status_code=404, detail="Highlight not found")

        return {"message": "Question removed successfully"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error removing question: {str(e)}"
        )


# ========================================
# GEOMETRY ENDPOINTS
# ========================================


@router.post("/geometry/percentage", response_model=List[PercentageRect])
async def to_percentage(request: PercentageConversionRequest):
    """
    Convert viewport client rects to fractions of the container box.

    Raises:
        HTTPException: 400 if the container has no measured size
    """
    if request.container.width <= 0 or request.container.height <= 0:
        raise HTTPException(
            status_code=400, detail="Container must have a non-zero size"
        )
    return convert_rects_to_percentage(request.rects, request.container)


@router.post("/geometry/pixels", response_model=List[PixelRect])
async def to_pixels(request: PixelConversionRequest):
    return convert_percentage_to_pixels(
        request.rects, request.page_width, request.page_height
    )


@router.post("/geometry/merge", response_model=List[PercentageRect])
async def merge_rects(request: MergeRequest):
    return merge_highlight_rects(request.rects)


@router.get("/stats/count", response_model=Dict[str, Dict[str, Any]])
async def get_highlights_count_by_document():
    """
    Get summary statistics about highlights for all documents.

    Returns:
        Dict: Mapping of document keys to their highlight statistics
    """
    try:
        return highlights_service.get_highlights_count_by_document()
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Error retrieving highlight statistics: {str(e)}",
        )
