"""
Highlight API Routes

Scanning documents for highlights and managing the comment threads attached
to them.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..models.highlight_types import (
    CommentItem,
    FileHighlights,
    HighlightComment,
    HighlightOccurrence,
)
from ..services.annotation_service import AnnotationService, get_annotation_service
from ..services.comment_storage import CommentPersistenceError

# Configure logger for this module
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/highlights", tags=["highlights"])


class ExtractRequest(BaseModel):
    text: str


class ExtractResponse(BaseModel):
    has_highlights: bool
    highlights: List[HighlightOccurrence]


class AddHighlightRequest(BaseModel):
    path: str
    highlight: HighlightComment


class CommentRequest(BaseModel):
    path: str
    content: str


@router.get("/scan", response_model=List[FileHighlights])
async def scan_vault(service: AnnotationService = Depends(get_annotation_service)):
    """
    Scan every non-excluded vault document for highlights.
    """
    try:
        return service.scan_vault()
    except Exception as e:
        logger.error(f"Vault scan failed: {e}")
        raise HTTPException(status_code=500, detail=f"Error scanning vault: {str(e)}")


@router.post("/extract", response_model=ExtractResponse)
async def extract_highlights(
    request: ExtractRequest,
    service: AnnotationService = Depends(get_annotation_service),
):
    """
    Extract highlights from posted text without touching the vault.
    """
    highlights = service.extractor.extract_highlights(request.text)
    return ExtractResponse(
        has_highlights=service.extractor.has_highlights(request.text),
        highlights=highlights,
    )


@router.get("/extract/{path:path}", response_model=List[HighlightOccurrence])
async def extract_document(
    path: str, service: AnnotationService = Depends(get_annotation_service)
):
    """
    Extract highlights from a single vault document.

    Raises:
        HTTPException: If the document does not exist
    """
    try:
        return service.extract_document(path)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Document not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/document", response_model=List[HighlightComment])
async def get_document_highlights(
    path: str = Query(...),
    service: AnnotationService = Depends(get_annotation_service),
):
    """
    Get stored highlights for a document, virtual highlights first.
    """
    return service.comments.get_highlights_for_document(path)


@router.post("/document", response_model=HighlightComment)
async def add_highlight(
    request: AddHighlightRequest,
    service: AnnotationService = Depends(get_annotation_service),
):
    """
    Store a highlight for a document.

    Raises:
        HTTPException: If the highlight could not be persisted
    """
    try:
        return service.comments.add_highlight(request.path, request.highlight)
    except CommentPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/document/{highlight_id}")
async def remove_highlight(
    highlight_id: str,
    path: str = Query(...),
    service: AnnotationService = Depends(get_annotation_service),
) -> Dict[str, Any]:
    """
    Delete a highlight and all of its comments.

    Raises:
        HTTPException: If the highlight is not found or deletion fails
    """
    try:
        removed = service.comments.remove_highlight(path, highlight_id)
        if not removed:
            raise HTTPException(status_code=404, detail="Highlight not found")
        return {"message": "Highlight deleted successfully"}
    except HTTPException:
        raise
    except CommentPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/document/{highlight_id}/comments", response_model=CommentItem)
async def add_comment(
    highlight_id: str,
    request: CommentRequest,
    service: AnnotationService = Depends(get_annotation_service),
):
    """
    Append a comment to a highlight's thread.

    Raises:
        HTTPException: If the highlight is not found or saving fails
    """
    try:
        comment = service.comments.add_comment_to_highlight(
            request.path, highlight_id, request.content
        )
        if comment is None:
            raise HTTPException(status_code=404, detail="Highlight not found")
        return comment
    except HTTPException:
        raise
    except CommentPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/paragraph", response_model=List[HighlightComment])
async def get_paragraph_highlights(
    path: str = Query(...),
    paragraph_id: str = Query(...),
    service: AnnotationService = Depends(get_annotation_service),
):
    """
    Get highlights in one paragraph, ordered by position.
    """
    return service.comments.get_comments_by_paragraph(path, paragraph_id)


@router.post("/paragraph/cache")
async def refresh_paragraph_cache(
    path: str = Query(...),
    paragraph_ids: Optional[List[str]] = Query(default=None),
    service: AnnotationService = Depends(get_annotation_service),
) -> Dict[str, Any]:
    """
    Refresh cached highlights for the paragraphs currently on screen.
    """
    service.comments.refresh_visible_paragraph_cache(path, paragraph_ids or [])
    return {"cached_paragraphs": len(service.comments.paragraph_cache)}
