"""
File Comment API Routes

Comments attached to whole documents, plus store maintenance.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..models.highlight_types import FileComment
from ..services.annotation_service import AnnotationService, get_annotation_service
from ..services.comment_storage import CommentPersistenceError

# Configure logger for this module
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/file-comments", tags=["file-comments"])


class FileCommentRequest(BaseModel):
    path: str
    content: str


class FileCommentUpdate(BaseModel):
    content: str


@router.get("/", response_model=List[FileComment])
async def get_file_comments(
    path: str = Query(...),
    service: AnnotationService = Depends(get_annotation_service),
):
    """
    Get a document's comments in the order they were added.
    """
    return service.comments.get_file_comments(path)


@router.post("/", response_model=FileComment)
async def add_file_comment(
    request: FileCommentRequest,
    service: AnnotationService = Depends(get_annotation_service),
):
    try:
        return service.comments.add_file_comment(request.path, request.content)
    except CommentPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{comment_id}", response_model=FileComment)
async def update_file_comment(
    comment_id: str,
    update: FileCommentUpdate,
    path: str = Query(...),
    service: AnnotationService = Depends(get_annotation_service),
):
    """
    Update the content of a file comment.

    Raises:
        HTTPException: If the comment is not found or saving fails
    """
    try:
        comment = service.comments.update_file_comment(
            path, comment_id, update.content
        )
        if comment is None:
            raise HTTPException(status_code=404, detail="Comment not found")
        return comment
    except HTTPException:
        raise
    except CommentPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{comment_id}")
async def delete_file_comment(
    comment_id: str,
    path: str = Query(...),
    service: AnnotationService = Depends(get_annotation_service),
) -> Dict[str, Any]:
    try:
        deleted = service.comments.delete_file_comment(path, comment_id)
        if not deleted:
            raise HTTPException(status_code=404, detail="Comment not found")
        return {"message": "Comment deleted successfully"}
    except HTTPException:
        raise
    except CommentPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/cleanup")
async def cleanup_comments(
    service: AnnotationService = Depends(get_annotation_service),
) -> Dict[str, Any]:
    """
    Remove stored comments for documents no longer in the vault.
    """
    try:
        removed = service.cleanup_missing_documents()
        logger.info(f"Cleanup removed {len(removed)} documents")
        return {"removed": removed}
    except CommentPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/")
async def clear_all_comments(
    service: AnnotationService = Depends(get_annotation_service),
) -> Dict[str, Any]:
    """
    Delete every highlight comment and file comment.
    """
    try:
        service.comments.clear_all()
        return {"message": "All comments cleared"}
    except CommentPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
