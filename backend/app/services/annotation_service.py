"""
Annotation Service Module

Facade wiring the vault, the highlight extractor and the comment store
together for the HTTP layer. It walks the vault, applies the exclude rules,
and keeps stored comments in step with the documents that still exist.
"""

import logging

from app.config import get_settings
from app.models.highlight_types import FileHighlights, HighlightOccurrence
from app.models.settings_types import HighlightSettings

from .block_ids import EditorBlockIdAllocator
from .comment_storage import SQLiteCommentStorage
from .comment_store import CommentStore
from .highlight_extractor import HighlightExtractor
from .vault_service import VaultService

# Configure logger for this module
logger = logging.getLogger(__name__)


class AnnotationService:
    """
    Coordinates the services behind the highlight and comment endpoints:
    - VaultService: markdown documents on disk (corpus and line editor)
    - HighlightExtractor: highlight scanning with exclude rules
    - CommentStore: persisted highlight comments and file comments
    """

    def __init__(self, settings: HighlightSettings):
        """
        Initialize the facade and load stored comments.

        Args:
            settings: Paths, exclude rules and cache settings
        """
        self.settings = settings
        self.vault = VaultService(settings.vault_dir)
        self.extractor = HighlightExtractor(settings)
        self.comments = CommentStore(
            storage=SQLiteCommentStorage(settings.db_path),
            block_id_allocator=EditorBlockIdAllocator(self.vault),
            settings=settings,
        )
        self.comments.load()

    def scan_vault(self) -> list[FileHighlights]:
        return self.extractor.get_files_with_highlights(self.vault)

    def extract_document(self, path: str) -> list[HighlightOccurrence]:
        """
        Extract highlights from one vault document.

        Excluded documents yield no highlights.

        Raises:
            FileNotFoundError: If the document does not exist
        """
        if not self.extractor.should_process_file(path):
            logger.debug(f"Skipping excluded file: {path}")
            return []
        return self.extractor.extract_highlights(self.vault.read(path))

    def cleanup_missing_documents(self) -> list[str]:
        live = set(self.vault.list_documents())
        return self.comments.cleanup(live)


_annotation_service: AnnotationService | None = None


def get_annotation_service() -> AnnotationService:
    """
    Shared AnnotationService built from app.config on first use.
    """
    global _annotation_service
    if _annotation_service is None:
        _annotation_service = AnnotationService(get_settings())
    return _annotation_service
