"""
Comment Store Module

Owns every persisted highlight comment and file comment. All records live
in memory and each mutation writes the full blob back through the injected
CommentStorage before returning.

Backing state:
- _data: document path -> highlight id -> HighlightComment
- _file_comments: document path -> ordered FileComment list
- _index: document path -> highlights, derived from _data for listing
- _paragraph_cache: bounded paragraph id -> highlights cache
"""

import logging
import time
import uuid
from collections.abc import Iterable
from contextlib import contextmanager
from typing import Iterator

from pydantic import ValidationError

from app.models.highlight_types import (
    CommentItem,
    FileComment,
    HighlightComment,
    HighlightOccurrence,
    StoredComments,
)
from app.models.settings_types import HighlightSettings

from .block_ids import (
    BlockIdAllocator,
    BlockIdResult,
    derive_block_id,
    make_paragraph_id,
)
from .comment_storage import CommentPersistenceError, CommentStorage
from .paragraph_cache import ParagraphCache

# Configure logger for this module
logger = logging.getLogger(__name__)


def current_timestamp() -> int:
    return int(time.time() * 1000)


def _short_random() -> str:
    return uuid.uuid4().hex[:9]


def highlight_from_occurrence(
    occurrence: HighlightOccurrence, file_path: str | None = None
) -> HighlightComment:
    """
    Build a new, comment-less HighlightComment from an extracted occurrence.
    """
    now = current_timestamp()
    return HighlightComment(
        id=occurrence.id,
        text=occurrence.text,
        position=occurrence.position,
        paragraph_offset=occurrence.paragraph_offset,
        background_color=occurrence.background_color,
        created_at=now,
        updated_at=now,
        file_path=file_path,
    )


class CommentStore:
    """
    Persistent store of highlight comments and file comments.

    Missing documents, highlights and comments are not errors: operations
    referencing them leave the state unchanged. A failed save raises
    CommentPersistenceError; a failed load leaves the store empty and
    refusing to save until storage can be read again.
    """

    def __init__(
        self,
        storage: CommentStorage,
        block_id_allocator: BlockIdAllocator | None = None,
        settings: HighlightSettings | None = None,
    ):
        """
        Initialize the comment store.

        Args:
            storage: Durable storage for the comment blob
            block_id_allocator: Resolves paragraph block ids through the host editor;
                                None means paragraph ids are always synthesized
            settings: Cache size and slow-operation threshold
        """
        self.storage = storage
        self.block_id_allocator = block_id_allocator
        self.settings = settings or HighlightSettings()

        self._data: dict[str, dict[str, HighlightComment]] = {}
        self._file_comments: dict[str, list[FileComment]] = {}
        self._index: dict[str, list[HighlightComment]] = {}
        self._paragraph_cache = ParagraphCache(self.settings.max_cache_size)
        self._degraded = False

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """
        Populate the store from durable storage.

        Absent data yields an empty store. Invalid documents and records are
        dropped one by one and the rest is kept. If the storage itself cannot
        be read the store starts empty in degraded mode, where save() refuses
        to overwrite what is stored until a later load() succeeds.
        """
        try:
            raw = self.storage.load()
        except Exception as e:
            logger.warning(f"Failed to load comments, starting degraded: {e}")
            raw = None
            self._degraded = True
        else:
            self._degraded = False

        self._data, self._file_comments = self._parse_stored(raw or {})
        self._paragraph_cache.clear()

        with self._check_performance("index rebuild"):
            self._index = {
                path: list(highlights.values())
                for path, highlights in self._data.items()
            }

        logger.info(
            f"Loaded comments for {len(self._data)} documents "
            f"and file comments for {len(self._file_comments)} documents"
        )

    @staticmethod
    def _parse_stored(
        raw: dict,
    ) -> tuple[dict[str, dict[str, HighlightComment]], dict[str, list[FileComment]]]:
        data: dict[str, dict[str, HighlightComment]] = {}
        comments = raw.get("comments") or {}
        if not isinstance(comments, dict):
            logger.warning("Dropping stored comments: not a mapping")
            comments = {}
        for path, records in comments.items():
            if not isinstance(records, dict):
                logger.warning(f"Dropping stored comments for {path}: not a mapping")
                continue
            highlights: dict[str, HighlightComment] = {}
            for highlight_id, record in records.items():
                try:
                    highlights[highlight_id] = HighlightComment.model_validate(record)
                except ValidationError as e:
                    logger.warning(
                        f"Dropping malformed highlight {path}/{highlight_id}: {e}"
                    )
            if highlights:
                data[path] = highlights

        file_comments: dict[str, list[FileComment]] = {}
        stored_file_comments = raw.get("fileComments") or {}
        if not isinstance(stored_file_comments, dict):
            logger.warning("Dropping stored file comments: not a mapping")
            stored_file_comments = {}
        for path, records in stored_file_comments.items():
            if not isinstance(records, list):
                logger.warning(f"Dropping file comments for {path}: not a list")
                continue
            items: list[FileComment] = []
            for record in records:
                try:
                    items.append(FileComment.model_validate(record))
                except ValidationError as e:
                    logger.warning(f"Dropping malformed file comment in {path}: {e}")
            if items:
                file_comments[path] = items

        return data, file_comments

    @property
    def degraded(self) -> bool:
        """True when the last load() could not read storage"""
        return self._degraded

    def save(self) -> None:
        """
        Write both mappings in one storage call.

        Raises:
            CommentPersistenceError: If the storage write failed, or if the
                                     store is degraded and writing would
                                     overwrite data it never read
        """
        if self._degraded:
            raise CommentPersistenceError(
                "Comments could not be loaded; refusing to overwrite stored data"
            )
        stored = StoredComments(
            comments=self._data, file_comments=self._file_comments
        )
        self.storage.save(stored.to_storage())

    def _reindex(self, path: str) -> None:
        highlights = self._data.get(path)
        if highlights:
            self._index[path] = list(highlights.values())
        else:
            self._index.pop(path, None)

    @contextmanager
    def _check_performance(self, operation: str) -> Iterator[None]:
        start = time.perf_counter()
        yield
        duration_ms = (time.perf_counter() - start) * 1000
        if duration_ms > self.settings.performance_threshold_ms:
            logger.warning(
                f"Performance warning: {operation} took {duration_ms:.1f}ms"
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_highlights_for_document(self, path: str) -> list[HighlightComment]:
        """
        List a document's highlights.

        Virtual highlights come first in insertion order, then the rest
        ordered by position.
        """
        highlights = self._index.get(path, [])
        return sorted(
            highlights,
            key=lambda h: (0, 0) if h.is_virtual else (1, h.position),
        )

    def get_highlight(self, path: str, highlight_id: str) -> HighlightComment | None:
        return self._data.get(path, {}).get(highlight_id)

    def get_file_comments(self, path: str) -> list[FileComment]:
        return list(self._file_comments.get(path, []))

    def get_comments_by_paragraph(
        self, path: str, paragraph_id: str
    ) -> list[HighlightComment]:
        highlights = self._data.get(path, {}).values()
        return sorted(
            (h for h in highlights if h.paragraph_id == paragraph_id),
            key=lambda h: h.position,
        )

    def has_paragraph_comments(self, path: str, paragraph_id: str) -> bool:
        return len(self.get_comments_by_paragraph(path, paragraph_id)) > 0

    def get_document_paths(self) -> set[str]:
        return set(self._data) | set(self._file_comments)

    # ------------------------------------------------------------------
    # Highlights
    # ------------------------------------------------------------------

    def add_highlight(self, path: str, highlight: HighlightComment) -> HighlightComment:
        """
        Store a highlight under its id, deriving its paragraph id if needed.

        Args:
            path: Document path the highlight belongs to
            highlight: Highlight to store; the caller's object is not modified

        Returns:
            HighlightComment: The stored record

        Raises:
            CommentPersistenceError: If the storage write failed
        """
        record = highlight.model_copy(deep=True)
        now = current_timestamp()
        if not record.created_at:
            record.created_at = now
        if not record.updated_at:
            record.updated_at = record.created_at

        if not record.is_virtual and not record.paragraph_id:
            record.paragraph_id = self._resolve_paragraph_id(path, record.position)

        self._data.setdefault(path, {})[record.id] = record
        self._reindex(path)
        logger.info(f"Added highlight {record.id} to {path}")

        self.save()
        return record

    def _resolve_paragraph_id(self, path: str, position: int) -> str:
        if self.block_id_allocator is not None:
            try:
                block_id = self.block_id_allocator.allocate(path, position)
            except (OSError, ValueError) as e:
                logger.warning(f"Block id allocation failed for {path}: {e}")
                block_id = None
            if block_id:
                return make_paragraph_id(path, block_id)

        logger.debug(f"No addressable block for {path}@{position}, synthesizing id")
        return make_paragraph_id(path, str(current_timestamp()))

    def add_comment_to_highlight(
        self, path: str, highlight_id: str, content: str
    ) -> CommentItem | None:
        """
        Append a comment to a highlight's thread.

        Returns:
            CommentItem | None: The new comment, or None if the highlight does not exist
        """
        highlight = self.get_highlight(path, highlight_id)
        if highlight is None:
            logger.debug(f"Highlight {highlight_id} not found in {path}")
            return None

        now = current_timestamp()
        comment = CommentItem(
            id=f"comment-{now}-{_short_random()}",
            content=content,
            created_at=now,
            updated_at=now,
        )
        highlight.comments.append(comment)
        highlight.updated_at = max(now, highlight.updated_at + 1)

        self.save()
        return comment

    def remove_highlight(self, path: str, highlight: HighlightComment | str) -> bool:
        """
        Delete a highlight and its comments.

        Returns:
            bool: True if something was removed
        """
        highlight_id = highlight if isinstance(highlight, str) else highlight.id
        highlights = self._data.get(path)
        if not highlights or highlight_id not in highlights:
            return False

        del highlights[highlight_id]
        if not highlights:
            del self._data[path]
        self._reindex(path)
        logger.info(f"Removed highlight {highlight_id} from {path}")

        self.save()
        return True

    def batch_update_comments(
        self, updates: Iterable[tuple[str, HighlightComment]]
    ) -> int:
        """
        Upsert many highlights with a single write.

        Args:
            updates: (document path, highlight) pairs; paragraph ids are kept as given

        Returns:
            int: Number of highlights written
        """
        grouped: dict[str, list[HighlightComment]] = {}
        for path, highlight in updates:
            grouped.setdefault(path, []).append(highlight.model_copy(deep=True))

        if not grouped:
            return 0

        count = 0
        for path, highlights in grouped.items():
            bucket = self._data.setdefault(path, {})
            for highlight in highlights:
                bucket[highlight.id] = highlight
                count += 1
            self._reindex(path)

        logger.info(f"Batch updated {count} highlights in {len(grouped)} documents")
        self.save()
        return count

    # ------------------------------------------------------------------
    # File comments
    # ------------------------------------------------------------------

    def add_file_comment(self, path: str, content: str) -> FileComment:
        now = current_timestamp()
        file_comment = FileComment(
            id=f"file-comment-{now}-{_short_random()}",
            content=content,
            created_at=now,
            updated_at=now,
            file_path=path,
        )
        self._file_comments.setdefault(path, []).append(file_comment)
        logger.info(f"Added file comment {file_comment.id} to {path}")

        self.save()
        return file_comment

    def update_file_comment(
        self, path: str, comment_id: str, content: str
    ) -> FileComment | None:
        for comment in self._file_comments.get(path, []):
            if comment.id == comment_id:
                comment.content = content
                comment.updated_at = max(current_timestamp(), comment.updated_at + 1)
                self.save()
                return comment

        logger.debug(f"File comment {comment_id} not found in {path}")
        return None

    def delete_file_comment(self, path: str, comment_id: str) -> bool:
        comments = self._file_comments.get(path, [])
        remaining = [c for c in comments if c.id != comment_id]
        if len(remaining) == len(comments):
            return False

        if remaining:
            self._file_comments[path] = remaining
        else:
            del self._file_comments[path]
        logger.info(f"Deleted file comment {comment_id} from {path}")

        self.save()
        return True

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def cleanup(self, live_document_paths: set[str]) -> list[str]:
        """
        Drop comments for documents that no longer exist.

        Args:
            live_document_paths: Paths of every document that still exists

        Returns:
            list[str]: Removed document paths; storage is written only if non-empty
        """
        removed: set[str] = set()
        for path in list(self._data):
            if path not in live_document_paths:
                del self._data[path]
                self._index.pop(path, None)
                removed.add(path)
        for path in list(self._file_comments):
            if path not in live_document_paths:
                del self._file_comments[path]
                removed.add(path)

        if removed:
            logger.info(f"Cleaned up comments for {len(removed)} missing documents")
            self.save()
        return sorted(removed)

    def clear_all(self) -> None:
        self._data = {}
        self._file_comments = {}
        self._index = {}
        self._paragraph_cache.clear()
        logger.info("Cleared all comments")
        self.save()

    # ------------------------------------------------------------------
    # Paragraph cache
    # ------------------------------------------------------------------

    def refresh_visible_paragraph_cache(
        self, path: str, paragraph_ids: Iterable[str]
    ) -> None:
        """
        Recompute cached highlights for the given paragraphs, then evict
        the oldest entries beyond the cache size.
        """
        with self._check_performance("paragraph cache refresh"):
            for paragraph_id in paragraph_ids:
                self._paragraph_cache.set(
                    paragraph_id, self.get_comments_by_paragraph(path, paragraph_id)
                )
            self._paragraph_cache.prune()

    def get_cached_paragraph(self, paragraph_id: str) -> list[HighlightComment] | None:
        return self._paragraph_cache.get(paragraph_id)

    @property
    def paragraph_cache(self) -> ParagraphCache:
        return self._paragraph_cache

    # ------------------------------------------------------------------
    # Block ids
    # ------------------------------------------------------------------

    @staticmethod
    def derive_block_id(line_text: str) -> BlockIdResult:
        """
        Reuse a line's trailing ^block-id or generate a new one.

        Appending a new marker to the line is left to the BlockIdAllocator.
        """
        return derive_block_id(line_text)
