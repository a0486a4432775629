"""
Services Package

This package contains the highlight extraction engine, the exclude rule
matcher and the persistent comment store, plus the facade that wires them
to a vault of markdown documents.
"""

from .comment_storage import (
    CommentPersistenceError,
    InMemoryCommentStorage,
    SQLiteCommentStorage,
)
from .comment_store import CommentStore
from .exclude_pattern_matcher import ExcludePatternMatcher, should_process_document
from .highlight_extractor import HighlightExtractor

__all__ = [
    "CommentPersistenceError",
    "CommentStore",
    "ExcludePatternMatcher",
    "HighlightExtractor",
    "InMemoryCommentStorage",
    "SQLiteCommentStorage",
    "should_process_document",
]
