"""
Highlight Extractor Module

Scans raw document text for highlight markup and turns every match into a
HighlightOccurrence with its position, paragraph offset and color. The
extractor holds no mutable state, so one instance can serve any number of
callers.
"""

import logging
import uuid

from app.models.highlight_types import FileHighlights, HighlightOccurrence
from app.models.settings_types import HighlightSettings

from .exclude_pattern_matcher import ExcludePatternMatcher
from .highlight_patterns import iter_matches, may_contain_highlights
from .host_protocols import DocumentCorpus

logger = logging.getLogger(__name__)

# Matches closer than this with identical text count as the same highlight
DUPLICATE_DISTANCE = 10


class HighlightExtractor:
    """
    Extract highlights from document text.

    Recognised encodings (see highlight_patterns):
    - ==text==
    - <mark ...>text</mark> with optional background color
    - <span style="background-color: ...">text</span>
    """

    def __init__(self, settings: HighlightSettings | None = None):
        """
        Initialize the extractor.

        Args:
            settings: Settings holding the exclude rules; defaults exclude nothing
        """
        self.settings = settings or HighlightSettings()
        logger.debug(
            f"HighlightExtractor exclude patterns: {self.settings.exclude_patterns!r}"
        )

    def should_process_file(self, path: str) -> bool:
        """
        Check whether a document is outside every exclude rule.
        """
        return not ExcludePatternMatcher.should_exclude(
            path, self.settings.exclude_patterns
        )

    def has_highlights(self, text: str) -> bool:
        """
        Check whether text contains at least one non-empty highlight.

        Stops at the first match whose text is not blank.
        """
        if not text or not may_contain_highlights(text):
            return False
        return any(not match.is_empty for match in iter_matches(text))

    def extract_highlights(self, text: str) -> list[HighlightOccurrence]:
        """
        Extract all highlights from text.

        Args:
            text: Raw document text

        Returns:
            list[HighlightOccurrence]: Deduplicated highlights sorted by position
        """
        highlights: list[HighlightOccurrence] = []
        if not text:
            return highlights

        for match in iter_matches(text):
            highlight_text = match.text.strip()
            if not highlight_text:
                continue

            is_duplicate = any(
                abs(h.position - match.start) < DUPLICATE_DISTANCE
                and h.text == highlight_text
                for h in highlights
            )
            if is_duplicate:
                logger.debug(
                    f"Dropping duplicate highlight '{highlight_text}' at {match.start}"
                )
                continue

            highlights.append(
                HighlightOccurrence(
                    id=f"highlight-{uuid.uuid4().hex}",
                    text=highlight_text,
                    position=match.start,
                    paragraph_offset=self.get_paragraph_offset(text, match.start),
                    background_color=match.color,
                    original_length=len(match.raw),
                )
            )

        highlights.sort(key=lambda h: h.position)
        return highlights

    @staticmethod
    def get_paragraph_offset(text: str, position: int) -> int:
        """
        Distance from the last newline before position.

        Returns position itself when no newline precedes it.
        """
        last_newline = text.rfind("\n", 0, position)
        return position if last_newline == -1 else position - last_newline

    def get_files_with_highlights(self, corpus: DocumentCorpus) -> list[FileHighlights]:
        """
        Scan every document in a corpus and collect its highlights.

        Excluded documents are skipped and unreadable ones are logged and
        skipped; neither stops the scan.

        Args:
            corpus: Source of document paths and text

        Returns:
            list[FileHighlights]: One entry per document with at least one highlight
        """
        results: list[FileHighlights] = []
        total_highlights = 0

        for path in corpus.list_documents():
            if not self.should_process_file(path):
                logger.debug(f"Skipping excluded file: {path}")
                continue

            try:
                text = corpus.read(path)
            except (OSError, ValueError) as e:
                logger.warning(f"Could not read {path}: {e}")
                continue

            highlights = self.extract_highlights(text)
            if highlights:
                results.append(FileHighlights(file_path=path, highlights=highlights))
                total_highlights += len(highlights)
                logger.debug(f"Found {len(highlights)} highlights in {path}")

        logger.info(
            f"Found {total_highlights} highlights in {len(results)} files"
        )
        return results
