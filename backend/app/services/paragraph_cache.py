import logging
from collections import OrderedDict

from app.models.highlight_types import HighlightComment

logger = logging.getLogger(__name__)


class ParagraphCache:
    """
    Bounded cache of paragraph id -> highlights in that paragraph.

    Eviction is oldest-inserted first. Overwriting an existing key keeps
    its original insertion slot.
    """

    def __init__(self, max_size: int = 100):
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        self._entries: OrderedDict[str, list[HighlightComment]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, paragraph_id: str) -> bool:
        return paragraph_id in self._entries

    def get(self, paragraph_id: str) -> list[HighlightComment] | None:
        return self._entries.get(paragraph_id)

    def set(self, paragraph_id: str, highlights: list[HighlightComment]) -> None:
        self._entries[paragraph_id] = highlights

    def prune(self) -> int:
        """
        Drop the oldest entries until the cache fits max_size.

        Returns:
            int: Number of evicted entries
        """
        evicted = 0
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)
            evicted += 1
        if evicted:
            logger.debug(f"Evicted {evicted} paragraph cache entries")
        return evicted

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[str]:
        return list(self._entries.keys())
