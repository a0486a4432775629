"""
Protocols for the host collaborators the highlight services talk to.

VaultService implements both; tests substitute simple fakes.
"""

from typing import Protocol


class DocumentCorpus(Protocol):
    """Enumerates documents and returns their raw text"""

    def list_documents(self) -> list[str]:
        """Return every document path, relative to the corpus root"""
        ...

    def read(self, path: str) -> str:
        """Return the full raw text of a document"""
        ...


class EditorCollaborator(Protocol):
    """Line-addressed access to a document's text"""

    def offset_to_line(self, path: str, offset: int) -> int | None:
        """Zero-based line containing a character offset, None if unavailable"""
        ...

    def get_line(self, path: str, line: int) -> str:
        ...

    def set_line(self, path: str, line: int, text: str) -> None:
        ...
