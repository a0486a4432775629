import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class VaultService:
    """
    A directory of markdown documents.

    Serves as the document corpus for highlight scans and as the line
    editor used when block ids are appended to paragraphs.
    """

    def __init__(self, vault_dir: str = "vault") -> None:
        self.vault_dir = Path(vault_dir)
        if not self.vault_dir.exists():
            self.vault_dir.mkdir(parents=True, exist_ok=True)

    def get_document_path(self, path: str) -> Path:
        """
        Resolve a vault-relative path to a file on disk
        """
        root = self.vault_dir.resolve()
        file_path = (root / path).resolve()

        if root not in file_path.parents:
            raise ValueError(f"{path} is outside the vault")

        if not file_path.is_file():
            raise FileNotFoundError(f"Document {path} not found")

        return file_path

    def list_documents(self) -> list[str]:
        """
        List all markdown documents as vault-relative POSIX paths
        """
        return sorted(
            p.relative_to(self.vault_dir).as_posix()
            for p in self.vault_dir.rglob("*.md")
            if p.is_file()
        )

    def read(self, path: str) -> str:
        """
        Read a document exactly as stored, line endings included
        """
        with self.get_document_path(path).open(encoding="utf-8", newline="") as f:
            return f.read()

    def write(self, path: str, text: str) -> None:
        with self.get_document_path(path).open(
            "w", encoding="utf-8", newline=""
        ) as f:
            f.write(text)

    def offset_to_line(self, path: str, offset: int) -> int | None:
        """
        Zero-based line number containing a character offset
        """
        try:
            text = self.read(path)
        except (FileNotFoundError, ValueError) as e:
            logger.debug(f"No line lookup for {path}: {e}")
            return None

        if offset < 0 or offset > len(text):
            return None
        return text.count("\n", 0, offset)

    def _split_lines(self, path: str, line: int) -> list[str]:
        # Each entry keeps its "\r" when the document uses CRLF endings
        lines = self.read(path).split("\n")
        if line < 0 or line >= len(lines):
            raise ValueError(
                f"Line {line} is out of range. {path} has {len(lines)} lines."
            )
        return lines

    def get_line(self, path: str, line: int) -> str:
        return self._split_lines(path, line)[line].removesuffix("\r")

    def set_line(self, path: str, line: int, text: str) -> None:
        """
        Replace one line's text, leaving its line ending and every other line as is
        """
        lines = self._split_lines(path, line)
        ending = "\r" if lines[line].endswith("\r") else ""
        lines[line] = text + ending
        self.write(path, "\n".join(lines))
