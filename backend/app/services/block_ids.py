"""
Block id derivation.

A paragraph is addressed by a block marker at the end of its line, e.g.
"Some text ^a1b2c3d4e". Deriving an id reuses an existing marker or makes a
new one; writing the new marker back into the document is the editor's job
and happens only through an injected BlockIdAllocator.
"""

import logging
import re
import secrets
import string
from dataclasses import dataclass
from typing import Protocol

from .host_protocols import EditorCollaborator

logger = logging.getLogger(__name__)

BLOCK_ID_PATTERN = re.compile(r"\^([a-zA-Z0-9-]+)$")
BLOCK_ID_LENGTH = 9

_BLOCK_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class BlockIdResult:
    block_id: str
    is_new: bool


def generate_block_id() -> str:
    return "".join(secrets.choice(_BLOCK_ID_ALPHABET) for _ in range(BLOCK_ID_LENGTH))


def derive_block_id(line_text: str) -> BlockIdResult:
    """
    Reuse the block marker a line ends with, or generate a fresh id.

    Args:
        line_text: Raw text of one line

    Returns:
        BlockIdResult: is_new tells the caller to append " ^<id>" to the line
    """
    match = BLOCK_ID_PATTERN.search(line_text)
    if match:
        return BlockIdResult(block_id=match.group(1), is_new=False)
    return BlockIdResult(block_id=generate_block_id(), is_new=True)


def make_paragraph_id(document_path: str, block_id: str) -> str:
    return f"{document_path}#^{block_id}"


class BlockIdAllocator(Protocol):
    def allocate(self, document_path: str, position: int) -> str | None:
        """Block id for the line containing position, or None if not addressable"""
        ...


class EditorBlockIdAllocator:
    """
    Allocate block ids through an editor collaborator.

    Appends the marker to the line when the line has none yet.
    """

    def __init__(self, editor: EditorCollaborator):
        self.editor = editor

    def allocate(self, document_path: str, position: int) -> str | None:
        line = self.editor.offset_to_line(document_path, position)
        if line is None:
            return None

        try:
            line_text = self.editor.get_line(document_path, line)
        except (OSError, ValueError) as e:
            logger.debug(f"Cannot read line {line} of {document_path}: {e}")
            return None

        result = derive_block_id(line_text)
        if result.is_new:
            self.editor.set_line(document_path, line, f"{line_text} ^{result.block_id}")
            logger.info(
                f"Added block id ^{result.block_id} to line {line} of {document_path}"
            )
        return result.block_id
