"""
Highlight and Comment Type Models

Pydantic models for highlights found in document text and the comment
threads attached to them. Persisted records keep camelCase keys on the
wire (``paragraphId``, ``isVirtual``, ...) through field aliases.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising to camelCase while accepting either spelling"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class HighlightOccurrence(CamelModel):
    """A highlight found by scanning raw document text (never persisted)"""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: str
    text: str
    position: int
    paragraph_offset: int
    original_length: int
    background_color: str | None = None


class CommentItem(CamelModel):
    """A single comment in a highlight's thread"""

    id: str
    content: str
    created_at: int
    updated_at: int


class HighlightComment(CamelModel):
    """A persisted highlight together with its comment thread"""

    id: str
    text: str
    position: int = 0
    paragraph_id: str | None = None
    paragraph_offset: int | None = None
    background_color: str | None = None
    comments: list[CommentItem] = Field(default_factory=list)
    is_virtual: bool = False
    created_at: int = 0
    updated_at: int = 0

    # Display metadata carried along by the host
    file_path: str | None = None
    file_type: str | None = None
    display_text: str | None = None


class FileComment(CamelModel):
    """A comment attached to a whole document rather than a highlight"""

    id: str
    content: str
    created_at: int
    updated_at: int
    file_path: str


class StoredComments(CamelModel):
    """
    Shape of the durable blob.

    Fields:
        comments: document path -> highlight id -> HighlightComment
        fileComments: document path -> ordered FileComment list
    """

    comments: dict[str, dict[str, HighlightComment]] = Field(default_factory=dict)
    file_comments: dict[str, list[FileComment]] = Field(default_factory=dict)


class FileHighlights(BaseModel):
    """Highlights found in one document during a corpus scan"""

    file_path: str
    highlights: list[HighlightOccurrence]
