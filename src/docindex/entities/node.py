"""TextNode entity - a chunk of a document stored in the index."""

from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class TextNode(BaseModel):
    """A segment of a document suitable for embedding.

    Each node keeps a reference to its source document and a copy of the
    document metadata, so retrieval results can be cited without a lookup.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    document_id: str = Field(..., description="Source document ID")
    text: str = Field(..., description="Text content of this node")
    index: int = Field(..., ge=0, description="Position in the document")
    start_char: int = Field(..., ge=0, description="Start character offset in document")
    end_char: int = Field(..., gt=0, description="End character offset in document")
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("text")
    @classmethod
    def text_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Node text cannot be empty")
        return v

    @field_validator("end_char")
    @classmethod
    def end_after_start(cls, v: int, info: Any) -> int:
        if "start_char" in info.data and v <= info.data["start_char"]:
            raise ValueError("end_char must be greater than start_char")
        return v


class NodeWithScore(BaseModel):
    """A retrieved node with its similarity score."""

    node: TextNode
    score: float

    @property
    def text(self) -> str:
        return self.node.text
