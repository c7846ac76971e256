"""ImageNode entity - an image file attached to a multimodal message."""

import base64
import mimetypes
from pathlib import Path
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

DEFAULT_IMAGE_MIMETYPE = "image/png"


class ImageNode(BaseModel):
    """Reference to an image resource on disk."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    image_path: str = Field(..., description="Path of the image file")
    mimetype: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("image_path")
    @classmethod
    def path_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Image path cannot be empty")
        return v

    def resolve_mimetype(self) -> str:
        """Return the declared mimetype or guess it from the file extension."""
        if self.mimetype:
            return self.mimetype
        guessed, _ = mimetypes.guess_type(self.image_path)
        return guessed or DEFAULT_IMAGE_MIMETYPE

    def to_base64(self) -> str:
        return base64.b64encode(Path(self.image_path).read_bytes()).decode("utf-8")

    def to_data_url(self) -> str:
        """Read the file and encode it as a ``data:`` URL."""
        return f"data:{self.resolve_mimetype()};base64,{self.to_base64()}"
