"""
Message models - structured representation of mail captured by Sendria.

This module defines the message, recipient and MIME decomposition models
returned by the client and produced by the local MIME decomposer.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ContentPart(BaseModel):
    """A decoded, displayable body segment (plain text, HTML, ...)."""

    media_type: str = Field(description="Lower-cased type/subtype without parameters")
    raw_content_type: str = Field(
        description="Original Content-Type header value, parameters included"
    )
    body: str = Field(description="Decoded body text")
    size: int = Field(description="Byte length of the decoded body")


class Attachment(BaseModel):
    """A decoded attachment segment."""

    content_id: str = Field("", description="Content-ID without angle brackets")
    media_type: str = Field(description="Lower-cased type/subtype without parameters")
    raw_content_type: str = Field(
        description="Original Content-Type header value, parameters included"
    )
    filename: str = Field("", description="Suggested filename, possibly empty")
    size: int = Field(description="Byte length of the decoded content")
    content: bytes = Field(
        b"", exclude=True, repr=False, description="Decoded attachment payload"
    )


class Recipient(BaseModel):
    """Email address with optional display name."""

    name: str = ""
    email: str


class Message(BaseModel):
    """
    A message captured by Sendria.

    ``parts`` and ``attachments`` are empty until :meth:`decompose` is called
    (or the client's ``get_parsed_message`` is used).
    """

    id: str
    subject: str = ""
    to: List[Recipient] = Field(default_factory=list)
    from_: List[Recipient] = Field(default_factory=list, alias="from")
    created_at: Optional[datetime] = None
    size: int = 0
    type: str = ""
    source: str = ""
    parts: List[ContentPart] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    def decompose(self) -> "Message":
        """
        Fill ``parts`` and ``attachments`` from the raw ``source``.

        Returns:
            self, for chaining

        Raises:
            MalformedMessageError: If the source cannot be framed
        """
        from ..parsing.decomposer import decompose

        self.parts, self.attachments = decompose(self.source)
        return self

    def get_part(self, media_type: str) -> Optional[ContentPart]:
        """Return the first content part of the given media type, if any."""
        media_type = media_type.lower()
        for part in self.parts:
            if part.media_type == media_type:
                return part
        return None

    def plain_text(self) -> str:
        part = self.get_part("text/plain")
        return part.body if part else ""

    def html(self) -> str:
        part = self.get_part("text/html")
        return part.body if part else ""

    def get_attachment(self, content_id: str) -> Optional[Attachment]:
        """Look up an attachment by Content-ID (angle brackets optional)."""
        content_id = content_id.strip().strip("<>")
        for attachment in self.attachments:
            if attachment.content_id == content_id:
                return attachment
        return None


class MessageList(BaseModel):
    """One page of messages."""

    messages: List[Message] = Field(default_factory=list)
    total: int = 0
    page: int = 0
    per_page: int = 0
