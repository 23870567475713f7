"""
Wire models for the Sendria REST API.

Sendria wraps every JSON response in ``{"code": "OK", "data": ..., "meta": ...}``.
Message fields may come back as ``null``, so everything but ``id`` is optional.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


class APIMeta(BaseModel):
    """Pagination metadata."""

    pages_total: int = 0


class APIResponse(BaseModel):
    """Envelope of every Sendria JSON response."""

    code: str
    data: Any = None
    meta: Optional[APIMeta] = None


class APIMessage(BaseModel):
    """A message as serialized by Sendria."""

    id: int
    sender_envelope: Optional[str] = None
    sender_message: Optional[str] = None
    recipients_envelope: List[str] = Field(default_factory=list)
    recipients_message_to: List[str] = Field(default_factory=list)
    recipients_message_cc: List[str] = Field(default_factory=list)
    recipients_message_bcc: List[str] = Field(default_factory=list)
    subject: Optional[str] = None
    source: Optional[str] = None
    size: int = 0
    type: Optional[str] = None
    peer: Optional[str] = None
    created_at: Optional[str] = None

    @field_validator(
        "recipients_envelope",
        "recipients_message_to",
        "recipients_message_cc",
        "recipients_message_bcc",
        mode="before",
    )
    @classmethod
    def null_to_empty_list(cls, v):
        return [] if v is None else v
