# Data models for the Sendria client

from .message import Attachment, ContentPart, Message, MessageList, Recipient
from .api_models import APIMessage, APIMeta, APIResponse

__all__ = [
    "Attachment",
    "ContentPart",
    "Message",
    "MessageList",
    "Recipient",
    "APIMessage",
    "APIMeta",
    "APIResponse",
]
