"""
Python client and test harness for the Sendria SMTP development server.
"""

from .client import SendriaClient
from .exceptions import (
    MalformedMessageError,
    SendriaAPIError,
    SendriaConnectionError,
    SendriaError,
)
from .models import Attachment, ContentPart, Message, MessageList, Recipient
from .parsing import DecompositionResult, decompose
from .version import __version__

__all__ = [
    "SendriaClient",
    "decompose",
    "DecompositionResult",
    "Message",
    "MessageList",
    "Recipient",
    "ContentPart",
    "Attachment",
    "SendriaError",
    "SendriaAPIError",
    "SendriaConnectionError",
    "MalformedMessageError",
    "__version__",
]
