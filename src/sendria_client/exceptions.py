"""
Exception hierarchy for the Sendria client.

Only top-level failures surface as exceptions; anomalies inside a message
(bad transfer encodings, malformed part headers) are absorbed by the parser.
"""

from typing import Optional


class SendriaError(Exception):
    """Base class for all errors raised by sendria_client."""


class MalformedMessageError(SendriaError, ValueError):
    """Raw message source cannot be framed into a header block and body."""


class SendriaAPIError(SendriaError):
    """Sendria answered with an unexpected status code or a non-OK payload."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class SendriaConnectionError(SendriaError):
    """The HTTP request to Sendria could not be completed."""
