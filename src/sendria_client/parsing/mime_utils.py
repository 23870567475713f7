"""
MIME utility functions for handling individual message parts.

This module provides the leaf-level helpers used by the decomposer:
transfer-encoding reversal with raw-bytes fallback, text decoding,
filename / Content-ID extraction and attachment classification.
"""

import base64
import binascii
import copy
import re
from email.errors import HeaderParseError
from email.header import decode_header, make_header
from email.message import Message
from typing import NamedTuple, Optional

import charset_normalizer
import structlog

logger = structlog.get_logger(__name__)

# "=" must introduce two hex digits or a soft line break
_QP_BAD_ESCAPE = re.compile(rb"=(?![0-9A-Fa-f]{2})(?![ \t]*(?:\r?\n|$))")


class DecodeResult(NamedTuple):
    """Outcome of reversing a transfer encoding."""

    data: bytes
    ok: bool


def decode_transfer_encoding(content: bytes, encoding: Optional[str]) -> DecodeResult:
    """
    Reverse a Content-Transfer-Encoding.

    Args:
        content: Raw (still encoded) part content
        encoding: Content-Transfer-Encoding header value, any case

    Returns:
        DecodeResult; on failure ``data`` is ``content`` unchanged and ``ok`` is False.
        Identity encodings (7bit, 8bit, binary, unknown, absent) always succeed.
    """
    encoding = (encoding or "").strip().lower()

    if encoding == "base64":
        try:
            return DecodeResult(base64.b64decode(b"".join(content.split()), validate=True), True)
        except (binascii.Error, ValueError):
            return DecodeResult(content, False)

    if encoding == "quoted-printable":
        if _QP_BAD_ESCAPE.search(content):
            return DecodeResult(content, False)
        try:
            return DecodeResult(binascii.a2b_qp(content), True)
        except (binascii.Error, ValueError):
            return DecodeResult(content, False)

    return DecodeResult(content, True)


def decode_content(content: bytes, encoding: Optional[str]) -> bytes:
    """Best-effort transfer decoding: decoded bytes, or the raw bytes on failure."""
    result = decode_transfer_encoding(content, encoding)
    if not result.ok:
        logger.debug(
            "transfer_decoding_failed",
            encoding=encoding,
            size=len(content),
        )
    return result.data


def decode_text(data: bytes, charset: Optional[str] = None) -> str:
    """
    Turn decoded body bytes into text.

    Tries the declared charset, then UTF-8, then charset-normalizer detection,
    and finally UTF-8 with replacement characters.
    """
    if not data:
        return ""

    if charset:
        try:
            return data.decode(charset)
        except (UnicodeDecodeError, LookupError):
            pass

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        pass

    detected = charset_normalizer.from_bytes(data).best()
    if detected:
        return str(detected)

    return data.decode("utf-8", errors="replace")


def raw_payload(part: Message) -> bytes:
    """
    Get the still-encoded content of a non-multipart part as bytes.

    Messages are always parsed from bytes, so the stdlib keeps non-ASCII
    octets as surrogate escapes; those are turned back into the original bytes.
    """
    if part.is_multipart():
        # message/rfc822 and friends: hand back the embedded message verbatim
        inner = part.get_payload(0)
        return inner.as_bytes()

    # With no transfer encoding declared, get_payload(decode=True) returns the
    # original octets instead of charset-decoding or reversing them
    unencoded = copy.copy(part)
    del unencoded["Content-Transfer-Encoding"]
    return unencoded.get_payload(decode=True) or b""


def clean_content_id(value: Optional[str]) -> str:
    """Strip whitespace and enclosing angle brackets from a Content-ID."""
    if not value:
        return ""
    return str(value).strip().strip("<>")


def get_filename(part: Message) -> str:
    """
    Get the suggested filename of a part.

    Content-Disposition ``filename`` wins over Content-Type ``name``; RFC 2231
    continuations and RFC 2047 encoded words are decoded.
    """
    filename = part.get_filename()
    if not filename:
        return ""

    try:
        return str(make_header(decode_header(filename))).strip()
    except (HeaderParseError, UnicodeError, LookupError):
        return filename.strip()


def is_attachment(part: Message) -> bool:
    """
    Determine if message part is an attachment.

    Args:
        part: Leaf message part to check

    Returns:
        True when the disposition starts with ``attachment`` or a filename is present
    """
    content_disposition = str(part.get("Content-Disposition", "")).strip().lower()
    return content_disposition.startswith("attachment") or bool(get_filename(part))
