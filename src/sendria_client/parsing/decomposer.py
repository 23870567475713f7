"""
MIME decomposer for raw message sources (RFC5322/MIME format).

Turns the raw source of a captured message into two flat, ordered lists:
displayable content parts and attachments. Nested multipart containers are
unwrapped depth-first and flattened; only encounter order is kept.

Only a message whose header block cannot be framed is an error. Everything
below the top level degrades gracefully: unknown or broken Content-Type
values fall back to text/plain, and undecodable transfer encodings leave the
raw bytes in place.
"""

from email import errors, message_from_bytes
from email.message import Message
from typing import List, NamedTuple, Optional, Union

import structlog

from ..config import settings
from ..exceptions import MalformedMessageError
from ..models.message import Attachment, ContentPart
from .mime_utils import (
    clean_content_id,
    decode_content,
    decode_text,
    get_filename,
    is_attachment,
    raw_payload,
)

logger = structlog.get_logger(__name__)

DEFAULT_CONTENT_TYPE = "text/plain"

_FRAMING_DEFECTS = (
    errors.MissingHeaderBodySeparatorDefect,
    errors.FirstHeaderLineIsContinuationDefect,
)


class DecompositionResult(NamedTuple):
    """Ordered content parts and attachments of one message."""

    parts: List[ContentPart]
    attachments: List[Attachment]


def parse_message(raw_source: Union[str, bytes]) -> Message:
    """
    Frame raw source into a header block and body.

    Args:
        raw_source: Complete message source (.eml payload)

    Returns:
        Parsed email.Message object

    Raises:
        MalformedMessageError: If the input is empty, has no header fields,
            or its header block is interrupted by a non-header line
    """
    if isinstance(raw_source, str):
        raw_source = raw_source.encode("utf-8", "surrogateescape")

    if not raw_source or not raw_source.strip():
        raise MalformedMessageError("Failed to parse message: empty source")

    try:
        msg = message_from_bytes(raw_source)
    except RecursionError as e:
        raise MalformedMessageError("Failed to parse message: nesting too deep") from e

    if any(isinstance(defect, _FRAMING_DEFECTS) for defect in msg.defects):
        raise MalformedMessageError("Failed to parse message: malformed header block")

    if not msg.keys():
        raise MalformedMessageError("Failed to parse message: no header fields")

    return msg


def decompose(
    raw_source: Union[str, bytes],
    *,
    classify_single_part: bool = False,
    max_depth: Optional[int] = None,
) -> DecompositionResult:
    """
    Decompose a raw message into content parts and attachments.

    Args:
        raw_source: Complete message source (.eml payload)
        classify_single_part: Apply attachment classification to a
            non-multipart top-level body too. Off by default: a single-part
            message is always returned as one content part.
        max_depth: Maximum multipart nesting (defaults to settings.max_mime_depth)

    Returns:
        DecompositionResult(parts, attachments), both in depth-first order

    Raises:
        MalformedMessageError: On top-level framing failure or excessive nesting
    """
    msg = parse_message(raw_source)
    if max_depth is None:
        max_depth = settings.max_mime_depth

    parts: List[ContentPart] = []
    attachments: List[Attachment] = []

    if not _raw_content_type(msg):
        # No MIME structure (header absent or empty): whole body as-is
        body = raw_payload(msg)
        parts.append(
            ContentPart(
                media_type=DEFAULT_CONTENT_TYPE,
                raw_content_type=DEFAULT_CONTENT_TYPE,
                body=decode_text(body),
                size=len(body),
            )
        )
        return DecompositionResult(parts, attachments)

    if _is_container(msg):
        _unwrap_multipart(msg, parts, attachments, depth=1, max_depth=max_depth)
    elif classify_single_part:
        _add_leaf(msg, parts, attachments)
    else:
        parts.append(_build_part(msg))

    logger.debug(
        "message_decomposed",
        media_type=msg.get_content_type(),
        parts_count=len(parts),
        attachments_count=len(attachments),
    )
    return DecompositionResult(parts, attachments)


def _is_container(part: Message) -> bool:
    """multipart/* whose boundary actually split the body."""
    if part.get_content_maintype() != "multipart":
        return False
    if not part.is_multipart():
        # Missing or unmatched boundary: the stdlib leaves the body as one string
        logger.debug(
            "multipart_without_parts",
            content_type=str(part.get("Content-Type", "")),
        )
        return False
    return True


def _unwrap_multipart(
    container: Message,
    parts: List[ContentPart],
    attachments: List[Attachment],
    depth: int,
    max_depth: int,
) -> None:
    """Walk one multipart container, appending leaves to the accumulators."""
    if depth > max_depth:
        raise MalformedMessageError(
            f"Failed to parse message: multipart nesting exceeds {max_depth} levels"
        )

    for sub_part in container.get_payload():
        if _is_container(sub_part):
            _unwrap_multipart(sub_part, parts, attachments, depth + 1, max_depth)
        else:
            _add_leaf(sub_part, parts, attachments)


def _add_leaf(
    part: Message, parts: List[ContentPart], attachments: List[Attachment]
) -> None:
    if is_attachment(part):
        attachments.append(_build_attachment(part))
    else:
        parts.append(_build_part(part))


def _decoded_payload(part: Message) -> bytes:
    return decode_content(raw_payload(part), part.get("Content-Transfer-Encoding"))


def _build_part(part: Message) -> ContentPart:
    content = _decoded_payload(part)
    return ContentPart(
        media_type=part.get_content_type(),
        raw_content_type=_raw_content_type(part) or DEFAULT_CONTENT_TYPE,
        body=decode_text(content, _safe_charset(part)),
        size=len(content),
    )


def _build_attachment(part: Message) -> Attachment:
    content = _decoded_payload(part)
    return Attachment(
        content_id=clean_content_id(part.get("Content-ID")),
        media_type=part.get_content_type(),
        raw_content_type=_raw_content_type(part) or DEFAULT_CONTENT_TYPE,
        filename=get_filename(part),
        size=len(content),
        content=content,
    )


def _raw_content_type(part: Message) -> str:
    return str(part.get("Content-Type") or "").strip()


def _safe_charset(part: Message) -> Optional[str]:
    # get_content_charset() raises on some malformed RFC 2231 charset values
    try:
        return part.get_content_charset()
    except (LookupError, UnicodeError, ValueError):
        return None
