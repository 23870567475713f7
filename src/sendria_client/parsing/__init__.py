# MIME parsing module

from .decomposer import (
    DecompositionResult,
    decompose,
    parse_message,
)
from .mime_utils import (
    DecodeResult,
    clean_content_id,
    decode_content,
    decode_text,
    decode_transfer_encoding,
    get_filename,
    is_attachment,
)

__all__ = [
    "decompose",
    "parse_message",
    "DecompositionResult",
    "DecodeResult",
    "decode_transfer_encoding",
    "decode_content",
    "decode_text",
    "clean_content_id",
    "get_filename",
    "is_attachment",
]
