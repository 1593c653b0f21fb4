"""
Turn uploaded bytes into text for the parser.

Responsibilities:
- encoding detection (best effort, charset-normalizer)
- BOM-aware UTF-8 decoding
- rejecting input that is not text at all
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from charset_normalizer import from_bytes

from .errors import UnreadableUploadError

LOGGER = logging.getLogger(__name__)

_UTF8_BOM = b"\xef\xbb\xbf"


def _is_utf8_name(encoding: str) -> bool:
    return encoding.lower().replace("-", "_") in ("utf_8", "utf8", "utf_8_sig")


def decode_upload(raw: bytes) -> Tuple[str, Dict[str, Any]]:
    """
    Decode uploaded bytes to text.

    Rules:
    - Detect encoding best-effort via charset-normalizer.
    - UTF-8 with a leading BOM is decoded with utf-8-sig.
    - If the detected codec fails, retry as strict UTF-8.
    - Bytes nothing can decode, or text carrying NUL characters, are not CSV.
    """
    if not raw:
        return "", {"detected": None, "decode_used": "utf-8", "decode_fallback": False}

    detected = None
    match = from_bytes(raw).best()
    if match is not None:
        detected = match.encoding

    decode_used = detected or "utf-8"
    if raw.startswith(_UTF8_BOM) and _is_utf8_name(decode_used):
        decode_used = "utf-8-sig"

    decode_fallback = False
    try:
        text = raw.decode(decode_used)
    except (UnicodeDecodeError, LookupError):
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise UnreadableUploadError("Could not read the file as text.") from exc
        decode_used = "utf-8"
        decode_fallback = True

    if "\x00" in text:
        raise UnreadableUploadError("Could not read the file as text.")

    if decode_fallback:
        LOGGER.info("Decoded upload as utf-8 after %s failed", detected)

    return text, {
        "detected": detected,
        "decode_used": decode_used,
        "decode_fallback": decode_fallback,
    }
