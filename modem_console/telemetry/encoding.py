"""
Encoding Detector/Decoder
Infers whether an untagged text field is UCS-2 hex, UTF-8 hex or plain text.

Modems disagree on whether text fields (sender numbers, message bodies,
service-center numbers) come back as UCS-2 or as ASCII, and the response
carries no encoding tag, so the choice is made by scoring both decodings.
"""

import logging
import re
import unicodedata
from typing import Optional

from .constants import (
    ENCODED_NUMBER_MIN_LENGTH,
    ENCODED_NUMBER_PREFIXES,
    HEX_RATIO_MIN,
    UCS2_ZERO_EVEN_THRESHOLD,
    UTF8_PREFERENCE_MARGIN,
)
from .models import DecodedText, TextEncoding

logger = logging.getLogger(__name__)

REPLACEMENT_CHAR = "\ufffd"

_WHITESPACE_RE = re.compile(r"\s+")
_NON_HEX_RE = re.compile(r"[^0-9a-fA-F]")
_STRICT_HEX_RE = re.compile(r"^(?:[0-9a-fA-F]{2})+$")


def extract_hex_payload(raw: Optional[str]) -> Optional[str]:
    """
    Extract the hex digits of a predominantly-hex field.

    Returns None when fewer than 70% of the non-whitespace characters are
    hex digits, or fewer than two remain. A trailing odd nibble is dropped.
    """
    if not raw:
        return None
    compact = _WHITESPACE_RE.sub("", raw)
    if not compact:
        return None

    hex_only = _NON_HEX_RE.sub("", compact)
    ratio = len(hex_only) / len(compact)
    if ratio < HEX_RATIO_MIN or len(hex_only) < 2:
        return None

    if len(hex_only) % 2 == 1:
        hex_only = hex_only[:-1]
    return hex_only


def score_decoded_text(text: str) -> float:
    """Readability score normalized by length; higher is more plausible text"""
    if not text:
        return 0.0

    score = 0
    for char in text:
        if char == REPLACEMENT_CHAR:
            score -= 5
            continue
        category = unicodedata.category(char)
        if category[0] in ("L", "N", "P") or category == "Zs":
            score += 1
        elif category[0] == "C":
            score -= 2
    return score / len(text)


def ucs2_zero_even_ratio(data: bytes) -> float:
    """Fraction of UTF-16 code units whose high byte is zero"""
    if not data or len(data) < 2:
        return 0.0
    pairs = len(data) // 2
    zero_even = sum(1 for i in range(pairs) if data[i * 2] == 0)
    return zero_even / pairs


def choose_encoding(utf16_score: float, utf8_score: float, zero_even_ratio: float) -> TextEncoding:
    """
    Pick UTF-16BE or UTF-8 from the two readability scores.

    A high zero-even ratio favours UTF-16BE unless UTF-8 wins by more than
    the preference margin; otherwise the higher score wins and ties go to UTF-8.
    """
    if zero_even_ratio > UCS2_ZERO_EVEN_THRESHOLD:
        if utf16_score >= utf8_score - UTF8_PREFERENCE_MARGIN:
            return TextEncoding.UTF16BE
        return TextEncoding.UTF8
    if utf8_score >= utf16_score:
        return TextEncoding.UTF8
    return TextEncoding.UTF16BE


def decode_hex_to_text(hex_payload: str) -> DecodedText:
    """Decode an even-length hex payload with the better-scoring encoding"""
    data = bytes.fromhex(hex_payload)
    utf16_text = data.decode("utf-16-be", errors="replace")
    utf8_text = data.decode("utf-8", errors="replace")

    utf16_score = score_decoded_text(utf16_text)
    utf8_score = score_decoded_text(utf8_text)
    zero_even = ucs2_zero_even_ratio(data)
    encoding = choose_encoding(utf16_score, utf8_score, zero_even)
    logger.debug(
        f"Hex payload of {len(data)} bytes: utf16={utf16_score:.2f} utf8={utf8_score:.2f} "
        f"zero_even={zero_even:.2f} -> {encoding.value}"
    )
    decoded = utf16_text if encoding == TextEncoding.UTF16BE else utf8_text
    return DecodedText(raw=hex_payload, decoded=decoded, encoding=encoding)


def decode(candidate: Optional[str]) -> DecodedText:
    """
    Decode a candidate field of unknown encoding.

    Never fails: anything that is not predominantly hex comes back
    unchanged as plain text.
    """
    raw = candidate or ""
    payload = extract_hex_payload(raw)
    if payload is None:
        return DecodedText(raw=raw, decoded=raw, encoding=TextEncoding.PLAIN_TEXT)

    result = decode_hex_to_text(payload)
    return DecodedText(raw=raw, decoded=result.decoded, encoding=result.encoding)


def looks_like_encoded_number(value: str) -> bool:
    """
    Telephone short codes stay as-is; only long strings that start with the
    encoded '+' (002B) or an encoded digit (003x) are treated as UCS-2.
    """
    return len(value) > ENCODED_NUMBER_MIN_LENGTH and value.startswith(ENCODED_NUMBER_PREFIXES)


def decode_phone_number(value: str) -> str:
    if looks_like_encoded_number(value):
        return decode(value).decoded
    return value


def decode_ucs2(hex_value: str) -> str:
    """Plain UTF-16BE decode; non-hex input is returned unchanged"""
    if not hex_value or not _STRICT_HEX_RE.match(hex_value):
        return hex_value
    return bytes.fromhex(hex_value).decode("utf-16-be", errors="replace")


def encode_ucs2(text: str) -> str:
    """Encode text as uppercase hex, four digits per UTF-16 code unit"""
    return text.encode("utf-16-be").hex().upper()
