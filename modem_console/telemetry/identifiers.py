"""
Identifier Normalizer
Canonical hex cell identifiers, tracking areas and bandwidth codes
"""

import logging
import re
from typing import Optional, Union

from .constants import LTE_BANDWIDTH_CODES, NR_BANDWIDTH_CODES
from .models import Identifier, TrackingArea

logger = logging.getLogger(__name__)

_HEX_PREFIX_RE = re.compile(r"^0x", re.IGNORECASE)
_HEX_RE = re.compile(r"^[0-9A-Fa-f]+$")
_HEX_LETTER_RE = re.compile(r"[A-Fa-f]")
_DECIMAL_RE = re.compile(r"^\d+")
_LEADING_HEX_RE = re.compile(r"^[0-9A-Fa-f]+")


def _clean(raw: Optional[str]) -> str:
    if raw is None:
        return ""
    return str(raw).strip().replace('"', "")


def _parse_hex(value: str) -> Optional[int]:
    if not value or not _HEX_RE.match(value):
        return None
    return int(value, 16)


def to_canonical_hex(raw: Optional[str]) -> Optional[str]:
    """
    Canonical uppercase hex for a field that may be 0x-prefixed hex, bare
    hex with letters, or plain decimal. None when empty or unparsable.
    """
    trimmed = _clean(raw)
    if not trimmed:
        return None

    if _HEX_PREFIX_RE.match(trimmed):
        return _HEX_PREFIX_RE.sub("", trimmed).upper()

    if _HEX_RE.match(trimmed) and _HEX_LETTER_RE.search(trimmed):
        return trimmed.upper()

    match = _DECIMAL_RE.match(trimmed)
    if not match:
        logger.debug(f"Unparsable cell identifier: {trimmed!r}")
        return None
    return format(int(match.group(0)), "X")


def identifier_from_hex(hex_value: Optional[str]) -> Optional[Identifier]:
    """Derive decimal, short (last byte) and parent (eNB/gNB) values"""
    if not hex_value:
        return None

    short_hex = hex_value[-2:]
    parent_hex = hex_value[:-2]
    return Identifier(
        hex_value=hex_value,
        decimal_value=_parse_hex(hex_value),
        short_id=short_hex,
        short_decimal=_parse_hex(short_hex),
        parent_id=_parse_hex(parent_hex),
    )


def normalize_cell_id(raw: Optional[str]) -> Optional[Identifier]:
    return identifier_from_hex(to_canonical_hex(raw))


def normalize_tac(raw: Optional[str]) -> Optional[TrackingArea]:
    """
    Tracking area code: hex when it has a hex letter or 0x prefix,
    decimal otherwise. Only the leading run of valid digits is read.
    """
    trimmed = _clean(raw)
    if not trimmed:
        return None

    is_hex_candidate = bool(_HEX_LETTER_RE.search(trimmed) or _HEX_PREFIX_RE.match(trimmed))
    digits = _HEX_PREFIX_RE.sub("", trimmed)
    match = (_LEADING_HEX_RE if is_hex_candidate else _DECIMAL_RE).match(digits)
    if match is None:
        logger.debug(f"Unparsable tracking area code: {trimmed!r}")
        return None
    return TrackingArea(raw=trimmed, value=int(match.group(0), 16 if is_hex_candidate else 10))


def _bandwidth(codes: dict, code: Union[str, int, None]) -> Optional[str]:
    try:
        mhz = codes.get(int(str(code).strip().replace('"', "")))
    except (TypeError, ValueError):
        return None
    if mhz is None:
        return None
    return f"{mhz}MHz"


def lte_bandwidth_label(code: Union[str, int, None]) -> Optional[str]:
    """LTE bandwidth code (0..9) as a display label"""
    return _bandwidth(LTE_BANDWIDTH_CODES, code)


def nr_bandwidth_label(code: Union[str, int, None]) -> Optional[str]:
    """NR bandwidth code (0..14) as a display label"""
    return _bandwidth(NR_BANDWIDTH_CODES, code)


def format_cell_info(identifier: Optional[Identifier]) -> Optional[str]:
    """'Short 3C(60), Long 1A2B3C(1715004)' or None when there is no identifier"""
    if identifier is None:
        return None
    return identifier.display
