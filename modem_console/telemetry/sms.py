"""
SMS listing decoder
Parses +CMGL / +CSCA / +CPMS responses into message records
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from .constants import ACK_TOKEN
from .encoding import decode, decode_phone_number, decode_ucs2
from .lines import clean_response
from .models import SmsListing, SmsMessage, SmsStorage

logger = logging.getLogger(__name__)

CMGL_RE = re.compile(r'^\s*\+CMGL:\s*(\d+),"[^"]*","([^"]*)"(?:,"[^"]*")?[^"]*,"([^"]*)"', re.MULTILINE)
CSCA_RE = re.compile(r'^\s*\+CSCA:\s*"([^"]*)"', re.MULTILINE)
CPMS_WITH_MEMORY_RE = re.compile(r'^\s*\+CPMS:\s*"([^"]*)",(\d+),(\d+)', re.MULTILINE)
CPMS_PLAIN_RE = re.compile(r"^\s*\+CPMS:\s*(\d+),(\d+)", re.MULTILINE)
TIMEZONE_SUFFIX_RE = re.compile(r"[+-]\d{2}$")


def parse_sms_date(value: str) -> Optional[datetime]:
    """
    Parse the modem's "YY/MM/DD,HH:MM:SS[+TZ]" timestamp as UTC.
    Years 00-99 map to 2000-2099. Returns None when the value is invalid.
    """
    text = TIMEZONE_SUFFIX_RE.sub("", value.strip())
    try:
        date_part, time_part = text.split(",")
        year, month, day = (int(part) for part in date_part.split("/"))
        hour, minute, second = (int(part) for part in time_part.split(":"))
        return datetime(2000 + year, month, day, hour, minute, second, tzinfo=timezone.utc)
    except (ValueError, OverflowError):
        return None


def parse_sms_listing(blob: Optional[str]) -> SmsListing:
    """
    Parse a message listing response.

    Each +CMGL header opens a record whose body runs to the next +CMGL or
    +CSCA header. Records with an invalid timestamp are skipped.
    """
    data = "\n".join(
        line for line in (blob or "").split("\n") if line.strip() and line.strip() != ACK_TOKEN
    )
    listing = SmsListing(raw=clean_response(blob))

    for match in CMGL_RE.finditer(data):
        index = int(match.group(1))
        date = parse_sms_date(match.group(3))
        if date is None:
            logger.warning(f"Skipping message {index}: invalid date {match.group(3)!r}")
            continue

        start = match.end()
        end = len(data)
        for header in ("+CMGL:", "+CSCA:"):
            position = data.find(header, start)
            if position != -1:
                end = min(end, position)

        listing.messages.append(
            SmsMessage(
                index=index,
                sender=decode_phone_number(match.group(2)),
                date=date,
                text=decode(data[start:end].strip()).decoded,
            )
        )

    for match in CSCA_RE.finditer(data):
        listing.service_centers.append(decode_ucs2(match.group(1)))

    logger.debug(f"Parsed {len(listing.messages)} messages, {len(listing.service_centers)} service centers")
    return listing


def parse_storage_status(blob: Optional[str]) -> Optional[SmsStorage]:
    """Storage usage from +CPMS, with or without the memory type"""
    data = blob or ""
    match = CPMS_WITH_MEMORY_RE.search(data)
    if match:
        return SmsStorage(memory_type=match.group(1), used=int(match.group(2)), total=int(match.group(3)))

    match = CPMS_PLAIN_RE.search(data)
    if match:
        return SmsStorage(memory_type=None, used=int(match.group(1)), total=int(match.group(2)))
    return None

