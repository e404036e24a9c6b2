"""
Modem Telemetry Engine
Interprets batched AT command output:
- Line classification and command-echo context
- Text encoding detection (UCS-2 / UTF-8 / plain)
- Cell identifier normalization
- Per-carrier LTE/NR signal entries with antenna mapping
- Signal metric normalization and overall assessment
"""

from .aggregator import fallback_snapshot, parse_basic_status, parse_sim_status, parse_telemetry
from .encoding import decode, encode_ucs2
from .entries import build_entries
from .identifiers import format_cell_info, normalize_cell_id, normalize_tac
from .lines import classify_lines, clean_response
from .metrics import classify_signal, normalize_metric
from .models import (
    AntennaReading,
    CarrierRole,
    CellSignalEntry,
    DecodedText,
    Identifier,
    ParseStatus,
    RawLine,
    SignalAssessment,
    SmsListing,
    SmsMessage,
    SmsStorage,
    Technology,
    TelemetrySnapshot,
    TextEncoding,
)
from .sms import parse_sms_listing, parse_storage_status

__all__ = [
    "AntennaReading",
    "CarrierRole",
    "CellSignalEntry",
    "DecodedText",
    "Identifier",
    "ParseStatus",
    "RawLine",
    "SignalAssessment",
    "SmsListing",
    "SmsMessage",
    "SmsStorage",
    "Technology",
    "TelemetrySnapshot",
    "TextEncoding",
    "build_entries",
    "classify_lines",
    "classify_signal",
    "clean_response",
    "decode",
    "encode_ucs2",
    "fallback_snapshot",
    "format_cell_info",
    "normalize_cell_id",
    "normalize_metric",
    "normalize_tac",
    "parse_basic_status",
    "parse_sim_status",
    "parse_sms_listing",
    "parse_storage_status",
    "parse_telemetry",
]
