"""
Telemetry Aggregator
Turns one batched AT status response into a TelemetrySnapshot.

Every field extractor recovers locally: a missing line or malformed token
leaves that field at its sentinel and the rest of the parse continues.
Only an empty response or the modem ERROR token produce a fallback snapshot.
"""

import logging
import re
from typing import Callable, List, Optional

from .constants import (
    EMPTY_RESPONSE_MESSAGE,
    MODEM_ERROR_MESSAGE,
    NETWORK_MODE_BADGES,
    QENG_LTE_FIELDS,
    SENTINEL_DASH,
    SENTINEL_NA,
    SENTINEL_NO_SIM,
    SENTINEL_NOT_AVAILABLE,
    SENTINEL_UNKNOWN,
)
from .encoding import decode_phone_number
from .entries import QENG_LTE_MARKER, build_entries, qeng_fields
from .identifiers import format_cell_info, normalize_cell_id, normalize_tac
from .lines import LineIndex, classify_lines, clean_response, has_error_token
from .metrics import overall_signal
from .models import (
    CellSignalEntry,
    ParseStatus,
    SignalAssessment,
    Technology,
    TelemetrySnapshot,
)

logger = logging.getLogger(__name__)

COPS_RE = re.compile(r'\+COPS:\s*\d+,\d+,"([^"]*)"')
CONSECUTIVE_DUPLICATES_RE = re.compile(r"(.+)(\s+\1)+", re.IGNORECASE)
MCC_RE = re.compile(r"mcc:\s*(\d+)", re.IGNORECASE)
MNC_RE = re.compile(r"mnc:\s*(\d+)", re.IGNORECASE)
IMSI_RE = re.compile(r"^\d{15}$")
CNUM_RE = re.compile(r',"?(\+?[0-9A-Fa-f]+)"?')
_NON_DIGIT_RE = re.compile(r"\D")

# Recoverable per-field failures
FIELD_ERRORS = (ValueError, IndexError, AttributeError, TypeError, KeyError)

Extractor = Callable[[LineIndex, TelemetrySnapshot], None]


def _value_after(line: str, separator: str = ":", position: int = 1) -> str:
    return line.split(separator)[position].replace('"', "").strip()


def remove_consecutive_duplicates(text: str) -> str:
    """'BetterRoaming BetterRoaming' -> 'BetterRoaming'"""
    return CONSECUTIVE_DUPLICATES_RE.sub(r"\1", text).strip()


def slot_number(index: LineIndex) -> Optional[str]:
    line = index.first_containing("ENABLE")
    if line is None:
        return None
    return _NON_DIGIT_RE.sub("", line.split(" ")[0])


def parse_temperature(index: LineIndex) -> Optional[str]:
    line = index.first_containing("TSENS:")
    if line is None:
        return None
    try:
        return _value_after(line, ":")
    except IndexError:
        return _value_after(line, ",")


# ======================
# Field extractors
# ======================


def _extract_temperatures(index: LineIndex, snapshot: TelemetrySnapshot):
    temperature = parse_temperature(index)
    if temperature:
        snapshot.temperature = temperature

    pa_line = index.first_starting("PA:")
    if pa_line:
        snapshot.pa_temperature = _value_after(pa_line) or SENTINEL_UNKNOWN

    skin_line = index.first_starting("Skin Sensor:")
    if skin_line:
        snapshot.skin_temperature = _value_after(skin_line) or SENTINEL_UNKNOWN


def _extract_sim(index: LineIndex, snapshot: TelemetrySnapshot):
    cpin_line = index.first_containing("+CPIN:")
    if cpin_line:
        status = _value_after(cpin_line)
        snapshot.sim_status = "Active" if status == "READY" else status

    slot = slot_number(index)
    if slot == "1":
        snapshot.active_sim = "SIM 1"
    elif slot == "2":
        snapshot.active_sim = "SIM 2"
    else:
        snapshot.active_sim = SENTINEL_NO_SIM


def _extract_provider(index: LineIndex, snapshot: TelemetrySnapshot):
    snapshot.network_provider = SENTINEL_UNKNOWN
    cops_line = index.first_containing("+COPS:")
    if cops_line:
        match = COPS_RE.search(cops_line)
        if match and match.group(1).strip():
            snapshot.network_provider = remove_consecutive_duplicates(match.group(1).strip())

    mcc_line = index.first_containing("mcc:")
    if mcc_line is None:
        snapshot.mccmnc = SENTINEL_UNKNOWN
        return
    mcc = MCC_RE.search(mcc_line)
    mnc = MNC_RE.search(mcc_line)
    if mcc and mnc:
        snapshot.mccmnc = f"{mcc.group(1)}{mnc.group(1).zfill(2)}"
    else:
        snapshot.mccmnc = _NON_DIGIT_RE.sub("", mcc_line) or SENTINEL_UNKNOWN


def _extract_pdp_context(index: LineIndex, snapshot: TelemetrySnapshot):
    line = index.first_containing("+CGCONTRDP:")
    if line is None:
        return
    parts = line.split(",")
    snapshot.apn = parts[2].replace('"', "").strip()
    snapshot.ipv4 = parts[3].replace('"', "").strip()
    snapshot.ipv6 = parts[4].replace('"', "").strip()


def _extract_network_mode(index: LineIndex, snapshot: TelemetrySnapshot):
    rat_line = index.first_containing("RAT:")
    mode = _value_after(rat_line) if rat_line else SENTINEL_UNKNOWN
    snapshot.network_mode = mode
    snapshot.network_mode_badges = list(NETWORK_MODE_BADGES.get(mode, []))


def _joined(values: List[Optional[str]], fallback: str) -> str:
    present = [value for value in values if value]
    return ", ".join(present) if present else fallback


def _by_technology(entries: List[CellSignalEntry], attribute: str) -> List[Optional[str]]:
    """LTE carriers first, then NR, preserving scan order within each"""
    ordered = [entry for entry in entries if entry.technology == Technology.LTE]
    ordered += [entry for entry in entries if entry.technology == Technology.NR]
    return [getattr(entry, attribute) for entry in ordered]


def _extract_radio_summary(entries: List[CellSignalEntry], snapshot: TelemetrySnapshot):
    snapshot.bands = _joined(_by_technology(entries, "band"), "No Bands")
    snapshot.bandwidth = _joined(_by_technology(entries, "bandwidth_label"), "Unknown Bandwidth")
    snapshot.earfcns = _joined(_by_technology(entries, "channel"), "Unknown E/ARFCN")
    snapshot.pcc_pci = _joined(_by_technology(entries, "pci"), "0")
    snapshot.scc_pci = SENTINEL_DASH


def _lte_cell_source(index: LineIndex):
    """(cell id, tac) raw values from debug output or the engineering-mode line"""
    cell_line = index.first_containing("lte_cell_id:")
    tac_line = index.first_containing("lte_tac:")
    cell_raw = _value_after(cell_line) if cell_line else None
    tac_raw = _value_after(tac_line) if tac_line else None

    qeng_line = index.first_containing(QENG_LTE_MARKER)
    if qeng_line:
        fields = qeng_fields(qeng_line, QENG_LTE_FIELDS)
        # Engineering mode reports both as bare hex
        if cell_raw is None and fields["cell_id"]:
            cell_raw = f"0x{fields['cell_id']}"
        if tac_raw is None and fields["tac"]:
            tac_raw = f"0x{fields['tac']}"
    return cell_raw, tac_raw


def _extract_cell_identity(index: LineIndex, snapshot: TelemetrySnapshot):
    lte_cell_raw, lte_tac_raw = _lte_cell_source(index)

    lte_cell = normalize_cell_id(lte_cell_raw)
    if lte_cell:
        snapshot.cell_id = format_cell_info(lte_cell)
        snapshot.enb_id_lte = SENTINEL_DASH if lte_cell.parent_id is None else str(lte_cell.parent_id)
        snapshot.decimal_cell_id = lte_cell.decimal_value

    lte_tac = normalize_tac(lte_tac_raw)
    if lte_tac:
        snapshot.tac_lte = str(lte_tac.value)
        snapshot.tac = lte_tac.display

    nr_cell_line = index.first_containing("nr_cell_id:")
    nr_cell = normalize_cell_id(_value_after(nr_cell_line)) if nr_cell_line else None
    if nr_cell:
        snapshot.cell_id = format_cell_info(nr_cell)
        snapshot.enb_id_nr = SENTINEL_DASH if nr_cell.parent_id is None else str(nr_cell.parent_id)
        snapshot.decimal_cell_id = nr_cell.decimal_value

    nr_tac_line = index.first_containing("nr_tac:")
    nr_tac = normalize_tac(_value_after(nr_tac_line)) if nr_tac_line else None
    if nr_tac:
        snapshot.tac_nr = str(nr_tac.value)
        if lte_tac is None:
            snapshot.tac = nr_tac.display


def _extract_csq(index: LineIndex, snapshot: TelemetrySnapshot, entries: List[CellSignalEntry]):
    has_lte = any(entry.technology == Technology.LTE for entry in entries)
    has_nr = any(entry.technology == Technology.NR for entry in entries)

    csq_line = index.first_containing("+CSQ:")
    if csq_line:
        snapshot.csq = csq_line.split(" ")[1].replace('"', "")
    elif has_lte:
        snapshot.csq = "LTE+NR Mode" if has_nr else "LTE Mode"
    elif has_nr:
        snapshot.csq = "NR Mode"


def _imsi_candidates(index: LineIndex) -> List[str]:
    """15-digit lines answering +CIMI; any 15-digit line when no +CIMI echo is present"""
    scoped = [line.text for line in index.from_command("+CIMI") if IMSI_RE.match(line.text)]
    return scoped or [text for text in index.texts() if IMSI_RE.match(text)]


def _extract_subscriber(index: LineIndex, snapshot: TelemetrySnapshot):
    candidates = _imsi_candidates(index)
    if candidates:
        snapshot.imsi = candidates[-1]

    for text in index.texts():
        if text.startswith("ICCID:"):
            snapshot.iccid = text.replace("ICCID:", "", 1).strip()
        elif text.startswith("+ICCID:"):
            value = text.split(":")[1].replace('"', "").strip()
            if value:
                snapshot.iccid = value

        if "+CNUM:" in text:
            match = CNUM_RE.search(text)
            if match:
                snapshot.phone_number = decode_phone_number(match.group(1))


LINE_EXTRACTORS: List[Extractor] = [
    _extract_temperatures,
    _extract_sim,
    _extract_provider,
    _extract_pdp_context,
    _extract_network_mode,
    _extract_cell_identity,
    _extract_subscriber,
]


def _run_extractor(name: str, func: Callable, *args):
    try:
        func(*args)
    except FIELD_ERRORS as e:
        logger.debug(f"Field extraction '{name}' fell back to sentinel: {e}")


# ======================
# Public API
# ======================


def fallback_snapshot(status: ParseStatus, message: Optional[str] = None, raw: str = "") -> TelemetrySnapshot:
    """No-data snapshot with every technology field set to its unavailable sentinel"""
    return TelemetrySnapshot(
        status=status,
        error=message,
        raw=raw,
        sim_status=SENTINEL_DASH,
        active_sim=f"Unavailable ({message})" if message else SENTINEL_NO_SIM,
        apn=SENTINEL_NOT_AVAILABLE,
        network_mode=SENTINEL_NOT_AVAILABLE,
        bands=SENTINEL_NOT_AVAILABLE,
        bandwidth=SENTINEL_NOT_AVAILABLE,
        signal_assessment=SignalAssessment.UNKNOWN,
    )


def parse_telemetry(blob: Optional[str]) -> TelemetrySnapshot:
    """
    Parse one batched status response into a snapshot.

    Never raises for malformed input. An empty or acknowledgement-only
    response yields an EMPTY_RESPONSE snapshot, a response carrying the
    ERROR token yields a MODEM_ERROR snapshot with no partial telemetry.
    """
    if not blob or not blob.strip():
        logger.warning(EMPTY_RESPONSE_MESSAGE)
        return fallback_snapshot(ParseStatus.EMPTY_RESPONSE, EMPTY_RESPONSE_MESSAGE)

    raw = clean_response(blob)
    if has_error_token(blob):
        logger.warning(MODEM_ERROR_MESSAGE)
        return fallback_snapshot(ParseStatus.MODEM_ERROR, MODEM_ERROR_MESSAGE, raw=raw)

    lines = classify_lines(blob)
    if not lines:
        logger.warning(EMPTY_RESPONSE_MESSAGE)
        return fallback_snapshot(ParseStatus.EMPTY_RESPONSE, EMPTY_RESPONSE_MESSAGE, raw=raw)

    index = LineIndex(lines)
    entries = build_entries(lines)
    snapshot = TelemetrySnapshot(raw=raw, entries=entries)

    for extractor in LINE_EXTRACTORS:
        _run_extractor(extractor.__name__, extractor, index, snapshot)
    _run_extractor("radio_summary", _extract_radio_summary, entries, snapshot)
    _run_extractor("csq", _extract_csq, index, snapshot, entries)

    scores = [entry.composite for entry in entries if entry.composite is not None]
    snapshot.signal_percentage, snapshot.signal_assessment = overall_signal(scores)

    logger.debug(
        f"Parsed {len(lines)} lines into {len(entries)} carriers, "
        f"signal {snapshot.signal_percentage}% ({snapshot.signal_assessment.value})"
    )
    return snapshot


def parse_basic_status(blob: Optional[str], sim_status: str = SENTINEL_NO_SIM) -> TelemetrySnapshot:
    """
    Snapshot for a modem whose SIM is not ready: only temperature and the
    active slot are read, every technology field is Not Available.
    """
    index = LineIndex(classify_lines(blob))
    temperature = "0"
    active_sim = "Unknown Slot (No SIM Detected)"

    try:
        temperature = parse_temperature(index) or "0"
    except FIELD_ERRORS as e:
        logger.debug(f"Temperature fell back to default: {e}")

    slot = slot_number(index)
    if slot in ("1", "2"):
        active_sim = f"SIM {slot} (No SIM Detected)"

    return TelemetrySnapshot(
        status=ParseStatus.SIM_NOT_READY,
        raw=clean_response(blob),
        sim_status=sim_status,
        active_sim=active_sim,
        network_provider=SENTINEL_NA,
        apn=SENTINEL_NOT_AVAILABLE,
        network_mode=SENTINEL_NOT_AVAILABLE,
        bands=SENTINEL_NOT_AVAILABLE,
        temperature=temperature,
        signal_assessment=SignalAssessment.UNKNOWN,
    )


def parse_sim_status(blob: Optional[str]) -> Optional[str]:
    """Text after '+CPIN:' in a SIM check response, or None when absent"""
    line = LineIndex(classify_lines(blob)).first_containing("+CPIN:")
    if line is None:
        return None
    return line.split(":", 1)[1].replace('"', "").strip()
