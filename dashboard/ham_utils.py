"""
Callsign directory lookups.

Callook (US licenses, straight from the FCC ULS) is tried first; HamDB,
which also covers some non-US calls, is the fallback.  Both answers are
normalized into a CallsignRecord.
"""

import logging
import re
from dataclasses import dataclass, asdict

import requests
from django.conf import settings

from .exceptions import DataUnavailableError

logger = logging.getLogger(__name__)

CALLOOK_URL = "https://callook.info/{}/json"
HAMDB_URL   = "https://api.hamdb.org/{}/json/stationdashboard"
QRZ_PROFILE_URL = "https://www.qrz.com/db/{}"

CALLSIGN_RE = re.compile(r"^[A-Z0-9]{1,3}[0-9][A-Z0-9]{0,4}[A-Z]$")

LICENSE_CLASSES = {
    "E": "Amateur Extra",
    "EXTRA": "Amateur Extra",
    "A": "Advanced",
    "ADVANCED": "Advanced",
    "G": "General",
    "GENERAL": "General",
    "T": "Technician",
    "TECHNICIAN": "Technician",
    "N": "Novice",
    "NOVICE": "Novice",
}

# "DALLAS, TX 75201" -> "TX"
_STATE_RE = re.compile(r",\s*([A-Z]{2})\s+\d{5}")


@dataclass(frozen=True)
class CallsignRecord:
    callsign: str
    name: str
    country: str
    state: str
    grid: str
    license_class: str
    expires: str

    @property
    def qrz_url(self):
        return QRZ_PROFILE_URL.format(self.callsign)

    def as_dict(self):
        data = asdict(self)
        data["qrz_url"] = self.qrz_url
        return data


def normalize_callsign(callsign):
    """Uppercase, trim and strip portable suffixes/prefixes (W1AW/P -> W1AW)."""
    callsign = (callsign or "").strip().upper()
    if "/" in callsign:
        # The longest part is the base call.
        callsign = max(callsign.split("/"), key=len)
    return callsign


def is_valid_callsign(callsign):
    return bool(CALLSIGN_RE.match(normalize_callsign(callsign)))


def query_callook(callsign, timeout=None):
    timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
    return requests.get(CALLOOK_URL.format(callsign), timeout=timeout).json()


def query_hamdb(callsign, timeout=None):
    timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
    return requests.get(HAMDB_URL.format(callsign), timeout=timeout).json()


def _license_name(code):
    code = (code or "").strip().upper()
    return LICENSE_CLASSES.get(code, code.title() if code else "")


def parse_callook(payload):
    """Return a CallsignRecord for a VALID Callook payload, else None."""
    if payload.get("status") != "VALID":
        return None
    address = payload.get("address") or {}
    state_match = _STATE_RE.search(address.get("line2") or "")
    return CallsignRecord(
        callsign=payload["current"]["callsign"],
        name=(payload.get("name") or "").title(),
        country="United States",
        state=state_match.group(1) if state_match else "",
        grid=(payload.get("location") or {}).get("gridsquare", ""),
        license_class=_license_name(payload["current"].get("operClass")),
        expires=(payload.get("otherInfo") or {}).get("expiryDate", ""),
    )


def parse_hamdb(payload):
    """Return a CallsignRecord for a found HamDB payload, else None."""
    hamdb = payload.get("hamdb") or {}
    if (hamdb.get("messages") or {}).get("status") == "NOT_FOUND":
        return None
    station = hamdb.get("callsign") or {}
    if not station.get("call") or station.get("call") == "NOT_FOUND":
        return None
    name = " ".join(
        part for part in (station.get("fname"), station.get("mi"), station.get("name")) if part
    )
    return CallsignRecord(
        callsign=station["call"].upper(),
        name=name.title(),
        country=station.get("country", ""),
        state=station.get("state", ""),
        grid=station.get("grid", ""),
        license_class=_license_name(station.get("class")),
        expires=station.get("expires", ""),
    )


def lookup_callsign(callsign):
    """
    Look up *callsign* in the directory.

    Returns:
        tuple: (record: CallsignRecord or None, error: str or None).
               A callsign nobody holds comes back as (None, message).

    Raises:
        DataUnavailableError when neither directory can be reached.
    """
    cs = normalize_callsign(callsign)
    if not CALLSIGN_RE.match(cs):
        return None, f"“{callsign}” doesn't look like an amateur-radio call sign."

    try:
        # Callook first
        record = parse_callook(query_callook(cs))
        if record is None:
            # Fallback to HamDB
            record = parse_hamdb(query_hamdb(cs))
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Callsign lookup for %s failed: %s", cs, exc)
        raise DataUnavailableError("callsign", str(exc)) from exc
    except (KeyError, TypeError, AttributeError) as exc:
        logger.exception("Unexpected callsign directory payload for %s", cs)
        raise DataUnavailableError("callsign", "malformed directory response") from exc

    if record is None:
        return None, f"“{cs}” is not a valid amateur-radio call sign."
    return record, None
