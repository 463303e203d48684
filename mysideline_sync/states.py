"""
Australian states and territories - lookup helpers for card addresses.
"""
import re
from typing import Dict, List, Optional, Tuple

# (full name, code, spellings that may appear in an address)
AUSTRALIAN_STATES: List[Tuple[str, str, List[str]]] = [
    ("New South Wales", "NSW", ["NSW", "N.S.W."]),
    ("Victoria", "VIC", ["VIC", "Vic."]),
    ("Queensland", "QLD", ["QLD", "Qld."]),
    ("Western Australia", "WA", ["WA", "W.A."]),
    ("South Australia", "SA", ["SA", "S.A."]),
    ("Tasmania", "TAS", ["TAS", "Tas."]),
    ("Australian Capital Territory", "ACT", ["ACT", "A.C.T."]),
    ("Northern Territory", "NT", ["NT", "N.T."]),
]

STATE_NAMES: Dict[str, str] = {code: name for name, code, _ in AUSTRALIAN_STATES}


def _build_pattern(name: str, spellings: List[str]) -> re.Pattern:
    options = [re.escape(name)] + [re.escape(s) for s in spellings]
    # lookarounds instead of \b so dotted forms like "N.S.W." still match
    return re.compile(
        r"(?<![A-Za-z])(?:" + "|".join(options) + r")(?![A-Za-z])",
        re.IGNORECASE,
    )


_STATE_PATTERNS = [
    (name, _build_pattern(name, spellings)) for name, _, spellings in AUSTRALIAN_STATES
]


def state_from_address(address: Optional[str]) -> Optional[str]:
    """
    Find the Australian state or territory named in *address*.

    Full names and abbreviations are matched as whole words. When several
    match (e.g. "Victoria Park, Perth WA") the one closest to the end of the
    address wins, since that is where the state sits in a postal address.

    Returns:
        The full state name (e.g. "New South Wales") or None.
    """
    if not address or not isinstance(address, str):
        return None

    best_name = None
    best_pos = -1
    for name, pattern in _STATE_PATTERNS:
        for match in pattern.finditer(address):
            if match.start() > best_pos:
                best_pos = match.start()
                best_name = name
    return best_name


def state_code(value: Optional[str]) -> Optional[str]:
    """Map a full state name or a code (any case) to its 3-letter code."""
    if not value:
        return None
    value = value.strip()
    for name, code, _ in AUSTRALIAN_STATES:
        if value.lower() in (name.lower(), code.lower()):
            return code
    return None
