"""
Title parser - pulls the event date out of a MySideline card title.

MySideline organisers put the carnival date into the title in many shapes:
"(19/07/2025)", "(27th July 2024)", "- Sep 20, 2024", "Carnival 5 Feb 2026"
or just "(2025)". ``extract_and_strip_date`` finds the first one that is a
real calendar date, removes it, and returns the cleaned title.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Tuple

MONTH_NAMES = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]

ORDINAL_RE = re.compile(r"(\d{1,2})(?:st|nd|rd|th)\b", re.IGNORECASE)

_NUMERIC = r"\d{1,2}[/\-]\d{1,2}[/\-]\d{4}"
_ORDINAL_DAY_MONTH = r"\d{1,2}(?:st|nd|rd|th)\s+[A-Za-z]{3,}\.?,?\s+\d{4}"
_DAY_MONTH = r"\d{1,2}(?:st|nd|rd|th)?\s+[A-Za-z]{3,}\.?,?\s+\d{4}"
_MONTH_DAY = r"[A-Za-z]{3,}\.?\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{4}"
_ANY_DATE = f"(?:{_NUMERIC}|{_DAY_MONTH}|{_MONTH_DAY})"
_SEPARATOR = r"(?:^|(?<=\s))[\-|]\s*"

# Tried in order; group 1 holds the date text, group 0 the span to strip.
TITLE_DATE_PATTERNS: List[re.Pattern] = [
    re.compile(rf"\(\s*({_ORDINAL_DAY_MONTH})\s*\)", re.IGNORECASE),
    re.compile(rf"\(\s*({_NUMERIC})\s*\)"),
    re.compile(rf"\(\s*({_DAY_MONTH}|{_MONTH_DAY})\s*\)", re.IGNORECASE),
    re.compile(rf"{_SEPARATOR}({_ANY_DATE})(?=\s|$|[\-|,)])", re.IGNORECASE),
    re.compile(rf"\s({_ANY_DATE})\s*$", re.IGNORECASE),
]

YEAR_ONLY_PATTERNS: List[re.Pattern] = [
    re.compile(r"\(\s*(20\d{2})\s*\)"),
    re.compile(rf"{_SEPARATOR}(20\d{{2}})(?=\s|$)"),
]

_FALLBACK_FORMATS = [
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d.%m.%Y",
    "%A %d %B %Y",
    "%a %d %b %Y",
    "%A, %d %B %Y",
    "%d %B, %Y",
    "%B %Y",
]


@dataclass
class ParsedTitle:
    clean_title: str
    extracted_date: Optional[date]


def month_number(word: str) -> Optional[int]:
    """Return 1-12 for a full or abbreviated English month name ("Sep", "Sept")."""
    word = word.strip().rstrip(".").lower()
    if len(word) < 3:
        return None
    for index, name in enumerate(MONTH_NAMES, start=1):
        if name.startswith(word):
            return index
    return None


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    # date() rejects day 31 in a 30-day month, month 13, etc.
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(date_string: Optional[str]) -> Optional[date]:
    """
    Parse a loose date string into a ``date``.

    Supports DD/MM/YYYY, DD-MM-YYYY, "DD Month YYYY" and "Month DD[,] YYYY"
    (ordinal suffixes allowed), then a handful of general formats as a last
    resort. Returns None when nothing matches; it never guesses today.
    """
    if not date_string or not isinstance(date_string, str):
        return None

    text = ORDINAL_RE.sub(r"\1", date_string.strip())
    text = re.sub(r"\s+", " ", text)

    match = re.fullmatch(r"(\d{1,2})[\s/\-](\d{1,2})[\s/\-](\d{4})", text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        return _safe_date(year, month, day)

    match = re.fullmatch(r"(\d{1,2}) ([A-Za-z]{3,})\.?,? (\d{4})", text)
    if match:
        month = month_number(match.group(2))
        if month:
            parsed = _safe_date(int(match.group(3)), month, int(match.group(1)))
            if parsed:
                return parsed

    match = re.fullmatch(r"([A-Za-z]{3,})\.? (\d{1,2}),? (\d{4})", text)
    if match:
        month = month_number(match.group(1))
        if month:
            parsed = _safe_date(int(match.group(3)), month, int(match.group(2)))
            if parsed:
                return parsed

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _clean_title(title: str) -> str:
    title = re.sub(r"\(\s*\)", " ", title)
    title = re.sub(r"\s+", " ", title).strip()
    title = re.sub(r"^[\s\-|]+", "", title)
    title = re.sub(r"[\s\-|]+$", "", title)
    return title.strip()


def _take_date(text: str) -> Tuple[str, Optional[date]]:
    """Remove the first real date (or, failing that, a bare year) from *text*."""
    for pattern in TITLE_DATE_PATTERNS:
        for match in pattern.finditer(text):
            parsed = parse_date(match.group(1))
            if parsed:
                return text[:match.start()] + " " + text[match.end():], parsed

    for pattern in YEAR_ONLY_PATTERNS:
        match = pattern.search(text)
        if match:
            return text[:match.start()] + " " + text[match.end():], date(int(match.group(1)), 1, 1)
    return text, None


def extract_and_strip_date(title: Optional[str]) -> ParsedTitle:
    """
    Split *title* into a clean carnival name and the date embedded in it.

    Only the first date found is returned. Any further dates or bracketed
    years are stripped too, so the clean title never holds a date.

    Example:
        >>> extract_and_strip_date("NSW Masters Carnival (15/09/2099)")
        ParsedTitle(clean_title='NSW Masters Carnival', extracted_date=datetime.date(2099, 9, 15))
    """
    if not title or not isinstance(title, str):
        return ParsedTitle(clean_title=title or "", extracted_date=None)

    working, extracted = _take_date(title.strip())
    leftover = extracted
    while leftover is not None:
        working, leftover = _take_date(working)

    clean = _clean_title(working)

    if not clean:
        # title was only a date; fall back to any wording in brackets
        bracketed = re.search(r"\(([^\d()]+)\)", title)
        if bracketed:
            clean = bracketed.group(1).strip()

    return ParsedTitle(clean_title=clean, extracted_date=extracted)
