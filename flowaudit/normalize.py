"""
Text and course-code normalization.

Audit exports mangle text in many small ways: ligature glyphs from PDF
extraction (the "fi" ligature), unicode minus signs, soft hyphens, department
prefixes glued to course numbers ("POLSC1"), grades with stray spaces
("B -") or a leading plus ("+C"). Everything downstream compares the
canonical forms produced here.
"""

import re

from .config import CODE_ALIASES, CREDIT_GRADES, PASSING_LETTERS

LIGATURES = {
    "\uFB00": "ff",
    "\uFB01": "fi",
    "\uFB02": "fl",
    "\uFB03": "ffi",
    "\uFB04": "ffl",
    "\uFB05": "ft",
    "\uFB06": "st",
}

DASHES_RX = re.compile("[\u2212\u2012\u2013\u2014\u2015]")
SOFT_HYPHEN = "\u00AD"
WHITESPACE_RX = re.compile(r"\s+")

CODE_SEPARATOR_RX = re.compile(r"[-\s]+")
GLUED_DEPT_RX = re.compile(r"^([A-Z]{2,6})\s*(\d)")
COMPILED_ALIASES = [(re.compile(pattern), code) for pattern, code in CODE_ALIASES.items()]

LEADING_PLUS_RX = re.compile(r"^\+([A-F])$")
LETTER_GRADE_RX = re.compile(r"^([A-F])([+\-])?$")


def normalize_dashes(s: str) -> str:
    """Unify unicode dash/minus variants and drop soft hyphens."""
    return DASHES_RX.sub("-", s).replace(SOFT_HYPHEN, "")


def normalize_text(s: str = "") -> str:
    """Canonicalize raw audit text: ligatures, dashes, soft hyphens, whitespace."""
    text = str(s or "")
    for glyph, letters in LIGATURES.items():
        text = text.replace(glyph, letters)
    text = normalize_dashes(text)

    # Whitespace is collapsed *after* ligature replacement
    return WHITESPACE_RX.sub(" ", text).strip()


def normalize_code(code: str = "") -> str:
    """
    Canonicalize a course code to "DEPT NUM[PART]".

    Examples:
        "egec-180"   -> "EGEC 180"
        "CPSC   121a" -> "CPSC 121A"
        "POLSC1"     -> "POSC 100" (alias)

    Idempotent: normalize_code(normalize_code(x)) == normalize_code(x).
    """
    t = CODE_SEPARATOR_RX.sub(" ", str(code or "").upper()).strip()

    # Extraction sometimes glues department and number together
    t = GLUED_DEPT_RX.sub(r"\1 \2", t)

    for pattern, canonical in COMPILED_ALIASES:
        if pattern.match(t):
            return canonical
    return t


def normalize_grade(token: str = "") -> str:
    """
    Normalize a grade/status token.

    Uppercases, removes internal whitespace ("b -" -> "B-") and rewrites a
    leading plus as trailing ("+C" -> "C+").
    """
    grade = WHITESPACE_RX.sub("", str(token or "")).upper()
    m = LEADING_PLUS_RX.match(grade)
    if m:
        return f"{m.group(1)}+"
    return grade


def is_passing_grade(token: str = "") -> bool:
    """
    True for C- or better, CR and P.

    D grades, F, IP and empty tokens are not passing.
    """
    grade = normalize_grade(token)
    if grade in CREDIT_GRADES:
        return True
    m = LETTER_GRADE_RX.match(grade)
    return bool(m) and m.group(1) in PASSING_LETTERS
