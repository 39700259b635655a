"""
Configuration constants for the flowchart import system.

This module contains all configuration values and constants used throughout
the import pipeline. Centralizing these makes it easy to adjust behavior as
audit exports and flowcharts change.
"""

import os

# =============================================================================
# GRADE DEFINITIONS
# =============================================================================

# Letter grades that count as "passed" (C- or better).
# Modifiers (+/-) are handled by the grade pattern, not listed here.
PASSING_LETTERS = {"A", "B", "C"}

# Credit/pass grades for pass/fail courses
CREDIT_GRADES = {"CR", "P"}

# In-progress status token. Never counts as passed.
IN_PROGRESS_GRADE = "IP"


# =============================================================================
# FLOWCHART LABELS AND CATEGORIES
# =============================================================================

STRIKE_LABEL = "__strike__"
IN_PROGRESS_LABEL = "In Prog."
REVIEW_LABEL = "Review"

GE_CATEGORY = "GE"
TECH_ELECTIVE_CATEGORY = "Tech Elective"

# GE-category courses that may still be struck by the completion pass.
# These are dedicated boxes, never generic GE placeholders.
ALLOW_GE = {"ENGL 101", "POSC 100"}


# =============================================================================
# COURSE CODE EQUIVALENCIES
# =============================================================================

# Combined course vs. lecture/lab parts.
#   "CPSC 120" (combined) == "CPSC 120A" + "CPSC 120L"
EQUIVALENCIES = {
    "CPSC 120": ("CPSC 120", ("CPSC 120A", "CPSC 120L")),
    "CPSC 121": ("CPSC 121", ("CPSC 121A", "CPSC 121L")),
}

# A generic department prefix on the flowchart may show up on the audit under
# any of the program-specific prefixes (e.g. EGEC 280 -> EGCP 280).
ALTERNATE_DEPARTMENTS = {
    "EGEC": ("EGCP", "EGEE", "EGCE", "EGME"),
}

# Mis-extracted codes seen on some audits, mapped to the canonical code.
# Keys are regexes applied to an already upper-cased, space-normalized code.
CODE_ALIASES = {
    r"^POLSC\s*0*1$": "POSC 100",
}


# =============================================================================
# AUDIT DOCUMENT MARKERS
# =============================================================================

# Technical electives section of the audit text
TECH_SECTION_START = "TECHNICAL ELECTIVES"
TECH_SECTION_END = ("GRADE POINT", "UPPER-DIVISION", "GRADUATION REQUIREMENT")

# Articulation blurbs inside the tech section ("CSUN: ...") that list
# another institution's course codes
TECH_NOISE_INSTITUTIONS = ("CSUN",)

# Transcript tables in the HTML export
TRANSCRIPT_TABLE_CLASS = "completedCourses"
REQUIREMENT_CLASS = "requirement"
SUBREQUIREMENT_CLASS = "subrequirement"
IN_PROGRESS_ROW_CLASSES = ("ip", "inprog")

# Only look for "Requirement Unfulfilled" near the top of a GE slice
UNFULFILLED_HEAD_CHARS = 600

# Graduation requirement met by POSC 100 or an equivalent certification
GRADGOV_CODE = "POSC 100"
GRADGOV_NOTE = "GRADGOV (CSU Cert.)"

ETHNIC_STUDIES_CERT_NOTE = "F CSU CERT"
CERT_COURSE_NOTE = "CSU Cert. Course"
WAIVED_NOTE = "Waived"


# =============================================================================
# ACQUISITION
# =============================================================================

HTML_EXTENSIONS = (".html", ".htm")
TEXT_EXTENSIONS = (".txt",)

HTTP_TIMEOUT = 15
HTTP_RETRIES = 3
HTTP_BACKOFF = 1
HTTP_USER_AGENT = "flowaudit/1.0"

# Per-program advising-note templates live at <base>/<PROGRAM>.html
NOTES_TEMPLATE_BASE_URL = os.environ.get("FLOWAUDIT_NOTES_URL", "")
DEFAULT_NOTE_BULLETS = ("ADD NOTES HERE",)

LOG_LEVEL = os.environ.get("FLOWAUDIT_LOG_LEVEL", "INFO")
