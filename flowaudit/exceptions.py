"""Custom exceptions for the flowchart import system."""

from typing import Optional


class FlowAuditError(Exception):
    """Base exception for all import errors.

    Catching this exception will catch any error the CLI should report to
    the user instead of crashing.
    """

    pass


class DocumentParseError(FlowAuditError):
    """The document cannot be interpreted as an audit export at all.

    Raised for unsupported file types and for "HTML" input that contains no
    markup. Malformed content inside a valid document never raises; unmatched
    rows and requirements simply stay unclassified.
    """

    pass


class DocumentFetchError(FlowAuditError):
    """Acquiring the raw document (or a notes template) failed."""

    def __init__(self, message: str, url: str, status_code: Optional[int] = None) -> None:
        """Initialize fetch error.

        Args:
            message: Human-readable error message
            url: URL or path that failed
            status_code: HTTP status code, if a response was received
        """
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class CurriculumFormatError(FlowAuditError):
    """A curriculum or saved-state file does not have the expected shape."""

    pass
