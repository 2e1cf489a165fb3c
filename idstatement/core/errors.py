"""
Exception hierarchy for statement loading and configuration failures.

Layout problems inside a page never raise; they produce empty results.
Only upstream document failures and caller mistakes surface as exceptions.
"""


class StatementError(Exception):
    """Base exception for all statement processing errors."""


class DocumentLoadError(StatementError):
    """Raised when the PDF cannot be opened or decoded."""


class PasswordError(DocumentLoadError):
    """Raised when an encrypted PDF cannot be unlocked.

    Common causes:
    - No password callback was supplied
    - The callback returned an empty answer
    - Every attempt was rejected
    """

    def __init__(self, message: str, attempts: int = 0):
        self.attempts = attempts
        super().__init__(message)


class UnknownFormatError(StatementError, ValueError):
    """Raised when a template id is not registered."""
