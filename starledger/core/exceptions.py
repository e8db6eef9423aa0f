"""
starledger Exception Hierarchy

All exceptions inherit from StarLedgerError for easy catching.
Each class carries a `kind` string so callers can branch on the
failure without importing every subclass.
"""

from typing import List


class StarLedgerError(Exception):
    """Base exception for all starledger errors"""

    kind = "StarLedgerError"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


# ── Admission ─────────────────────────────────────────────────

class ClaimRejectedError(StarLedgerError):
    """Raised when a star claim is refused before reaching the store"""
    kind = "ClaimRejected"


class MalformedMessageError(ClaimRejectedError):
    """Raised when an ownership message is not address:timestamp:tag"""
    kind = "MalformedMessage"


class ExpiredChallengeError(ClaimRejectedError):
    """Raised when an ownership challenge is older than the freshness window"""
    kind = "ExpiredChallenge"


class InvalidSignatureError(ClaimRejectedError):
    """Raised when the wallet signature does not verify"""
    kind = "InvalidSignature"


class InvalidStarError(ClaimRejectedError):
    """Raised when a star payload cannot be encoded as canonical JSON"""
    kind = "InvalidStar"


# ── Chain ─────────────────────────────────────────────────────

class ChainIntegrityViolation(StarLedgerError):
    """Raised when an append would leave the chain invalid. Nothing is committed."""

    kind = "ChainIntegrityViolation"

    def __init__(self, message: str, violations: List = None, details: dict = None):
        super().__init__(message, details)
        self.violations = list(violations or [])


class ImportValidationFailed(StarLedgerError):
    """Raised when an exported chain cannot be imported"""

    kind = "ImportValidationFailed"

    def __init__(self, message: str, violations: List = None, details: dict = None):
        super().__init__(message, details)
        self.violations = list(violations or [])


class BlockNotFoundError(StarLedgerError, LookupError):
    """Raised when no block matches a height or hash"""
    kind = "NotFound"


class DecodeError(StarLedgerError):
    """Raised when a block body or chain file cannot be decoded"""
    kind = "DecodeError"
