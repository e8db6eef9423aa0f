"""
starledger/__init__.py

starledger: Signature-Gated Star Registry Ledger

An in-memory, append-only, hash-linked chain. New blocks are admitted
only after the claimant signs a time-boxed ownership challenge with
the private key of their Bitcoin wallet address.
"""

__version__ = "0.3.0"

from starledger.core.codec import (
    GenesisBody,
    StarClaim,
    decode_body,
    encode_body,
)
from starledger.core.config import RegistryConfig
from starledger.core.exceptions import (
    BlockNotFoundError,
    ChainIntegrityViolation,
    ClaimRejectedError,
    DecodeError,
    ExpiredChallengeError,
    ImportValidationFailed,
    InvalidSignatureError,
    InvalidStarError,
    MalformedMessageError,
    StarLedgerError,
)
from starledger.core.models import Block
from starledger.core.ownership import Challenge, OwnershipVerifier
from starledger.core.signatures import SignatureFormatError, verify_message
from starledger.core.store import BlockStore
from starledger.core.validator import (
    ChainValidator,
    ChainViolation,
    ViolationKind,
    validate_chain,
)
from starledger.registry import StarRegistry

__all__ = [
    # Core types
    "Block",
    "BlockStore",
    "ChainValidator",
    "ChainViolation",
    "Challenge",
    "GenesisBody",
    "OwnershipVerifier",
    "RegistryConfig",
    "StarClaim",
    "StarRegistry",
    "ViolationKind",
    # Errors
    "BlockNotFoundError",
    "ChainIntegrityViolation",
    "ClaimRejectedError",
    "DecodeError",
    "ExpiredChallengeError",
    "ImportValidationFailed",
    "InvalidSignatureError",
    "InvalidStarError",
    "MalformedMessageError",
    "SignatureFormatError",
    "StarLedgerError",
    # Helpers
    "decode_body",
    "encode_body",
    "validate_chain",
    "verify_message",
]
