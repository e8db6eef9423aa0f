"""
starledger/core/canonical.py

Canonical JSON Encoding — RFC 8785 (JCS)

This is the ONLY canonicalization permitted in starledger.
Block hashing and body encoding MUST both go through this module,
so two processes holding the same block always agree on its digest.

RFC 8785: https://www.rfc-editor.org/rfc/rfc8785
"""

import hashlib
from typing import Any, Dict

import jcs


def canonicalize(obj: Dict[str, Any]) -> bytes:
    """
    Encode a dict to RFC 8785 canonical JSON bytes.

    Output is deterministic regardless of key insertion order.
    All values must be JSON-primitive (str, int, float, bool, None, list, dict).

    Returns:
        UTF-8 encoded canonical JSON bytes.
    """
    return jcs.canonicalize(obj)


def canonical_hash(obj: Dict[str, Any]) -> str:
    """
    SHA-256 of the RFC 8785 canonical form.

    Used for block hashes and therefore for hash-chain linkage.

    Returns:
        Lowercase hex-encoded SHA-256 digest (64 characters).
    """
    return hashlib.sha256(canonicalize(obj)).hexdigest()
