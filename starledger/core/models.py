"""
starledger/core/models.py

Block Data Model

═══════════════════════════════════════════════════════════════════
CONTRACTS
═══════════════════════════════════════════════════════════════════

CONTRACT 1 — Hash
    hash = SHA-256(canonicalize(block.to_hashing_dict()))
    to_hashing_dict() is an explicit field list WITHOUT "hash".
    The hash never depends on itself, whatever order fields are set in.

CONTRACT 2 — Chain
    genesis.previous_block_hash is None
    block[i].previous_block_hash == block[i-1].hash      (i > 0)

CONTRACT 3 — Body
    body = hex(encode_body(GenesisBody | StarClaim))
    The store never looks inside a body. Readers call decode_body().

CONTRACT 4 — Immutability
    Block is a frozen dataclass. Block.create() is the only path that
    computes a hash. from_dict() trusts persisted data; the validator
    is what decides whether that data is consistent.
═══════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from starledger.core.canonical import canonical_hash
from starledger.core.codec import BlockBody, decode_body, encode_body
from starledger.core.exceptions import DecodeError


@dataclass(frozen=True)
class Block:
    """An immutable, height-indexed, hash-linked ledger record."""

    height:              int
    timestamp:           int
    previous_block_hash: Optional[str]
    body:                str
    hash:                str

    # ── Constructor ───────────────────────────────────────────

    @classmethod
    def create(
        cls,
        height:              int,
        timestamp:           int,
        previous_block_hash: Optional[str],
        body:                BlockBody,
    ) -> "Block":
        """
        Build a block and compute its hash.

        Hard enforces:
            height    — non-negative int
            timestamp — non-negative int
            genesis   — height 0 iff previous_block_hash is None
        """
        if not isinstance(height, int) or height < 0:
            raise ValueError(f"height must be non-negative int, got {height!r}")
        if not isinstance(timestamp, int) or timestamp < 0:
            raise ValueError(f"timestamp must be non-negative int, got {timestamp!r}")
        if (height == 0) != (previous_block_hash is None):
            raise ValueError(
                "previous_block_hash must be None exactly for the genesis block "
                f"(height={height}, previous_block_hash={previous_block_hash!r})"
            )

        # hash is not part of to_hashing_dict(), so the placeholder is inert
        unhashed = cls(
            height=              height,
            timestamp=           timestamp,
            previous_block_hash= previous_block_hash,
            body=                encode_body(body).hex(),
            hash=                "",
        )
        return replace(unhashed, hash=unhashed.compute_hash())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Block":
        """
        Deserialize an exported block. Trusts the data as given.
        Raises KeyError on a missing field.
        """
        return cls(
            height=              data["height"],
            timestamp=           data["timestamp"],
            previous_block_hash= data["previous_block_hash"],
            body=                data["body"],
            hash=                data["hash"],
        )

    # ── Serialization ─────────────────────────────────────────

    def to_hashing_dict(self) -> Dict[str, Any]:
        """CONTRACT 1 — the exact dict the block hash commits to."""
        return {
            "height":              self.height,
            "timestamp":           self.timestamp,
            "previous_block_hash": self.previous_block_hash,
            "body":                self.body,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Full serialization including hash. Used for export only."""
        d = self.to_hashing_dict()
        d["hash"] = self.hash
        return d

    # ── Hash ──────────────────────────────────────────────────

    def compute_hash(self) -> str:
        """Recompute the hash from current content, ignoring the stored one."""
        return canonical_hash(self.to_hashing_dict())

    def verify_hash(self) -> bool:
        """True if the stored hash matches the block's content."""
        return self.hash == self.compute_hash()

    def is_genesis(self) -> bool:
        return self.height == 0 and self.previous_block_hash is None

    # ── Body ──────────────────────────────────────────────────

    def decode_body(self) -> BlockBody:
        """
        Decode this block's body.
        Raises DecodeError; the block itself is left untouched.
        """
        try:
            raw = bytes.fromhex(self.body)
        except (TypeError, ValueError) as e:
            raise DecodeError(
                f"Body of block {self.height} is not valid hex: {e}",
                details={"height": self.height},
            ) from e
        try:
            return decode_body(raw)
        except DecodeError as e:
            raise DecodeError(
                f"Body of block {self.height} could not be decoded: {e.message}",
                details={"height": self.height},
            ) from e
