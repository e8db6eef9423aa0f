"""
starledger/core/store.py

Block Store

append() MUST, in this exact order:
  1. Acquire the write lock
  2. Read the committed tip            — height, previous_block_hash
  3. Block.create(...)                 — timestamp from the clock
  4. Stage: committed + (block,)       — a new tuple, never visible yet
  5. Validate the staged chain         — full ChainValidator pass
  6. Commit (publish staged tuple) or abort (drop it, raise)
  7. Return the committed block

Committed state is an immutable tuple swapped in one assignment.
Readers grab the current tuple without the lock and always see a
fully committed chain; a staged block is never observable.
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Tuple

from starledger.core.codec import BlockBody, GenesisBody, StarClaim
from starledger.core.config import DEFAULT_GENESIS_DATA
from starledger.core.exceptions import (
    BlockNotFoundError,
    ChainIntegrityViolation,
    DecodeError,
    ImportValidationFailed,
)
from starledger.core.models import Block
from starledger.core.time import Clock, unix_now
from starledger.core.validator import ChainValidator, ChainViolation

logger = logging.getLogger(__name__)


def structural_errors(blocks: Tuple[Block, ...]) -> List[str]:
    """
    Shape checks the digest/linkage validator does not cover.

        - chain is non-empty
        - every entry is a Block
        - heights are 0..n-1 in order
        - genesis has no previous hash
        - no two blocks share a hash

    Returns human-readable problems; empty list = well-formed.
    """
    if not blocks:
        return ["chain is empty"]

    problems: List[str] = []
    for i, block in enumerate(blocks):
        if not isinstance(block, Block):
            return [f"entry {i} is not a Block: {type(block).__name__}"]
        if block.height != i:
            problems.append(f"position {i} holds height {block.height}")

    if blocks[0].previous_block_hash is not None:
        problems.append("genesis block references a previous hash")

    if len({block.hash for block in blocks}) != len(blocks):
        problems.append("chain contains duplicate block hashes")

    return problems


class BlockStore:
    """
    Single-writer, in-memory, append-only block chain.

    Thread-safe via internal lock (single-process only).
    """

    def __init__(
        self,
        validator:    Optional[ChainValidator] = None,
        clock:        Clock                    = unix_now,
        genesis_data: str                      = DEFAULT_GENESIS_DATA,
    ) -> None:
        self._validator    = validator or ChainValidator()
        self._clock        = clock
        self._genesis_data = genesis_data

        self._lock:   threading.Lock     = threading.Lock()
        self._blocks: Tuple[Block, ...]  = ()

    # ── Mutation ──────────────────────────────────────────────

    def initialize(self) -> Block:
        """
        Append the genesis block if the chain is empty.
        Idempotent: returns the existing genesis block otherwise.
        """
        with self._lock:
            if not self._blocks:
                return self._append_locked(GenesisBody(data=self._genesis_data))
            return self._blocks[0]

    def append(self, body: BlockBody) -> Block:
        """
        Append one block carrying body.

        Creates the genesis block first if the store has not been
        initialized.

        Raises:
            ChainIntegrityViolation — the staged chain failed validation.
                                      The committed chain is unchanged.
        """
        with self._lock:
            if not self._blocks:
                self._append_locked(GenesisBody(data=self._genesis_data))
            return self._append_locked(body)

    # ── Queries ───────────────────────────────────────────────

    def height(self) -> int:
        """Highest committed height. -1 before initialize()."""
        return len(self._blocks) - 1

    def blocks(self) -> Tuple[Block, ...]:
        """Consistent snapshot of the committed chain."""
        return self._blocks

    def get_by_height(self, height: int) -> Block:
        """Raises BlockNotFoundError for heights outside [0, height()]."""
        blocks = self._blocks
        if isinstance(height, int) and not isinstance(height, bool) and 0 <= height < len(blocks):
            return blocks[height]
        raise BlockNotFoundError(
            f"No block at height {height}",
            details={"height": height, "chain_height": len(blocks) - 1},
        )

    def get_by_hash(self, block_hash: str) -> Block:
        """Raises BlockNotFoundError if no block carries block_hash."""
        for block in self._blocks:
            if block.hash == block_hash:
                return block
        raise BlockNotFoundError(
            f"No block with hash {block_hash}",
            details={"hash": block_hash},
        )

    def validate(self) -> List[ChainViolation]:
        """Validate the current snapshot. Never raises."""
        return self._validator.validate(self._blocks)

    def get_stats(self) -> Dict[str, Any]:
        """Return current chain state snapshot."""
        blocks = self._blocks
        star_claims = 0
        for block in blocks:
            try:
                if isinstance(block.decode_body(), StarClaim):
                    star_claims += 1
            except DecodeError:
                continue

        return {
            "height":          len(blocks) - 1,
            "total_blocks":    len(blocks),
            "star_claims":     star_claims,
            "genesis_hash":    blocks[0].hash if blocks else None,
            "tip_hash":        blocks[-1].hash if blocks else None,
            "first_timestamp": blocks[0].timestamp if blocks else None,
            "last_timestamp":  blocks[-1].timestamp if blocks else None,
        }

    # ── Export / Import ───────────────────────────────────────

    def export_chain(self) -> List[Block]:
        """Ordered copy of the committed chain."""
        return list(self._blocks)

    @classmethod
    def import_chain(
        cls,
        blocks:       Iterable[Block],
        validator:    Optional[ChainValidator] = None,
        clock:        Clock                    = unix_now,
        genesis_data: str                      = DEFAULT_GENESIS_DATA,
    ) -> "BlockStore":
        """
        Rebuild a store from a previously exported chain.

        Checks, all of which must pass:
            - chain is non-empty
            - heights are 0..n-1 in order
            - genesis has no previous hash
            - no two blocks share a hash
            - ChainValidator reports nothing

        Raises:
            ImportValidationFailed — carries the validator report, if any
        """
        blocks = tuple(blocks)
        store  = cls(validator=validator, clock=clock, genesis_data=genesis_data)

        problems = structural_errors(blocks)
        if problems:
            raise ImportValidationFailed(
                f"Chain structure is invalid: {problems[0]}",
                details={"problems": len(problems)},
            )

        violations = store._validator.validate(blocks)
        if violations:
            raise ImportValidationFailed(
                f"Chain failed validation with {len(violations)} violation(s)",
                violations=violations,
            )

        store._blocks = blocks
        logger.debug("Imported chain of %d block(s)", len(blocks))
        return store

    # ── Internal ──────────────────────────────────────────────

    def _append_locked(self, body: BlockBody) -> Block:
        """Stage, validate, commit or abort. Caller MUST hold self._lock."""
        committed = self._blocks
        tip       = committed[-1] if committed else None

        block = Block.create(
            height=              len(committed),
            timestamp=           self._clock(),
            previous_block_hash= tip.hash if tip else None,
            body=                body,
        )

        if any(existing.hash == block.hash for existing in committed):
            logger.warning("Aborted append at height %d: duplicate hash", block.height)
            raise ChainIntegrityViolation(
                f"Block hash {block.hash} already exists in the chain",
                details={"height": block.height},
            )

        staged     = committed + (block,)
        violations = self._validator.validate(staged)

        if violations:
            # Abort: staged is dropped, committed is untouched
            logger.warning(
                "Aborted append at height %d: %d violation(s)",
                block.height, len(violations),
            )
            raise ChainIntegrityViolation(
                f"Appending block {block.height} would break the chain",
                violations=violations,
                details={"height": block.height},
            )

        self._blocks = staged
        logger.debug("Committed block %d (%s)", block.height, block.hash[:16])
        return block
