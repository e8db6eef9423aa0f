"""
starledger/core/validator.py

Chain Validator

Laws enforced here:
    1. Digest  → block.verify_hash()                  — independent per block
    2. Linkage → previous_block_hash == prev.hash      — depends on block i-1
    3. Both checks run for every block. Nothing short-circuits, so one
       pass reports every defect in the chain.
    4. The report is built only after every per-block check has returned.

TWO PHASES:
    Phase 1: Digest recomputation.
        Embarrassingly parallel. Above the threshold the chain is split
        into batches and sent to a ProcessPoolExecutor. executor.map()
        is drained completely before Phase 2 starts. Falls back to the
        sequential path on any pool error.

    Phase 2 (sequential): Linkage against the stored hash of the
        previous position, then assembly of the ordered report.

Pure: never mutates the blocks it is given.
"""

import logging
import os
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from starledger.core.canonical import canonical_hash
from starledger.core.config import DEFAULT_PARALLEL_THRESHOLD
from starledger.core.models import Block

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Module-level worker function
# MUST be at top level for ProcessPoolExecutor pickling.
# ─────────────────────────────────────────────────────────────

def _verify_hash_batch(
    batch: List[Tuple[int, Dict[str, Any], str]]
) -> List[Tuple[int, bool]]:
    """
    Recompute block hashes for a batch in a subprocess.

    Args:
        batch: List of (position, hashing_dict, stored_hash)

    Returns:
        List of (position, hash_matches)
    """
    return [
        (position, canonical_hash(hashing_dict) == stored_hash)
        for position, hashing_dict, stored_hash in batch
    ]


# Batches per worker × CPU count = total batches.
_BATCH_SIZE_PER_WORKER_MULTIPLIER = 4


# ─────────────────────────────────────────────────────────────
# Report Types
# ─────────────────────────────────────────────────────────────

class ViolationKind:
    TAMPERED_BLOCK = "TamperedBlock"
    BROKEN_LINKAGE = "BrokenLinkage"


@dataclass(frozen=True)
class ChainViolation:
    """A single detected defect in the chain."""
    height: int
    kind:   str
    detail: str

    def to_dict(self) -> Dict[str, Any]:
        return {"height": self.height, "kind": self.kind, "detail": self.detail}


# ─────────────────────────────────────────────────────────────
# Validator
# ─────────────────────────────────────────────────────────────

class ChainValidator:
    """
    Full-chain integrity scan.

    Usage:
        violations = ChainValidator().validate(blocks)
        if not violations:
            ...healthy...

    Heights in the report are chain positions, which equal block
    heights for every well-formed chain.
    """

    def __init__(
        self,
        parallel:  bool = True,
        threshold: int  = DEFAULT_PARALLEL_THRESHOLD,
    ) -> None:
        self._parallel  = parallel
        self._threshold = threshold

    def validate(self, blocks: Sequence[Block]) -> List[ChainViolation]:
        """
        Return every violation in height order. Empty list = healthy.
        Never raises for a malformed chain; defects are reported.
        """
        blocks = tuple(blocks)
        if not blocks:
            return []

        # ── Phase 1: digests (joined before anything else runs) ──
        if self._parallel and len(blocks) >= self._threshold:
            digest_ok = self._verify_hashes_parallel(blocks)
        else:
            digest_ok = self._verify_hashes_sequential(blocks)

        # ── Phase 2: linkage + ordered report ───────────────────
        violations: List[ChainViolation] = []

        for i, block in enumerate(blocks):
            if not digest_ok[i]:
                violations.append(ChainViolation(
                    height= i,
                    kind=   ViolationKind.TAMPERED_BLOCK,
                    detail= (
                        f"Block {i} hash does not match its content: "
                        f"stored ...{str(block.hash)[-12:]}, "
                        f"computed ...{block.compute_hash()[-12:]}"
                    ),
                ))

            if i > 0 and block.previous_block_hash != blocks[i - 1].hash:
                violations.append(ChainViolation(
                    height= i,
                    kind=   ViolationKind.BROKEN_LINKAGE,
                    detail= (
                        f"Block {i} previous hash is invalid: "
                        f"expected ...{str(blocks[i - 1].hash)[-12:]}, "
                        f"got ...{str(block.previous_block_hash)[-12:]}"
                    ),
                ))

        return violations

    # ── Phase 1 strategies ────────────────────────────────────

    def _verify_hashes_sequential(self, blocks: Tuple[Block, ...]) -> List[bool]:
        return [block.verify_hash() for block in blocks]

    def _verify_hashes_parallel(self, blocks: Tuple[Block, ...]) -> List[bool]:
        """
        Only picklable primitives cross the process boundary.
        Falls back to the sequential path on any pool failure.
        """
        n_workers  = min(os.cpu_count() or 4, 8)
        batch_size = max(
            500,
            len(blocks) // (n_workers * _BATCH_SIZE_PER_WORKER_MULTIPLIER),
        )

        all_data = [
            (i, block.to_hashing_dict(), block.hash)
            for i, block in enumerate(blocks)
        ]
        batches = [
            all_data[i : i + batch_size]
            for i in range(0, len(all_data), batch_size)
        ]

        results = [False] * len(blocks)
        try:
            with ProcessPoolExecutor(max_workers=n_workers) as executor:
                for batch_result in executor.map(_verify_hash_batch, batches):
                    for position, ok in batch_result:
                        results[position] = ok
        except Exception as exc:
            logger.warning(
                "Parallel hash validation failed (%s); retrying sequentially", exc
            )
            return self._verify_hashes_sequential(blocks)

        return results


def validate_chain(blocks: Sequence[Block]) -> List[ChainViolation]:
    """Validate with default settings."""
    return ChainValidator().validate(blocks)
