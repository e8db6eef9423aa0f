"""
starledger/registry.py

StarRegistry — the public face of the ledger.

Wires one BlockStore, one ChainValidator and one OwnershipVerifier
together from a RegistryConfig, and creates the genesis block on
construction.

    registry = StarRegistry()
    message  = registry.request_message_ownership_verification(address)
    # ...wallet signs message...
    block    = registry.submit_star(address, message, signature, star)
    stars    = registry.get_stars_by_wallet_address(address)
"""

from typing import Any, Dict, Iterable, List, Optional

from starledger.core.config import RegistryConfig
from starledger.core.models import Block
from starledger.core.ownership import OwnershipVerifier
from starledger.core.query import list_stars_by_address
from starledger.core.signatures import SignatureVerifier, verify_message
from starledger.core.store import BlockStore
from starledger.core.time import Clock, unix_now
from starledger.core.validator import ChainValidator, ChainViolation


class StarRegistry:

    def __init__(
        self,
        config:   Optional[RegistryConfig] = None,
        clock:    Clock                    = unix_now,
        verifier: SignatureVerifier        = verify_message,
        store:    Optional[BlockStore]     = None,
    ) -> None:
        self.config = config or RegistryConfig()

        if store is None:
            store = BlockStore(
                validator=    self._make_validator(self.config),
                clock=        clock,
                genesis_data= self.config.genesis_data,
            )
        self._store = store
        self._store.initialize()

        self._ownership = OwnershipVerifier(
            store=    self._store,
            config=   self.config,
            clock=    clock,
            verifier= verifier,
        )

    @staticmethod
    def _make_validator(config: RegistryConfig) -> ChainValidator:
        return ChainValidator(
            parallel=  config.parallel_validation,
            threshold= config.parallel_threshold,
        )

    @property
    def store(self) -> BlockStore:
        return self._store

    # ── Chain ─────────────────────────────────────────────────

    def height(self) -> int:
        return self._store.height()

    def get_block_by_height(self, height: int) -> Block:
        """Raises BlockNotFoundError."""
        return self._store.get_by_height(height)

    def get_block_by_hash(self, block_hash: str) -> Block:
        """Raises BlockNotFoundError."""
        return self._store.get_by_hash(block_hash)

    def validate_chain(self) -> List[ChainViolation]:
        return self._store.validate()

    # ── Ownership ─────────────────────────────────────────────

    def request_message_ownership_verification(self, address: str) -> str:
        return self._ownership.request_challenge(address)

    def submit_star(
        self,
        address:   str,
        message:   str,
        signature: str,
        star:      Dict[str, Any],
    ) -> Block:
        return self._ownership.submit_claim(address, message, signature, star)

    def get_stars_by_wallet_address(self, address: str) -> List[Dict[str, Any]]:
        return list_stars_by_address(self._store.blocks(), address)

    # ── Export / Import ───────────────────────────────────────

    def export_chain(self) -> List[Block]:
        return self._store.export_chain()

    @classmethod
    def import_chain(
        cls,
        blocks:   Iterable[Block],
        config:   Optional[RegistryConfig] = None,
        clock:    Clock                    = unix_now,
        verifier: SignatureVerifier        = verify_message,
    ) -> "StarRegistry":
        """Raises ImportValidationFailed."""
        config = config or RegistryConfig()
        store  = BlockStore.import_chain(
            blocks,
            validator=    cls._make_validator(config),
            clock=        clock,
            genesis_data= config.genesis_data,
        )
        return cls(config=config, clock=clock, verifier=verifier, store=store)
