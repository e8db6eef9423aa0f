"""
starledger/core/ownership.py

Ownership Challenge Protocol

    client → request_challenge(address)       "{address}:{now}:starRegistry"
    client signs the challenge in their wallet (off-system)
    client → submit_claim(address, message, signature, star)

submit_claim() MUST, in this exact order:
  0. Encode the StarClaim body          — InvalidStarError
  1. Parse the message                  — MalformedMessageError
  2. Check freshness (now - ts > window) — ExpiredChallengeError
  3. Verify the signature               — InvalidSignatureError
  4. BlockStore.append(StarClaim)       — ChainIntegrityViolation passes through

Steps 0–3 are cheap-first guard clauses and run without the store's
lock. Any failure among them returns before the store is touched.

Stateless: no challenge is remembered. Freshness is derived from the
timestamp embedded in the signed message itself.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from starledger.core.codec import StarClaim, encode_body
from starledger.core.config import RegistryConfig
from starledger.core.exceptions import (
    ExpiredChallengeError,
    InvalidSignatureError,
    InvalidStarError,
    MalformedMessageError,
)
from starledger.core.models import Block
from starledger.core.signatures import (
    SignatureFormatError,
    SignatureVerifier,
    verify_message,
)
from starledger.core.store import BlockStore
from starledger.core.time import Clock, unix_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Challenge:
    """A parsed ownership challenge: address:timestamp:tag."""

    address:   str
    timestamp: int
    tag:       str

    @classmethod
    def parse(cls, message: str, expected_tag: str) -> "Challenge":
        """
        Raises MalformedMessageError unless message is exactly
        three ':'-separated parts with a numeric timestamp and the
        expected tag.
        """
        if not isinstance(message, str):
            raise MalformedMessageError(
                f"Message must be str, got {type(message).__name__}"
            )

        parts = message.split(":")
        if len(parts) != 3:
            raise MalformedMessageError(
                "Message must have the form address:timestamp:tag",
                details={"parts": len(parts)},
            )

        address, raw_timestamp, tag = parts
        if not address:
            raise MalformedMessageError("Message address is empty")
        if not (raw_timestamp.isascii() and raw_timestamp.isdigit()):
            raise MalformedMessageError(
                f"Message timestamp is not numeric: {raw_timestamp!r}"
            )
        if tag != expected_tag:
            raise MalformedMessageError(
                f"Message tag must be '{expected_tag}', got {tag!r}"
            )

        return cls(address=address, timestamp=int(raw_timestamp), tag=tag)

    def __str__(self) -> str:
        return f"{self.address}:{self.timestamp}:{self.tag}"


class OwnershipVerifier:
    """Issues challenges and admits signed star claims into a BlockStore."""

    def __init__(
        self,
        store:    BlockStore,
        config:   Optional[RegistryConfig] = None,
        clock:    Clock                    = unix_now,
        verifier: SignatureVerifier        = verify_message,
    ) -> None:
        self._store    = store
        self._config   = config or RegistryConfig()
        self._clock    = clock
        self._verifier = verifier

    def request_challenge(self, address: str) -> str:
        """Return the message the wallet holder must sign."""
        challenge = Challenge(
            address=   address,
            timestamp= self._clock(),
            tag=       self._config.challenge_tag,
        )
        logger.debug("Issued challenge for %s at %d", address, challenge.timestamp)
        return str(challenge)

    def submit_claim(
        self,
        address:   str,
        message:   str,
        signature: str,
        star:      Dict[str, Any],
    ) -> Block:
        """
        Admit a star claim and return its committed block.

        Raises:
            MalformedMessageError   — message is not a valid challenge for address
            ExpiredChallengeError   — challenge older than the window
            InvalidStarError        — star holds values canonical JSON cannot carry
            InvalidSignatureError   — signature missing, malformed or not by address
            ChainIntegrityViolation — from BlockStore.append, unchanged
        """
        if not isinstance(star, dict):
            raise TypeError(f"star must be dict, got {type(star).__name__}")

        # 0 — payload, so nothing below can fail inside the store's lock
        body = StarClaim(
            wallet_address= address,
            message=        message,
            signature=      signature,
            star=           star,
        )
        try:
            encode_body(body)
        except (TypeError, ValueError) as exc:
            self._reject(address, f"star cannot be encoded ({exc})")
            raise InvalidStarError(
                f"Star cannot be encoded as canonical JSON: {exc}"
            ) from exc

        # 1 — structure
        try:
            challenge = Challenge.parse(message, self._config.challenge_tag)
        except MalformedMessageError as exc:
            self._reject(address, exc.message)
            raise

        if challenge.address != address:
            self._reject(address, "challenge issued for another address")
            raise MalformedMessageError(
                "Message was issued for a different address",
                details={"message_address": challenge.address, "address": address},
            )

        # 2 — freshness, before any cryptographic work
        elapsed = self._clock() - challenge.timestamp
        window  = self._config.challenge_window_seconds
        if elapsed > window:
            self._reject(address, f"challenge expired ({elapsed}s old)")
            raise ExpiredChallengeError(
                f"Challenge expired: {elapsed}s elapsed, window is {window}s",
                details={"elapsed": elapsed, "window": window},
            )

        # 3 — signature, a hard gate on the append below
        try:
            verified = self._verifier(message, address, signature)
        except SignatureFormatError as exc:
            self._reject(address, f"malformed signature ({exc})")
            raise InvalidSignatureError(f"Signature could not be verified: {exc}") from exc

        if not verified:
            self._reject(address, "signature does not match address")
            raise InvalidSignatureError(
                "Signature does not match address",
                details={"address": address},
            )

        # 4 — admission
        return self._store.append(body)

    def _reject(self, address: str, reason: str) -> None:
        logger.warning("Rejected star claim from %s: %s", address, reason)
