"""
starledger/core/signatures.py

Bitcoin Signed-Message Verification

Key contracts:
    verify_message(message, address, signature) → bool
        True  — signature was produced by the key behind address
        False — well-formed signature from some other key
        raises SignatureFormatError — signature or address cannot be parsed

    Digest:     SHA-256d("\\x18Bitcoin Signed Message:\\n" ‖ varint(len) ‖ message)
    Signature:  base64(header ‖ r ‖ s), 65 bytes
                header 27–30  P2PKH, uncompressed key
                header 31–34  P2PKH, compressed key
                header 35–38  P2SH-P2WPKH, compressed key
                header 39–42  P2WPKH (bech32), compressed key
    Address:    base58check(version ‖ HASH160(...)) or bech32 witness v0
                with a 20-byte program. Only the 20-byte hash is compared,
                so mainnet and testnet addresses both verify.

This is the convention shared by Bitcoin Core, Electrum and
bitcoinjs-message. The private key never leaves the wallet; the public
key is recovered from the signature itself.

Electrum signs for bech32 addresses with the compressed P2PKH header
(31–34), so a bech32 address accepts either header range.
"""

import base64
import binascii
import hashlib
from typing import Callable, List, Tuple

import base58
import bech32
from Crypto.Hash import RIPEMD160
from ecdsa import SECP256k1, VerifyingKey
from ecdsa.util import sigdecode_string

MESSAGE_MAGIC = b"\x18Bitcoin Signed Message:\n"

MAINNET_P2PKH = 0x00
TESTNET_P2PKH = 0x6F

BECH32_HRPS = ("bc", "tb", "bcrt")

_SIGNATURE_LENGTH = 65
_ADDRESS_PAYLOAD_LENGTH = 21
_WITNESS_PROGRAM_LENGTH = 20

_P2PKH       = "p2pkh"
_P2SH_P2WPKH = "p2sh-p2wpkh"
_P2WPKH      = "p2wpkh"

_BASE58 = "base58"
_BECH32 = "bech32"

# (message, address, signature) -> bool
SignatureVerifier = Callable[[str, str, str], bool]


class SignatureFormatError(ValueError):
    """Raised when a signature or address is structurally invalid."""
    pass


# ── Hashing ───────────────────────────────────────────────────

def _varint(n: int) -> bytes:
    if n < 0xFD:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xfd" + n.to_bytes(2, "little")
    if n <= 0xFFFFFFFF:
        return b"\xfe" + n.to_bytes(4, "little")
    return b"\xff" + n.to_bytes(8, "little")


def message_digest(message: str) -> bytes:
    """The 32-byte digest a wallet signs for message."""
    data = message.encode("utf-8")
    payload = MESSAGE_MAGIC + _varint(len(data)) + data
    return hashlib.sha256(hashlib.sha256(payload).digest()).digest()


def hash160(data: bytes) -> bytes:
    """RIPEMD-160(SHA-256(data))."""
    return RIPEMD160.new(hashlib.sha256(data).digest()).digest()


def address_from_public_key(public_key: bytes, version: int = MAINNET_P2PKH) -> str:
    """P2PKH address for a serialized (compressed or uncompressed) public key."""
    return base58.b58encode_check(bytes([version]) + hash160(public_key)).decode("ascii")


def segwit_address_from_public_key(public_key: bytes, hrp: str = "bc") -> str:
    """Native SegWit (P2WPKH) address for a compressed public key."""
    address = bech32.encode(hrp, 0, hash160(public_key))
    if address is None:
        raise SignatureFormatError(f"Cannot encode a bech32 address with hrp {hrp!r}")
    return address


# ── Parsing ───────────────────────────────────────────────────

def _parse_signature(signature: str) -> Tuple[str, bool, bytes]:
    """Return (address_kind, compressed, r‖s)."""
    if not isinstance(signature, str):
        raise SignatureFormatError(
            f"Signature must be str, got {type(signature).__name__}"
        )
    try:
        raw = base64.b64decode(signature, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise SignatureFormatError(f"Signature is not valid base64: {exc}") from exc

    if len(raw) != _SIGNATURE_LENGTH:
        raise SignatureFormatError(
            f"Signature must decode to {_SIGNATURE_LENGTH} bytes, got {len(raw)}"
        )

    header = raw[0]
    if 27 <= header <= 30:
        return _P2PKH, False, raw[1:]
    if 31 <= header <= 34:
        return _P2PKH, True, raw[1:]
    if 35 <= header <= 38:
        return _P2SH_P2WPKH, True, raw[1:]
    if 39 <= header <= 42:
        return _P2WPKH, True, raw[1:]
    raise SignatureFormatError(f"Unsupported signature header byte: {header}")


def _decode_address(address: str) -> Tuple[str, bytes]:
    """Return (encoding, 20-byte hash) for a base58check or bech32 address."""
    if not isinstance(address, str) or not address:
        raise SignatureFormatError(f"Address must be a non-empty str, got {address!r}")

    hrp = address[:address.rfind("1")].lower()
    if hrp in BECH32_HRPS:
        return _BECH32, _decode_bech32(hrp, address)

    try:
        payload = base58.b58decode_check(address)
    except ValueError as exc:
        raise SignatureFormatError(f"Address is not valid base58check: {exc}") from exc

    if len(payload) != _ADDRESS_PAYLOAD_LENGTH:
        raise SignatureFormatError(
            f"Address payload must be {_ADDRESS_PAYLOAD_LENGTH} bytes, got {len(payload)}"
        )
    return _BASE58, payload[1:]


def _decode_bech32(hrp: str, address: str) -> bytes:
    version, program = bech32.decode(hrp, address)
    if version is None:
        raise SignatureFormatError(f"Address is not valid bech32: {address!r}")
    if version != 0 or len(program) != _WITNESS_PROGRAM_LENGTH:
        raise SignatureFormatError(
            f"Only witness v0 key-hash addresses are supported, got v{version} "
            f"with a {len(program)}-byte program"
        )
    return bytes(program)


def _recover_public_keys(rs: bytes, digest: bytes) -> List[VerifyingKey]:
    try:
        return VerifyingKey.from_public_key_recovery_with_digest(
            rs,
            digest,
            curve=     SECP256k1,
            hashfunc=  hashlib.sha256,
            sigdecode= sigdecode_string,
        )
    except Exception as exc:
        # ecdsa raises several unrelated types for out-of-range r/s
        raise SignatureFormatError(f"Public key recovery failed: {exc}") from exc


def _accepts(kind: str, compressed: bool, encoding: str) -> bool:
    """Whether a signature header is meaningful for an address encoding."""
    if encoding == _BECH32:
        return kind == _P2WPKH or (kind == _P2PKH and compressed)
    return kind != _P2WPKH


# ── Verification ──────────────────────────────────────────────

def verify_message(message: str, address: str, signature: str) -> bool:
    """
    Verify a Bitcoin signed message.

    Every public key recoverable from (r, s, digest) is tried; the
    signature is valid if any of them hashes to the address.

    Raises:
        SignatureFormatError — signature or address cannot be parsed
    """
    kind, compressed, rs = _parse_signature(signature)
    encoding, expected   = _decode_address(address)
    digest               = message_digest(message)

    if not _accepts(kind, compressed, encoding):
        return False

    key_format = "compressed" if compressed else "uncompressed"
    for key in _recover_public_keys(rs, digest):
        public_key = key.to_string(key_format)
        if kind == _P2SH_P2WPKH:
            # P2SH-wrapped P2WPKH: HASH160 of the redeem script 0x0014‖HASH160(pubkey)
            candidate = hash160(b"\x00\x14" + hash160(public_key))
        else:
            candidate = hash160(public_key)
        if candidate == expected:
            return True
    return False
