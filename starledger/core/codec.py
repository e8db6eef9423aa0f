"""
starledger/core/codec.py

Block body codec.

Two body types exist, told apart by the "type" discriminant:

    {"type": "genesis",    "data": "Genesis Block"}
    {"type": "star_claim", "wallet_address": ..., "message": ...,
                           "signature": ..., "star": {...}}

encode_body() is canonical JSON (RFC 8785), so a body encodes to the
same bytes no matter how its star dict was built. decode_body() is the
inverse and raises DecodeError on anything it does not recognise.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Union

from starledger.core.canonical import canonicalize
from starledger.core.config import DEFAULT_GENESIS_DATA
from starledger.core.exceptions import DecodeError


class BodyType:
    """Body discriminant constants."""
    GENESIS    = "genesis"
    STAR_CLAIM = "star_claim"


@dataclass(frozen=True)
class GenesisBody:
    """The fixed payload of block 0."""

    data: str = DEFAULT_GENESIS_DATA

    def to_dict(self) -> Dict[str, Any]:
        return {"type": BodyType.GENESIS, "data": self.data}


@dataclass(frozen=True)
class StarClaim:
    """A star registered by the holder of wallet_address."""

    wallet_address: str
    message:        str
    signature:      str
    star:           Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type":           BodyType.STAR_CLAIM,
            "wallet_address": self.wallet_address,
            "message":        self.message,
            "signature":      self.signature,
            "star":           self.star,
        }


BlockBody = Union[GenesisBody, StarClaim]


def encode_body(body: BlockBody) -> bytes:
    """Encode a body to canonical JSON bytes."""
    if not isinstance(body, (GenesisBody, StarClaim)):
        raise TypeError(
            f"body must be GenesisBody or StarClaim, got {type(body).__name__}"
        )
    return canonicalize(body.to_dict())


def decode_body(data: bytes) -> BlockBody:
    """
    Decode bytes produced by encode_body().

    Raises:
        DecodeError — invalid UTF-8, invalid JSON, unknown type, missing fields
    """
    try:
        obj = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"Body is not valid JSON: {e}") from e

    if not isinstance(obj, dict):
        raise DecodeError(
            f"Body must be a JSON object, got {type(obj).__name__}"
        )

    body_type = obj.get("type")

    try:
        if body_type == BodyType.GENESIS:
            return GenesisBody(data=obj["data"])

        if body_type == BodyType.STAR_CLAIM:
            star = obj["star"]
            if not isinstance(star, dict):
                raise DecodeError(
                    f"star must be an object, got {type(star).__name__}"
                )
            return StarClaim(
                wallet_address= obj["wallet_address"],
                message=        obj["message"],
                signature=      obj["signature"],
                star=           star,
            )
    except KeyError as e:
        raise DecodeError(
            f"Body of type '{body_type}' is missing field {e}"
        ) from e

    raise DecodeError(f"Unknown body type: {body_type!r}")
