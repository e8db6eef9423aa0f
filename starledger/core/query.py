"""
Star queries over a chain snapshot.

Linear scans in height order. Not indexed.
"""

from typing import Any, Dict, List, Sequence

from starledger.core.codec import StarClaim
from starledger.core.models import Block


def list_stars_by_address(blocks: Sequence[Block], address: str) -> List[Dict[str, Any]]:
    """
    Stars registered by address, in insertion order.

    Raises DecodeError if a block body cannot be decoded.
    """
    stars: List[Dict[str, Any]] = []
    for block in blocks:
        body = block.decode_body()
        if isinstance(body, StarClaim) and body.wallet_address == address:
            stars.append(body.star)
    return stars
