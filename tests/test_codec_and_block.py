"""
tests/test_codec_and_block.py

Body codec and Block model.

  CODEC
    Bodies encode to canonical JSON, independent of dict ordering
    decode_body() inverts encode_body() and rejects anything else

  BLOCK
    create() computes a hash over every field except the hash itself
    create() enforces the genesis rule and non-negative integers
    Changing any hashed field changes the hash
    decode_body() wraps codec failures with the block height
"""

import hashlib
import json
from dataclasses import FrozenInstanceError, replace

import jcs
import pytest

from starledger.core.codec import (
    BodyType,
    GenesisBody,
    StarClaim,
    decode_body,
    encode_body,
)
from starledger.core.exceptions import DecodeError
from starledger.core.models import Block


STAR = {"ra": "16h 29m 1.0s", "dec": "68° 52' 56.9", "story": "Found it"}


def make_claim(**overrides) -> StarClaim:
    fields = {
        "wallet_address": "miABqhtwMc8krfKT22zwKoq9WGorXzSWPW",
        "message":        "miABqhtwMc8krfKT22zwKoq9WGorXzSWPW:1691239150:starRegistry",
        "signature":      "c2lnbmF0dXJl",
        "star":           dict(STAR),
    }
    fields.update(overrides)
    return StarClaim(**fields)


def make_genesis(timestamp: int = 1_000) -> Block:
    return Block.create(
        height=0, timestamp=timestamp, previous_block_hash=None, body=GenesisBody()
    )


# ─────────────────────────────────────────────────────────────
# CODEC
# ─────────────────────────────────────────────────────────────

class TestCodec:

    def test_genesis_body_encodes_with_discriminant(self):
        obj = json.loads(encode_body(GenesisBody()).decode("utf-8"))
        assert obj == {"type": BodyType.GENESIS, "data": "Genesis Block"}

    def test_star_claim_encodes_all_fields(self):
        obj = json.loads(encode_body(make_claim()).decode("utf-8"))
        assert obj["type"] == BodyType.STAR_CLAIM
        assert obj["wallet_address"] == "miABqhtwMc8krfKT22zwKoq9WGorXzSWPW"
        assert obj["star"] == STAR

    def test_encoding_ignores_star_key_order(self):
        reordered = {"story": STAR["story"], "dec": STAR["dec"], "ra": STAR["ra"]}
        assert encode_body(make_claim()) == encode_body(make_claim(star=reordered))

    def test_encoding_is_rfc8785(self):
        claim = make_claim()
        assert encode_body(claim) == jcs.canonicalize(claim.to_dict())

    def test_decode_restores_star_claim(self):
        claim = make_claim()
        assert decode_body(encode_body(claim)) == claim

    def test_decode_restores_custom_genesis(self):
        assert decode_body(encode_body(GenesisBody("hello"))) == GenesisBody("hello")

    def test_encode_rejects_other_types(self):
        with pytest.raises(TypeError):
            encode_body({"type": "genesis", "data": "x"})

    @pytest.mark.parametrize("raw", [
        b"\xff\xfe",
        b"not json",
        b"[1, 2, 3]",
        b'"a string"',
        b'{"type": "mystery"}',
        b'{"data": "no type"}',
        b'{"type": "genesis"}',
        b'{"type": "star_claim", "wallet_address": "a", "message": "m", "signature": "s"}',
        b'{"type": "star_claim", "wallet_address": "a", "message": "m", "signature": "s", "star": [1]}',
    ])
    def test_decode_rejects_malformed(self, raw):
        with pytest.raises(DecodeError):
            decode_body(raw)


# ─────────────────────────────────────────────────────────────
# BLOCK
# ─────────────────────────────────────────────────────────────

class TestBlockCreate:

    def test_genesis_has_no_previous_hash(self):
        genesis = make_genesis()
        assert genesis.height == 0
        assert genesis.previous_block_hash is None
        assert genesis.is_genesis()

    def test_hash_is_sha256_of_canonical_hashing_dict(self):
        genesis  = make_genesis()
        expected = hashlib.sha256(jcs.canonicalize(genesis.to_hashing_dict())).hexdigest()
        assert genesis.hash == expected
        assert len(genesis.hash) == 64

    def test_hashing_dict_excludes_hash(self):
        genesis = make_genesis()
        assert "hash" not in genesis.to_hashing_dict()
        assert genesis.to_dict()["hash"] == genesis.hash

    def test_body_is_hex_of_encoded_body(self):
        genesis = make_genesis()
        assert bytes.fromhex(genesis.body) == encode_body(GenesisBody())

    def test_block_links_to_previous(self):
        genesis = make_genesis()
        block   = Block.create(1, 2_000, genesis.hash, make_claim())
        assert block.previous_block_hash == genesis.hash
        assert not block.is_genesis()
        assert block.verify_hash()

    def test_create_is_deterministic(self):
        assert make_genesis().hash == make_genesis().hash

    def test_block_is_frozen(self):
        genesis = make_genesis()
        with pytest.raises(FrozenInstanceError):
            genesis.height = 5

    @pytest.mark.parametrize("height,prev", [
        (0, "ab" * 32),
        (1, None),
    ])
    def test_genesis_rule_enforced(self, height, prev):
        with pytest.raises(ValueError):
            Block.create(height, 1_000, prev, GenesisBody())

    @pytest.mark.parametrize("height,timestamp", [
        (-1, 1_000),
        (0, -5),
        ("0", 1_000),
        (0, 1.5),
    ])
    def test_non_negative_ints_enforced(self, height, timestamp):
        with pytest.raises(ValueError):
            Block.create(height, timestamp, None, GenesisBody())


class TestBlockHash:

    @pytest.mark.parametrize("field,value", [
        ("height",              7),
        ("timestamp",           999_999),
        ("previous_block_hash", "00" * 32),
        ("body",                encode_body(GenesisBody("other")).hex()),
    ])
    def test_changing_field_changes_hash(self, field, value):
        genesis  = make_genesis()
        mutated  = replace(genesis, **{field: value})
        assert mutated.compute_hash() != genesis.hash
        assert not mutated.verify_hash()

    def test_stored_hash_does_not_affect_computed_hash(self):
        genesis = make_genesis()
        forged  = replace(genesis, hash="f" * 64)
        assert forged.compute_hash() == genesis.hash
        assert not forged.verify_hash()

    def test_from_dict_round_trips_exported_block(self):
        genesis = make_genesis()
        assert Block.from_dict(genesis.to_dict()) == genesis

    def test_from_dict_missing_field_raises_key_error(self):
        data = make_genesis().to_dict()
        del data["timestamp"]
        with pytest.raises(KeyError):
            Block.from_dict(data)


class TestBlockDecodeBody:

    def test_decodes_star_claim(self):
        block = Block.create(1, 2_000, "ab" * 32, make_claim())
        body  = block.decode_body()
        assert isinstance(body, StarClaim)
        assert body.star == STAR

    def test_bad_hex_raises_decode_error_with_height(self):
        block = replace(make_genesis(), body="zz-not-hex")
        with pytest.raises(DecodeError) as exc_info:
            block.decode_body()
        assert exc_info.value.details["height"] == 0

    def test_undecodable_payload_raises_decode_error(self):
        block = replace(make_genesis(), body=b"[]".hex())
        with pytest.raises(DecodeError) as exc_info:
            block.decode_body()
        assert exc_info.value.kind == "DecodeError"
