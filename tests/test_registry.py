"""
tests/test_registry.py

StarRegistry facade, chain files, configuration and logging setup.
"""

import json
import logging

import pytest

from starledger.core.chainfile import read_chain_file, write_chain_file
from starledger.core.config import RegistryConfig
from starledger.core.exceptions import (
    BlockNotFoundError,
    DecodeError,
    ExpiredChallengeError,
    ImportValidationFailed,
)
from starledger.logging_utils import configure_logging
from starledger.registry import StarRegistry


STAR_A = {"ra": "1h", "dec": "10°", "story": "first"}
STAR_B = {"ra": "2h", "dec": "20°", "story": "second"}


def submit(registry: StarRegistry, wallet, star):
    message = registry.request_message_ownership_verification(wallet.address)
    return registry.submit_star(wallet.address, message, wallet.sign(message), star)


# ─────────────────────────────────────────────────────────────
# FACADE
# ─────────────────────────────────────────────────────────────

class TestStarRegistry:

    def test_starts_with_genesis(self, registry):
        assert registry.height() == 0
        genesis = registry.get_block_by_height(0)
        assert genesis.is_genesis()
        assert registry.get_block_by_hash(genesis.hash) is genesis

    def test_end_to_end(self, registry, wallet, other_wallet, clock):
        submit(registry, wallet, STAR_A)
        clock.advance(5)
        submit(registry, other_wallet, {"ra": "9h", "dec": "0°", "story": "other"})
        clock.advance(5)
        submit(registry, wallet, STAR_B)

        assert registry.height() == 3
        assert registry.get_stars_by_wallet_address(wallet.address) == [STAR_A, STAR_B]
        assert len(registry.get_stars_by_wallet_address(other_wallet.address)) == 1
        assert registry.validate_chain() == []

    def test_unknown_address_has_no_stars(self, registry, claim):
        claim()
        assert registry.get_stars_by_wallet_address("nobody") == []

    def test_lookup_misses(self, registry):
        with pytest.raises(BlockNotFoundError):
            registry.get_block_by_height(1)
        with pytest.raises(BlockNotFoundError):
            registry.get_block_by_hash("0" * 64)

    def test_genesis_data_from_config(self, clock):
        registry = StarRegistry(config=RegistryConfig(genesis_data="Hello sky"), clock=clock)
        assert registry.get_block_by_height(0).decode_body().data == "Hello sky"

    def test_store_is_exposed(self, registry, claim):
        claim()
        assert registry.store.height() == 1

    def test_export_and_import(self, registry, claim, wallet, clock):
        claim(STAR_A)
        imported = StarRegistry.import_chain(registry.export_chain(), clock=clock)

        assert imported.height() == 1
        assert imported.get_stars_by_wallet_address(wallet.address) == [STAR_A]

        clock.advance(1)
        block = submit(imported, wallet, STAR_B)
        assert block.height == 2
        assert imported.get_stars_by_wallet_address(wallet.address) == [STAR_A, STAR_B]
        assert registry.height() == 1

    def test_import_refuses_truncated_front(self, registry, claim):
        claim()
        claim()
        with pytest.raises(ImportValidationFailed):
            StarRegistry.import_chain(registry.export_chain()[1:])


# ─────────────────────────────────────────────────────────────
# CHAIN FILES
# ─────────────────────────────────────────────────────────────

class TestChainFile:

    def test_round_trip(self, registry, claim, tmp_path):
        claim(STAR_A)
        claim(STAR_B)
        path = tmp_path / "chain.jsonl"

        assert write_chain_file(registry.export_chain(), path) == 3
        assert read_chain_file(path) == registry.export_chain()

    def test_one_object_per_line(self, registry, claim, tmp_path):
        claim()
        path = tmp_path / "chain.jsonl"
        write_chain_file(registry.export_chain(), path)

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["previous_block_hash"] is None
        assert set(json.loads(lines[1])) == {
            "height", "timestamp", "previous_block_hash", "body", "hash",
        }

    def test_creates_parent_directories(self, registry, tmp_path):
        path = tmp_path / "nested" / "dir" / "chain.jsonl"
        write_chain_file(registry.export_chain(), path)
        assert path.exists()

    def test_blank_lines_skipped(self, registry, tmp_path):
        path = tmp_path / "chain.jsonl"
        write_chain_file(registry.export_chain(), path)
        path.write_text("\n" + path.read_text(encoding="utf-8") + "\n\n", encoding="utf-8")
        assert len(read_chain_file(path)) == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_chain_file(tmp_path / "absent.jsonl")

    @pytest.mark.parametrize("content", [
        "{not json\n",
        "[1, 2]\n",
        '{"height": 0, "timestamp": 1}\n',
    ])
    def test_malformed_lines(self, tmp_path, content):
        path = tmp_path / "chain.jsonl"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(DecodeError) as exc_info:
            read_chain_file(path)
        assert exc_info.value.details["line"] == 1


# ─────────────────────────────────────────────────────────────
# CONFIG
# ─────────────────────────────────────────────────────────────

class TestRegistryConfig:

    def test_defaults(self):
        config = RegistryConfig()
        assert config.challenge_window_seconds == 300
        assert config.challenge_tag == "starRegistry"
        assert config.genesis_data == "Genesis Block"
        assert config.parallel_validation is True

    @pytest.mark.parametrize("kwargs", [
        {"challenge_window_seconds": -1},
        {"challenge_tag": ""},
        {"challenge_tag": "star:Registry"},
        {"parallel_threshold": 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            RegistryConfig(**kwargs)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("STARLEDGER_CHALLENGE_WINDOW", "60")
        monkeypatch.setenv("STARLEDGER_CHALLENGE_TAG", "testRegistry")
        monkeypatch.setenv("STARLEDGER_PARALLEL_VALIDATION", "off")
        monkeypatch.setenv("STARLEDGER_PARALLEL_THRESHOLD", "10")

        config = RegistryConfig.from_env()

        assert config.challenge_window_seconds == 60
        assert config.challenge_tag == "testRegistry"
        assert config.parallel_validation is False
        assert config.parallel_threshold == 10

    def test_from_env_unset_keeps_defaults(self, monkeypatch):
        for name in (
            "STARLEDGER_CHALLENGE_WINDOW",
            "STARLEDGER_CHALLENGE_TAG",
            "STARLEDGER_PARALLEL_VALIDATION",
            "STARLEDGER_PARALLEL_THRESHOLD",
        ):
            monkeypatch.delenv(name, raising=False)
        assert RegistryConfig.from_env() == RegistryConfig()

    @pytest.mark.parametrize("name,value", [
        ("STARLEDGER_CHALLENGE_WINDOW", "five minutes"),
        ("STARLEDGER_PARALLEL_VALIDATION", "maybe"),
        ("STARLEDGER_PARALLEL_THRESHOLD", "0"),
    ])
    def test_from_env_rejects_bad_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValueError):
            RegistryConfig.from_env()

    def test_configured_window_applies_to_registry(self, clock, wallet):
        registry = StarRegistry(
            config=RegistryConfig(challenge_window_seconds=0), clock=clock
        )
        message = registry.request_message_ownership_verification(wallet.address)
        clock.advance(1)
        with pytest.raises(ExpiredChallengeError):
            registry.submit_star(wallet.address, message, wallet.sign(message), STAR_A)


# ─────────────────────────────────────────────────────────────
# LOGGING
# ─────────────────────────────────────────────────────────────

class TestConfigureLogging:

    def test_single_handler_at_level(self):
        logger = configure_logging("debug")
        configure_logging("DEBUG")
        assert logger.name == "starledger"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_int_level(self):
        assert configure_logging(logging.ERROR).level == logging.ERROR

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="loud"):
            configure_logging("loud")
