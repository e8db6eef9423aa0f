"""
starledger Registry Configuration.

Defaults match the public star registry protocol:
a 5-minute challenge window and the "starRegistry" message tag.

RegistryConfig.from_env() lets a deployment override them without code.
"""

import os
from dataclasses import dataclass

DEFAULT_CHALLENGE_WINDOW_SECONDS = 300
DEFAULT_CHALLENGE_TAG            = "starRegistry"
DEFAULT_GENESIS_DATA             = "Genesis Block"
DEFAULT_PARALLEL_THRESHOLD       = 2_000

_TRUE_VALUES  = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class RegistryConfig:
    challenge_window_seconds: int  = DEFAULT_CHALLENGE_WINDOW_SECONDS
    challenge_tag:            str  = DEFAULT_CHALLENGE_TAG
    genesis_data:             str  = DEFAULT_GENESIS_DATA
    parallel_validation:      bool = True
    parallel_threshold:       int  = DEFAULT_PARALLEL_THRESHOLD

    def __post_init__(self):
        if self.challenge_window_seconds < 0:
            raise ValueError(
                f"challenge_window_seconds must be >= 0, got {self.challenge_window_seconds}"
            )
        if not self.challenge_tag or ":" in self.challenge_tag:
            raise ValueError(
                f"challenge_tag must be non-empty and contain no ':', got {self.challenge_tag!r}"
            )
        if self.parallel_threshold < 1:
            raise ValueError(
                f"parallel_threshold must be >= 1, got {self.parallel_threshold}"
            )

    @classmethod
    def from_env(cls) -> "RegistryConfig":
        """
        Read STARLEDGER_* environment variables. Unset variables keep defaults.

            STARLEDGER_CHALLENGE_WINDOW      seconds (int)
            STARLEDGER_CHALLENGE_TAG         message tag
            STARLEDGER_PARALLEL_VALIDATION   true/false
            STARLEDGER_PARALLEL_THRESHOLD    block count (int)

        Raises ValueError on unparseable values.
        """
        env = os.environ
        return cls(
            challenge_window_seconds= _int_env(
                env, "STARLEDGER_CHALLENGE_WINDOW", DEFAULT_CHALLENGE_WINDOW_SECONDS
            ),
            challenge_tag=            env.get("STARLEDGER_CHALLENGE_TAG", DEFAULT_CHALLENGE_TAG),
            parallel_validation=      _bool_env(env, "STARLEDGER_PARALLEL_VALIDATION", True),
            parallel_threshold=       _int_env(
                env, "STARLEDGER_PARALLEL_THRESHOLD", DEFAULT_PARALLEL_THRESHOLD
            ),
        )


def _int_env(env, name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _bool_env(env, name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")
