"""
starledger/core/time.py

THE ONLY CLOCK IN STARLEDGER.

Wire format: integer seconds since the Unix epoch (UTC).

Block timestamps and ownership challenges both read time from here.
Components accept a `clock` callable defaulting to unix_now() so that
tests can pin the evaluation time.
"""

import time
from typing import Callable

Clock = Callable[[], int]


def unix_now() -> int:
    """Return the current time as whole seconds since the epoch."""
    return int(time.time())
