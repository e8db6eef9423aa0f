"""
starledger/core/chainfile.py

JSONL chain files — one Block.to_dict() object per line.

This is a serialization seam for exported chains, not a storage
engine: callers that need durability decide where and when to write.
read_chain_file() only parses; validation is import_chain()'s job.
"""

import json
from pathlib import Path
from typing import Iterable, List

from starledger.core.exceptions import DecodeError
from starledger.core.models import Block


def write_chain_file(blocks: Iterable[Block], path: Path) -> int:
    """
    Write blocks to path, replacing any existing file.
    Returns the number of blocks written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with open(path, "w", encoding="utf-8") as f:
        for block in blocks:
            f.write(json.dumps(block.to_dict(), ensure_ascii=False) + "\n")
            count += 1
    return count


def read_chain_file(path: Path) -> List[Block]:
    """
    Parse a JSONL chain file. Blank lines are skipped.

    Raises:
        FileNotFoundError — path does not exist
        DecodeError       — malformed JSON or missing block field
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Chain file not found: {path}")

    blocks: List[Block] = []
    with open(path, "r", encoding="utf-8") as f:
        for line_num, raw in enumerate(f, 1):
            raw = raw.strip()
            if not raw:
                continue

            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                raise DecodeError(
                    f"Malformed JSON at chain file line {line_num}: {e}",
                    details={"line": line_num},
                ) from e

            if not isinstance(data, dict):
                raise DecodeError(
                    f"Chain file line {line_num} is not a JSON object",
                    details={"line": line_num},
                )

            try:
                blocks.append(Block.from_dict(data))
            except KeyError as e:
                raise DecodeError(
                    f"Missing block field at chain file line {line_num}: {e}",
                    details={"line": line_num},
                ) from e

    return blocks
