"""
starledger/cli/verify.py

starledger verify — exported chain verification
================================================

Usage:
    starledger verify <chain>                       Human output (default)
    starledger verify <chain> --format json         Machine-readable JSON
    starledger verify <chain> --format compact      One-line pipeline output
    starledger verify <chain> --quiet               Exit code only
    starledger verify <chain> --no-color            Disable ANSI

Exit codes:
    0  Chain fully valid  (structure + digests + linkage)
    1  Chain has violations
    2  Error  (file missing, malformed JSON, missing fields)
"""

import json
import sys
import time
from pathlib import Path
from typing import List

import click

from starledger.core.chainfile import read_chain_file
from starledger.core.config import RegistryConfig
from starledger.core.exceptions import DecodeError
from starledger.core.models import Block
from starledger.core.store import structural_errors
from starledger.core.validator import ChainValidator, ChainViolation, ViolationKind


# ── ANSI color ────────────────────────────────────────────────────────────────

class _Color:
    """
    Minimal ANSI color wrapper.
    Auto-disables when not a TTY or --no-color is passed.
    """
    _on: bool = True

    @classmethod
    def configure(cls, enabled: bool) -> None:
        cls._on = enabled and sys.stdout.isatty()

    @classmethod
    def green(cls, s: str) -> str:
        return f"\033[32m{s}\033[0m" if cls._on else s

    @classmethod
    def red(cls, s: str) -> str:
        return f"\033[31m{s}\033[0m" if cls._on else s

    @classmethod
    def yellow(cls, s: str) -> str:
        return f"\033[33m{s}\033[0m" if cls._on else s

    @classmethod
    def bold(cls, s: str) -> str:
        return f"\033[1m{s}\033[0m" if cls._on else s

    @classmethod
    def dim(cls, s: str) -> str:
        return f"\033[2m{s}\033[0m" if cls._on else s


def _row_ok(label: str, value: str) -> str:
    return f"  {_Color.dim(f'{label:<12}')}  {_Color.green('OK  ')}  {value}"

def _row_fail(label: str, value: str) -> str:
    return f"  {_Color.dim(f'{label:<12}')}  {_Color.red('FAIL')}  {value}"

def _row_info(label: str, value: str) -> str:
    return f"  {_Color.dim(f'{label:<12}')}        {value}"


# ── CLI command ───────────────────────────────────────────────────────────────

@click.command(name="verify")
@click.argument("chain", type=click.Path(exists=False))
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json", "compact"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format: human (default), json (CI/automation), compact (pipelines).",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress all output. Use exit code only (0=valid, 1=invalid, 2=error).",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable ANSI color output.",
)
def verify_command(chain: str, fmt: str, quiet: bool, no_color: bool) -> None:
    """
    Verify an exported chain — structure, block digests, hash linkage.

    CHAIN is the path to a .jsonl chain file written by write_chain_file().

    \b
    Examples:
      starledger verify chain.jsonl
      starledger verify chain.jsonl --format json
      starledger verify chain.jsonl --quiet && echo "clean"
    """
    _Color.configure(not no_color)
    fmt = fmt.lower()

    chain_path = Path(chain)
    if not chain_path.exists():
        _emit_error(f"Chain file not found: {chain}", fmt, quiet)
        sys.exit(2)

    try:
        config = RegistryConfig.from_env()
        blocks = read_chain_file(chain_path)
    except (DecodeError, ValueError) as e:
        _emit_error(str(e), fmt, quiet)
        sys.exit(2)

    validator = ChainValidator(
        parallel=  config.parallel_validation,
        threshold= config.parallel_threshold,
    )

    t_start    = time.perf_counter()
    problems   = structural_errors(tuple(blocks))
    violations = validator.validate(blocks)
    elapsed    = time.perf_counter() - t_start

    chain_valid = not problems and not violations

    if quiet:
        sys.exit(0 if chain_valid else 1)

    if fmt == "json":
        _output_json(chain_path, blocks, problems, violations, elapsed, chain_valid)
    elif fmt == "compact":
        _output_compact(chain_path, blocks, problems, violations, elapsed, chain_valid)
    else:
        _output_human(chain_path, blocks, problems, violations, elapsed, chain_valid)

    sys.exit(0 if chain_valid else 1)


# ── Human output ──────────────────────────────────────────────────────────────

def _output_human(
    chain_path:  Path,
    blocks:      List[Block],
    problems:    List[str],
    violations:  List[ChainViolation],
    elapsed:     float,
    chain_valid: bool,
) -> None:
    BAR_HEAVY = "═" * 68
    BAR_LIGHT = "─" * 68

    tampered = [v for v in violations if v.kind == ViolationKind.TAMPERED_BLOCK]
    broken   = [v for v in violations if v.kind == ViolationKind.BROKEN_LINKAGE]

    click.echo()
    click.echo(_Color.bold(f"  {BAR_HEAVY}"))
    click.echo(_Color.bold(  "  starledger  ·  Chain Verification"))
    click.echo(_Color.bold(f"  {BAR_HEAVY}"))
    click.echo()

    click.echo(_row_info("Chain", str(chain_path)))
    click.echo(_row_info("Blocks", f"{len(blocks):,}"))
    if blocks:
        click.echo(_row_info("Tip hash", blocks[-1].hash))
    click.echo()

    if not problems:
        click.echo(_row_ok("Structure",
            f"heights 0 → {len(blocks) - 1:,}, genesis well-formed"
        ))
    else:
        click.echo(_row_fail("Structure", _Color.red(f"{len(problems)} problem(s)")))

    if not tampered:
        click.echo(_row_ok("Digests", "every block hash matches its content"))
    else:
        click.echo(_row_fail("Digests", _Color.red(f"{len(tampered)} tampered block(s)")))

    if not broken:
        click.echo(_row_ok("Linkage", "every previous hash matches"))
    else:
        click.echo(_row_fail("Linkage", _Color.red(f"{len(broken)} broken link(s)")))

    click.echo(_row_info("Verified", f"{elapsed:.3f}s"))
    click.echo()

    if problems or violations:
        click.echo(f"  {BAR_LIGHT}")
        for problem in problems:
            click.echo(f"  {_Color.yellow('structure'):<16}  {problem}")
        for v in violations:
            click.echo(
                f"  {_Color.red(str(v.height)):>6}  {_Color.yellow(f'{v.kind:<14}')}  {v.detail}"
            )
        click.echo(f"  {BAR_LIGHT}")
        click.echo()

    click.echo(f"  {BAR_LIGHT}")
    if chain_valid:
        click.echo(_Color.green(_Color.bold(
            "  VALID  ·  0 violations  ·  chain integrity confirmed"
        )))
    else:
        n = len(problems) + len(violations)
        click.echo(_Color.red(_Color.bold(
            f"  INVALID  ·  {n} violation(s)  ·  chain integrity compromised"
        )))
    click.echo(f"  {BAR_LIGHT}")
    click.echo()


# ── JSON output ───────────────────────────────────────────────────────────────

def _output_json(
    chain_path:  Path,
    blocks:      List[Block],
    problems:    List[str],
    violations:  List[ChainViolation],
    elapsed:     float,
    chain_valid: bool,
) -> None:
    out = {
        "starledger_verify": {
            "chain":           str(chain_path),
            "total_blocks":    len(blocks),
            "height":          len(blocks) - 1,
            "tip_hash":        blocks[-1].hash if blocks else None,
            "chain_valid":     chain_valid,
            "structure":       problems,
            "violation_count": len(violations),
            "violations":      [v.to_dict() for v in violations],
            "elapsed_seconds": round(elapsed, 3),
        }
    }
    click.echo(json.dumps(out, indent=2))


# ── Compact output ────────────────────────────────────────────────────────────

def _output_compact(
    chain_path:  Path,
    blocks:      List[Block],
    problems:    List[str],
    violations:  List[ChainViolation],
    elapsed:     float,
    chain_valid: bool,
) -> None:
    """
    Single-line output for shell pipelines and audit logs.

    Format:
        VALID    chain.jsonl   120 blocks  0 violations  0.012s
    """
    status = "VALID" if chain_valid else "INVALID"
    count  = len(problems) + len(violations)
    color  = _Color.green if chain_valid else _Color.red
    click.echo(
        color(f"{status:<8}")
        + f"  {chain_path.name:<30}  {len(blocks):>10,} blocks  "
        + f"{count} violation(s)  {elapsed:.3f}s"
    )


# ── Error output ──────────────────────────────────────────────────────────────

def _emit_error(msg: str, fmt: str, quiet: bool) -> None:
    """Emit error in the correct format. Never raises."""
    if quiet:
        return
    if fmt == "json":
        click.echo(json.dumps({
            "starledger_verify": {
                "error":       msg,
                "chain_valid": False,
            }
        }))
    else:
        click.echo(_Color.red(f"\n  ERROR: {msg}\n"), err=True)
