"""
starledger stars — list stars registered by a wallet address.

Exit codes:
    0  Listed (possibly zero stars)
    2  Error  (file missing, undecodable chain or body)
"""

import json
import sys
from pathlib import Path

import click

from starledger.core.chainfile import read_chain_file
from starledger.core.exceptions import DecodeError
from starledger.core.query import list_stars_by_address


@click.command(name="stars")
@click.argument("chain", type=click.Path(exists=False))
@click.argument("address")
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format.",
)
def stars_command(chain: str, address: str, fmt: str) -> None:
    """
    List the stars ADDRESS registered in the exported CHAIN file,
    oldest first. The chain is not validated; use `verify` for that.
    """
    try:
        blocks = read_chain_file(Path(chain))
        stars  = list_stars_by_address(blocks, address)
    except (FileNotFoundError, DecodeError) as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(2)

    if fmt.lower() == "json":
        click.echo(json.dumps({"address": address, "stars": stars}, indent=2, ensure_ascii=False))
        return

    if not stars:
        click.echo(f"No stars registered by {address}")
        return

    click.echo(f"{len(stars)} star(s) registered by {address}:")
    for i, star in enumerate(stars, 1):
        fields = "  ".join(f"{k}={v}" for k, v in star.items())
        click.echo(f"  [{i}] {fields}")
