"""
starledger/cli/__init__.py

starledger CLI — root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    starledger = "starledger.cli:cli"

Adding a new command:
    1. Create starledger/cli/your_command.py with a @click.command()
    2. Import it here
    3. cli.add_command(your_command)
"""

import click

from starledger.cli.challenge import challenge_command
from starledger.cli.stars import stars_command
from starledger.cli.verify import verify_command
from starledger.logging_utils import configure_logging


@click.group()
@click.version_option(package_name="starledger")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level for starledger diagnostics (written to stderr).",
)
def cli(log_level: str) -> None:
    """
    starledger — star registry ledger tools.

    \b
    Commands:
      verify     Verify an exported chain — digests and linkage.
      stars      List the stars registered by a wallet address.
      challenge  Print an ownership challenge to sign.

    \b
    Quick start:
      starledger challenge miABqhtwMc8krfKT22zwKoq9WGorXzSWPW
      starledger verify chain.jsonl
      starledger verify chain.jsonl --format json
      starledger stars chain.jsonl miABqhtwMc8krfKT22zwKoq9WGorXzSWPW
    """
    configure_logging(log_level)


cli.add_command(verify_command)
cli.add_command(stars_command)
cli.add_command(challenge_command)
