"""
starledger challenge — print an ownership challenge for an address.
"""

import click

from starledger.core.config import RegistryConfig
from starledger.core.ownership import OwnershipVerifier
from starledger.core.store import BlockStore


@click.command(name="challenge")
@click.argument("address")
def challenge_command(address: str) -> None:
    """
    Print the message ADDRESS must sign to register a star.

    The challenge expires after the configured window
    (STARLEDGER_CHALLENGE_WINDOW, default 300 seconds).
    """
    try:
        config = RegistryConfig.from_env()
    except ValueError as e:
        raise click.UsageError(str(e))

    # Issuing a challenge never touches the chain
    verifier = OwnershipVerifier(BlockStore(), config=config)
    click.echo(verifier.request_challenge(address))
