"""
pwnedcheck CLI - Main entry point for the command-line interface.
"""

import logging

import click
from rich.console import Console

from pwnedcheck import __version__
from pwnedcheck.config import PwnedCheckConfig

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="pwnedcheck")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """pwnedcheck - Pwned Passwords breach checks

    Checks passwords against the Pwned Passwords corpus using k-anonymity
    range queries, and exercises the warn-on-change and
    force-rotation-on-login policies.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = PwnedCheckConfig.from_env()
    errors = config.validate()
    if errors:
        for error in errors:
            console.print(f"[red]Config error: {error}[/red]")
        raise SystemExit(1)

    ctx.ensure_object(dict)
    ctx.obj["console"] = console
    ctx.obj["config"] = config


# Import and register subcommand groups
from pwnedcheck.breach.cli import breach
from pwnedcheck.accounts.cli import accounts

main.add_command(breach)
main.add_command(accounts)


if __name__ == "__main__":
    main()
