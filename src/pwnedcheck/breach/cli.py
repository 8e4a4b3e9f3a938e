"""
CLI commands for Pwned Passwords breach checks.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import asyncio
import json
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn

from pwnedcheck.breach.client import RangeClient
from pwnedcheck.breach.encoder import encode_password, query_from_digest
from pwnedcheck.breach.evaluator import matches
from pwnedcheck.breach.models import BreachQuery, RangeResponse, RiskLevel
from pwnedcheck.config import PwnedCheckConfig

console = Console()


def risk_color(risk: RiskLevel) -> str:
    """Get color for risk level."""
    colors = {
        RiskLevel.SAFE: "green",
        RiskLevel.LOW: "yellow",
        RiskLevel.MEDIUM: "orange3",
        RiskLevel.HIGH: "red",
        RiskLevel.CRITICAL: "bold red",
    }
    return colors.get(risk, "white")


def get_config(ctx: click.Context) -> PwnedCheckConfig:
    """Config from the root command, or from the environment."""
    obj = ctx.find_root().obj or {}
    return obj.get("config") or PwnedCheckConfig.from_env()


def summarize(query: BreachQuery, response: RangeResponse | None) -> dict:
    """Summary of one lookup (never includes the suffix)."""
    if response is None:
        return {"available": False, "is_breached": False, "occurrences": 0, "risk_level": None}

    breached = matches(query, response)
    occurrences = response.occurrences(query.suffix) if breached else 0
    return {
        "available": True,
        "is_breached": breached,
        "occurrences": occurrences,
        "risk_level": RiskLevel.from_occurrences(occurrences).value,
    }


def print_summary(summary: dict) -> None:
    if not summary["available"]:
        console.print(Panel(
            "[yellow]Breach service unavailable.[/yellow] The password could not be checked.",
            title="Password Check Result"
        ))
        return

    risk = RiskLevel(summary["risk_level"])
    color = risk_color(risk)

    if not summary["is_breached"]:
        console.print(Panel(
            f"[green]Good news![/green] This password has NOT been found in any known data breaches.\n\n"
            f"Risk Level: [{color}]{risk.value.upper()}[/{color}]",
            title="Password Check Result"
        ))
    else:
        console.print(Panel(
            f"[red]Warning![/red] This password has been seen [bold]{summary['occurrences']:,}[/bold] times in data breaches!\n\n"
            f"Risk Level: [{color}]{risk.value.upper()}[/{color}]",
            title="Password Check Result"
        ))


@click.group()
@click.pass_context
def breach(ctx: click.Context) -> None:
    """Pwned Passwords breach checks.

    Uses k-anonymity - only the first 5 characters of the SHA-1 hash
    are sent to the range service. No API key required.
    """
    ctx.ensure_object(dict)


def _lookup(config: PwnedCheckConfig, query: BreachQuery) -> RangeResponse | None:
    async def _fetch():
        async with RangeClient.from_config(config) as client:
            return await client.fetch_range(query.prefix)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task("Checking password...", total=None)
        return asyncio.run(_fetch())


@breach.command("password")
@click.option("--password", "-p", help="Password to check (or prompts securely)")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def check_password(ctx: click.Context, password: str | None, json_output: bool) -> None:
    """Check if a password has been exposed in data breaches.

    Example:
        pwnedcheck breach password
    """
    if password is None:
        password = click.prompt("Password to check", hide_input=True)

    query = encode_password(password)
    summary = summarize(query, _lookup(get_config(ctx), query))

    if json_output:
        console.print(json.dumps(summary, indent=2))
        return

    print_summary(summary)


@breach.command("hash")
@click.argument("digest")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def check_hash(ctx: click.Context, digest: str, json_output: bool) -> None:
    """Check a precomputed SHA-1 hash.

    Example:
        pwnedcheck breach hash 5BAA61E4C9B93F3F0682250B6CF8331B7EE68FD8
    """
    try:
        query = query_from_digest(digest)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)

    summary = summarize(query, _lookup(get_config(ctx), query))

    if json_output:
        console.print(json.dumps(summary, indent=2))
        return

    print_summary(summary)


@breach.command("passwords")
@click.argument("passwords_file", type=click.Path(exists=True))
@click.option("--hashes", is_flag=True, help="File contains SHA-1 hashes instead of passwords")
@click.pass_context
def check_passwords_batch(ctx: click.Context, passwords_file: str, hashes: bool) -> None:
    """Check multiple passwords/hashes from a file.

    File should contain one password or SHA-1 hash per line. Only
    summary counts are printed.

    Example:
        pwnedcheck breach passwords passwords.txt
    """
    items = [line for line in Path(passwords_file).read_text().splitlines() if line]

    if not items:
        console.print("[yellow]No items found in file[/yellow]")
        return

    queries = []
    for item in items:
        if hashes:
            try:
                queries.append(query_from_digest(item))
            except ValueError:
                console.print("[yellow]Skipping line that is not a SHA-1 hash[/yellow]")
        else:
            queries.append(encode_password(item))

    config = get_config(ctx)

    async def _check_batch():
        summaries = []
        async with RangeClient.from_config(config) as client:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TextColumn("{task.completed}/{task.total}"),
                console=console,
            ) as progress:
                task = progress.add_task("Checking...", total=len(queries))
                for query in queries:
                    summaries.append(summarize(query, await client.fetch_range(query.prefix)))
                    progress.advance(task)
        return summaries

    summaries = asyncio.run(_check_batch())

    breached = [s for s in summaries if s["is_breached"]]
    unavailable = [s for s in summaries if not s["available"]]
    console.print(f"\n[bold]Results:[/bold] {len(breached)}/{len(summaries)} found in breaches")
    if unavailable:
        console.print(f"[yellow]{len(unavailable)} could not be checked (service unavailable)[/yellow]")

    risk_counts: dict[str, int] = {}
    for s in summaries:
        if s["risk_level"]:
            risk_counts[s["risk_level"]] = risk_counts.get(s["risk_level"], 0) + 1

    console.print("\n[bold]Risk Distribution:[/bold]")
    for risk in RiskLevel:
        color = risk_color(risk)
        console.print(f"  [{color}]{risk.value.upper()}[/{color}]: {risk_counts.get(risk.value, 0)}")
