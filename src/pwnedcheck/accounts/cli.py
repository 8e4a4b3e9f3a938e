"""
CLI commands for the reference account store and enforcement policies.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import click
from rich.console import Console
from rich.table import Table

from pwnedcheck.accounts.base import AccountStoreError, RotationUpdateError
from pwnedcheck.accounts.passwords import hash_password, verify_password
from pwnedcheck.accounts.sqlite_store import SQLiteAccountStore
from pwnedcheck.breach.client import RangeClient
from pwnedcheck.breach.evaluator import BreachEvaluator
from pwnedcheck.config import PwnedCheckConfig
from pwnedcheck.enforcement.messages import get_message
from pwnedcheck.enforcement.policy import BreachPolicy

console = Console()


def _config(ctx: click.Context) -> PwnedCheckConfig:
    obj = ctx.find_root().obj or {}
    config = obj.get("config") or PwnedCheckConfig.from_env()
    if ctx.obj.get("db_path"):
        config.db_path = ctx.obj["db_path"]
    return config


def _policy(config: PwnedCheckConfig, store: SQLiteAccountStore) -> BreachPolicy:
    evaluator = BreachEvaluator(RangeClient.from_config(config))
    return BreachPolicy(evaluator, store, verify_password)


@click.group()
@click.option("--db", "db_path", type=click.Path(dir_okay=False), help="Account database path")
@click.pass_context
def accounts(ctx: click.Context, db_path: str | None) -> None:
    """Manage the reference account store and simulate logins."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path


@accounts.command("init")
@click.pass_context
def init_store(ctx: click.Context) -> None:
    """Create the account database."""
    config = _config(ctx)
    with SQLiteAccountStore.from_config(config):
        pass
    console.print(f"[green]Account store ready at {config.get_db_path()}[/green]")


@accounts.command("add")
@click.argument("username")
@click.option("--locale", default="en", show_default=True, help="Locale for warnings")
@click.pass_context
def add_account(ctx: click.Context, username: str, locale: str) -> None:
    """Create an account, warning if its password is breached."""
    password = click.prompt("Password", hide_input=True, confirmation_prompt=True)
    config = _config(ctx)

    with SQLiteAccountStore.from_config(config) as store:
        result = _policy(config, store).on_password_change({"new_password": password})
        if result.warning_issued:
            console.print(f"[yellow]Warning: {get_message(result.message_key, locale)}[/yellow]")

        try:
            user_id = store.create_account(username, hash_password(password))
        except AccountStoreError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise SystemExit(1)

    console.print(f"[green]Created account {username} (id {user_id})[/green]")


@accounts.command("passwd")
@click.argument("username")
@click.option("--locale", default="en", show_default=True, help="Locale for warnings")
@click.pass_context
def change_password(ctx: click.Context, username: str, locale: str) -> None:
    """Change an account's password, warning if the new one is breached."""
    config = _config(ctx)

    with SQLiteAccountStore.from_config(config) as store:
        identity = store.find_account(username)
        if identity is None:
            console.print(f"[red]Account not found: {username}[/red]")
            raise SystemExit(1)

        password = click.prompt("New password", hide_input=True, confirmation_prompt=True)
        result = _policy(config, store).on_password_change({"new_password": password})
        if result.warning_issued:
            console.print(f"[yellow]Warning: {get_message(result.message_key, locale)}[/yellow]")

        store.set_password_hash(identity.user_id, hash_password(password))

    console.print(f"[green]Password changed for {username}[/green]")


@accounts.command("login")
@click.argument("username")
@click.pass_context
def simulate_login(ctx: click.Context, username: str) -> None:
    """Run the login breach policy for an account."""
    password = click.prompt("Password", hide_input=True)
    config = _config(ctx)

    with SQLiteAccountStore.from_config(config) as store:
        try:
            result = _policy(config, store).on_login_attempt(username, password)
        except RotationUpdateError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise SystemExit(1)

        must_change = False
        identity = store.find_account(username)
        if identity is not None:
            must_change = store.requires_rotation(identity.user_id)

    console.print(f"Outcome: [cyan]{result.outcome.value}[/cyan] (stage: {result.stage.value})")
    if must_change:
        console.print("[yellow]Password change required at next login[/yellow]")


@accounts.command("list")
@click.pass_context
def list_accounts(ctx: click.Context) -> None:
    """List accounts."""
    config = _config(ctx)

    with SQLiteAccountStore.from_config(config) as store:
        rows = list(store.list_accounts())

    if not rows:
        console.print("[yellow]No accounts[/yellow]")
        return

    table = Table(title="Accounts")
    table.add_column("ID", justify="right")
    table.add_column("Username", style="cyan")
    table.add_column("Must Change", justify="center")
    table.add_column("Password Changed", style="yellow")

    for row in rows:
        table.add_row(
            str(row["user_id"]),
            row["username"],
            "[red]Yes[/red]" if row["password_change_required"] else "[green]No[/green]",
            row["password_changed_at"] or "-",
        )

    console.print(table)
