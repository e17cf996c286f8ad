"""CLI: gitboss auth login|status|logout"""

from typing import Optional

import click
from rich.console import Console

console = Console()


def _get_client(require_auth: bool = False):
    from gitboss_ai.cli.main import _get_client
    return _get_client(require_auth)


def _run(coro):
    from gitboss_ai.cli.main import _run
    return _run(coro)


@click.group()
def auth():
    """Authentication commands."""


@auth.command("login")
@click.option("-u", "--username", default=None)
def auth_login(username: Optional[str]):
    """Log in with username and password."""

    async def _login():
        client = _get_client()
        try:
            name = username or click.prompt("Username")
            password = click.prompt("Password", hide_input=True)
            with console.status("Signing in..."):
                await client.auth.login(name, password)
            console.print(f"[green]Logged in as {name}[/green]")
            console.print(f"[dim]Token saved to {client.settings.storage_path}[/dim]")
        finally:
            await client.close()

    _run(_login())


@auth.command("status")
def auth_status():
    """Show current auth status."""
    client = _get_client()
    if client.tokens.is_authenticated():
        console.print(f"[green]Logged in[/green] as {client.tokens.username() or 'unknown'}")
    else:
        console.print("[yellow]Not logged in. Run `gitboss auth login`.[/yellow]")


@auth.command("logout")
def auth_logout():
    """Clear saved credentials."""
    _get_client().auth.logout()
    console.print("[green]Logged out.[/green]")
