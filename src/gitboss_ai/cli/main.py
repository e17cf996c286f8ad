"""
GitBoss AI CLI: `gitboss` command.

Commands:
  gitboss auth login          Username/password login
  gitboss chat                Interactive REPL chat with the assistant
  gitboss send <message>      One-shot question
  gitboss repo <cmd>          Repository analytics
"""

import asyncio
import logging

try:
    import click
    from rich.console import Console
except ImportError:
    raise SystemExit("CLI requires extras: pip install gitboss-ai[cli]")

from gitboss_ai import __version__
from gitboss_ai.client import AsyncGitBossAI
from gitboss_ai.errors import GitBossError

console = Console()


def _get_client(require_auth: bool = False) -> AsyncGitBossAI:
    client = AsyncGitBossAI()
    if require_auth and not client.tokens.is_authenticated():
        console.print("[red]Not logged in. Run `gitboss auth login` first.[/red]")
        raise SystemExit(1)
    return client


def _run(coro):
    try:
        return asyncio.run(coro)
    except GitBossError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """GitBoss AI CLI: repository analytics and the GitBoss assistant."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register subcommands from separate modules
from gitboss_ai.cli.auth import auth
from gitboss_ai.cli.chat import chat_cmd, send_cmd
from gitboss_ai.cli.repo import repo

main.add_command(auth)
main.add_command(chat_cmd)
main.add_command(send_cmd)
main.add_command(repo)


if __name__ == "__main__":
    main()
