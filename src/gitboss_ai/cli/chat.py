"""CLI: gitboss chat, gitboss send"""

import asyncio
import json

import click
from rich.console import Console

from gitboss_ai.errors import ConnectionLost
from gitboss_ai.session import ChatSession

console = Console()


def _get_client(require_auth: bool = False):
    from gitboss_ai.cli.main import _get_client
    return _get_client(require_auth)


def _run(coro):
    from gitboss_ai.cli.main import _run
    return _run(coro)


class _Printer:
    """Session listener that prints assistant replies and status changes as they happen."""

    def __init__(self) -> None:
        self._seen = 0
        self._last_error = None
        self._was_typing = False

    def __call__(self, session: ChatSession) -> None:
        messages = session.messages
        for message in messages[self._seen:]:
            if not message.is_from_user:
                console.print(f"[green]{message.sender}:[/green] {message.content}")
        self._seen = len(messages)

        if session.error != self._last_error:
            self._last_error = session.error
            if session.error:
                style = "yellow" if isinstance(session.failure, ConnectionLost) else "red"
                console.print(f"[{style}]{session.error}[/{style}]")

        if session.is_typing and not self._was_typing:
            console.print("[dim]GitBoss AI is typing...[/dim]")
        self._was_typing = session.is_typing


@click.command("chat")
def chat_cmd():
    """Interactive chat with the GitBoss assistant."""

    async def _chat():
        client = _get_client(require_auth=True)
        try:
            with console.status("Connecting..."):
                chat = await client.connect()
            remove = chat.session.add_listener(_Printer())
            console.print("[cyan]Type your message (/quit to exit)[/cyan]\n")
            try:
                while True:
                    msg = await asyncio.to_thread(click.prompt, "You", prompt_suffix=": ")
                    if msg.strip().lower() in ("/quit", "/exit"):
                        break
                    client.send_message(msg)
            except (KeyboardInterrupt, EOFError, click.Abort):
                pass
            finally:
                remove()
        finally:
            await client.close()

    _run(_chat())


@click.command("send")
@click.argument("message")
@click.option("--timeout", default=60.0, type=float, show_default=True, help="Seconds to wait for the reply")
@click.option("--json-output", "--json", is_flag=True)
def send_cmd(message: str, timeout: float, json_output: bool):
    """Ask a one-shot question."""

    async def _send():
        client = _get_client(require_auth=True)
        try:
            await client.connect()
            reply = await client.ask(message, timeout=timeout)
            if json_output:
                click.echo(json.dumps(reply.model_dump(by_alias=True)))
            else:
                console.print(f"[green]{reply.sender}:[/green] {reply.content}")
        except asyncio.TimeoutError:
            console.print(f"[red]No reply within {timeout}s[/red]")
            raise SystemExit(1)
        finally:
            await client.close()

    _run(_send())
