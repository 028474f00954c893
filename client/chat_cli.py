#!/usr/bin/env python3

from __future__ import annotations
import asyncio
from pathlib import Path
from typing import Optional

import aioconsole
import typer
from rich.console import Console
from rich.markup import escape

from shared.errors import ConfigError, ConnectionFailed, NotConnected
from shared.log import configure_root_logging, get_logger
from shared.message import ChatMessage
from .config import ClientConfig, load_config
from .renderer import ConsoleView
from .session import ChatSession

app = typer.Typer(help="wschat WebSocket chat client")
console = Console()
logger = get_logger(__name__)

_QUIT_COMMANDS = {"/quit", "/exit"}


def _resolve_config(config_path: Optional[Path], **overrides) -> ClientConfig:
    try:
        return load_config(config_path, **overrides)
    except ConfigError as e:
        console.print(f"[red]Invalid configuration[/]: {escape(str(e))}")
        raise typer.Exit(code=2)


async def _read_line(prompt: str, closed: asyncio.Task) -> Optional[str]:
    """Next input line, or None once the session has closed"""
    reader = asyncio.ensure_future(aioconsole.ainput(prompt))
    done, _ = await asyncio.wait({reader, closed}, return_when=asyncio.FIRST_COMPLETED)
    if reader not in done:
        reader.cancel()
        return None
    return reader.result()


async def chat_loop(session: ChatSession) -> int:
    try:
        await session.start()
    except ConnectionFailed as e:
        console.print(f"[red]{escape(str(e))}[/]")
        return 1

    console.print(f"[bold green]Connected[/] to {session.config.endpoint} as {session.config.identity}")
    closed = asyncio.create_task(session.wait_closed())
    try:
        while True:
            line = await _read_line(": ", closed)
            if line is None:
                break
            if line.strip() in _QUIT_COMMANDS:
                break
            if line.strip() == "/help":
                console.print("Type a message and press Enter. /quit to leave.")
                continue
            session.input.set(line)
            try:
                await session.submit(session.input.value)
            except NotConnected as e:
                console.print(f"[red]Not sent[/]: {escape(str(e))}")
                console.print(f"[dim]draft kept: {escape(session.input.value)}[/]")
    finally:
        await session.close()
        if not closed.done():
            closed.cancel()
    console.print("[dim]Session ended[/]")
    return 0


@app.command()
def run(
    server: Optional[str] = typer.Option(None, help="WebSocket URL of the chat server"),
    identity: Optional[str] = typer.Option(None, help="Sender identity attached to outgoing messages"),
    config: Optional[Path] = typer.Option(None, help="YAML config file (default ~/.wschat/config.yaml)"),
    open_timeout: Optional[float] = typer.Option(None, help="Seconds to wait for the handshake; none by default"),
    log_level: Optional[str] = typer.Option(None, help="DEBUG, INFO, WARNING or ERROR"),
):
    """Connect and chat until the server closes the connection or /quit."""
    cfg = _resolve_config(config, endpoint=server, identity=identity,
                          open_timeout=open_timeout, log_level=log_level)
    configure_root_logging(cfg.log_level)

    session = ChatSession(cfg, view=ConsoleView(cfg.identity, console))
    code = asyncio.run(chat_loop(session))
    raise typer.Exit(code=code)


@app.command()
def encode(
    text: str = typer.Argument(..., help="Message text as typed"),
    identity: Optional[str] = typer.Option(None, help="Sender identity"),
    config: Optional[Path] = typer.Option(None, help="YAML config file"),
):
    """Print the frame a submission would send, without connecting."""
    cfg = _resolve_config(config, identity=identity)
    message = ChatMessage.compose(cfg.identity, text)
    if message is None:
        console.print("[yellow]Empty message: nothing would be sent[/]")
        raise typer.Exit(code=1)
    console.print(message.to_json(), markup=False, highlight=False, soft_wrap=True)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
