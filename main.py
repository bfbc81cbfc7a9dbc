#!/usr/bin/env python3
"""
Gemini Chat - terminal chat client for the Gemini API.

Replies arrive from the API in one piece and are replayed a few words at a
time so the conversation reads like a live stream.
"""
import asyncio
import logging
import sys
from typing import Optional

import click

import constants as C
import storage
from api import GeminiClient
from session import SessionController, SessionEvent

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  /clear         Start a new conversation
  /model <id>    Switch model for the next message
  /models        List known models
  /key           Show whether an API key is configured
  /help          Show this help
  /quit          Exit"""


def _configure_logging(debug: bool) -> None:
    # Log to stderr so records do not interleave with streamed replies on stdout.
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


class TerminalView:
    """Renders session events to the terminal."""

    def __init__(self):
        self._typing_shown = False

    def __call__(self, event: SessionEvent) -> None:
        handler = getattr(self, f"_on_{event.type.name.lower()}", None)
        if handler is not None:
            handler(event.data)

    def _hide_typing(self) -> None:
        if self._typing_shown:
            click.echo("\r\033[K", nl=False)
            self._typing_shown = False

    def _on_typing_started(self, data: dict) -> None:
        click.secho("Gemini is typing...", fg="bright_black", nl=False)
        self._typing_shown = True

    def _on_stream_started(self, data: dict) -> None:
        self._hide_typing()
        click.secho("Gemini: ", fg="magenta", bold=True, nl=False)

    def _on_stream_chunk(self, data: dict) -> None:
        click.echo(data.get("text", ""), nl=False)

    def _on_stream_ended(self, data: dict) -> None:
        click.echo()

    def _on_error(self, data: dict) -> None:
        self._hide_typing()
        click.secho(data.get("message", "Error"), fg="red", err=True)

    def _on_cleared(self, data: dict) -> None:
        self._hide_typing()
        click.secho("Conversation cleared.", fg="yellow")

    def _on_credential_status(self, data: dict) -> None:
        if data.get("present"):
            click.secho("API key configured.", fg="green")
        else:
            click.secho(
                f"No API key configured. Run `gemini-chat set-key` or set {C.ENV_API_KEY}.",
                fg="yellow",
            )


def _read_line() -> Optional[str]:
    try:
        return input(click.style("You: ", fg="cyan", bold=True))
    except EOFError:
        return None


async def _run_command(controller: SessionController, command: str) -> bool:
    """Handle a slash command. Returns False when the user asks to quit."""
    name, _, arg = command.partition(" ")
    if name in ("/quit", "/exit"):
        return False
    if name == "/clear":
        await controller.handle_message({"type": "clear-session"})
    elif name == "/model":
        if await controller.handle_message({"type": "change-model", "model": arg}):
            click.secho(f"Model set to {controller.model}.", fg="green")
        else:
            click.secho("Usage: /model <id>", fg="yellow")
    elif name == "/models":
        for model in C.AVAILABLE_MODELS:
            marker = "*" if model == controller.model else " "
            click.echo(f" {marker} {model}")
    elif name == "/key":
        await controller.handle_message({"type": "request-credential-status"})
    elif name == "/help":
        click.echo(HELP_TEXT)
    else:
        click.secho(f"Unknown command: {name}. Type /help for commands.", fg="yellow")
    return True


async def _chat_loop(model: Optional[str], interval: Optional[int]) -> None:
    settings = storage.load_settings()
    if model:
        settings.model = model
    if interval is not None:
        settings.stream_interval_ms = interval

    view = TerminalView()
    loop = asyncio.get_running_loop()
    async with GeminiClient() as client:
        controller = SessionController(view, client, storage.read_api_key, settings)
        await controller.initialize()
        logger.info("Starting chat session with model %s", controller.model)
        click.secho(f"Gemini Chat ({controller.model}). Type /help for commands.", fg="cyan")
        controller.request_credential_status()
        while True:
            line = await loop.run_in_executor(None, _read_line)
            if line is None:
                click.echo()
                break
            text = line.strip()
            if not text:
                continue
            if text.startswith("/"):
                if not await _run_command(controller, text):
                    break
                continue
            await controller.handle_message({"type": "submit", "text": text})
            # Input stays disabled until the reply has finished streaming.
            await controller.wait_until_idle()


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
def cli() -> None:
    """Chat with Gemini models from the terminal."""


@cli.command()
@click.option("--model", "-m", default=None, help="Model to start with (default from settings).")
@click.option("--interval", type=click.IntRange(min=0), default=None, help="Milliseconds between streamed chunks.")
@click.option("--debug", is_flag=True, help="Enable debug logging on stderr.")
def chat(model: Optional[str], interval: Optional[int], debug: bool) -> None:
    """Start an interactive chat session."""
    _configure_logging(debug)
    try:
        asyncio.run(_chat_loop(model, interval))
    except KeyboardInterrupt:
        click.echo()


@cli.command(name="set-key")
@click.argument("api_key")
def set_key(api_key: str) -> None:
    """Store the Gemini API key in the settings file."""
    settings = storage.load_settings(apply_env=False)
    settings.api_key = api_key.strip()
    storage.save_settings(settings)
    click.secho("API key saved.", fg="green")


@cli.command(name="set-model")
@click.argument("model")
def set_model(model: str) -> None:
    """Store the default model in the settings file."""
    if model not in C.AVAILABLE_MODELS:
        click.secho(f"Warning: {model} is not a known model.", fg="yellow", err=True)
    settings = storage.load_settings(apply_env=False)
    settings.model = model
    storage.save_settings(settings)
    click.secho(f"Default model set to {model}.", fg="green")


def main():
    """Main entry point."""
    return cli()


if __name__ == "__main__":
    sys.exit(main())
