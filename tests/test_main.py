"""Tests for the terminal front end."""
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

import main
import storage
from session import EventType, SessionEvent


def test_set_key_persists_key():
    result = CliRunner().invoke(main.cli, ["set-key", "  my-key  "])

    assert result.exit_code == 0
    assert "API key saved" in result.output
    assert storage.read_api_key() == "my-key"


def test_set_model_persists_model():
    result = CliRunner().invoke(main.cli, ["set-model", "gemini-2.0-flash"])

    assert result.exit_code == 0
    assert storage.load_settings().model == "gemini-2.0-flash"


def test_set_model_warns_on_unknown_model():
    result = CliRunner().invoke(main.cli, ["set-model", "gemini-9"])

    assert result.exit_code == 0
    assert storage.load_settings().model == "gemini-9"


def test_set_key_does_not_persist_environment_model(monkeypatch):
    monkeypatch.setenv("GEMINI_MODEL", "gemini-2.0-flash")
    CliRunner().invoke(main.cli, ["set-key", "k"])
    assert storage.load_settings(apply_env=False).model == "gemini-2.5-pro"


def test_terminal_view_renders_stream(capsys):
    view = main.TerminalView()
    view(SessionEvent(EventType.TYPING_STARTED))
    view(SessionEvent(EventType.STREAM_STARTED))
    view(SessionEvent(EventType.STREAM_CHUNK, {"text": "Hi there "}))
    view(SessionEvent(EventType.STREAM_CHUNK, {"text": "friend"}))
    view(SessionEvent(EventType.STREAM_ENDED))

    out = capsys.readouterr().out
    assert "Gemini is typing..." in out
    assert out.endswith("Hi there friend\n")


def test_terminal_view_renders_errors_on_stderr(capsys):
    view = main.TerminalView()
    view(SessionEvent(EventType.ERROR, {"message": "Error: rate limited"}))
    assert "Error: rate limited" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_slash_commands_route_to_controller(capsys):
    controller = MagicMock()
    controller.model = "gemini-2.5-pro"

    async def handle_message(message):
        return bool(message.get("model", "x"))

    controller.handle_message = MagicMock(side_effect=handle_message)

    assert await main._run_command(controller, "/clear")
    assert await main._run_command(controller, "/model gemini-2.5-flash")
    assert await main._run_command(controller, "/key")
    assert await main._run_command(controller, "/models")
    assert not await main._run_command(controller, "/quit")

    sent = [call.args[0] for call in controller.handle_message.call_args_list]
    assert sent == [
        {"type": "clear-session"},
        {"type": "change-model", "model": "gemini-2.5-flash"},
        {"type": "request-credential-status"},
    ]
    assert "* gemini-2.5-pro" in capsys.readouterr().out
