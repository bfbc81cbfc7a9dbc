"""Tests for request payload construction."""
from api import build_contents, build_request
from models import ChatSettings, Role, Turn


def _turn(role, content):
    return Turn(role=role, content=content, model="gemini-2.5-pro")


def test_empty_history_yields_only_pending_message():
    assert build_contents([], "Hello") == [{"role": "user", "parts": [{"text": "Hello"}]}]


def test_history_is_replayed_in_order_with_model_role():
    history = [
        _turn(Role.USER, "What is 2+2?"),
        _turn(Role.ASSISTANT, "4"),
        _turn(Role.USER, "And 3+3?"),
        _turn(Role.ASSISTANT, "6"),
    ]
    contents = build_contents(history, "Thanks")

    assert [c["role"] for c in contents] == ["user", "model", "user", "model", "user"]
    assert [c["parts"][0]["text"] for c in contents] == ["What is 2+2?", "4", "And 3+3?", "6", "Thanks"]


def test_build_request_attaches_generation_config():
    settings = ChatSettings(temperature=0.3, max_output_tokens=100)
    request = build_request([_turn(Role.USER, "Hi"), _turn(Role.ASSISTANT, "Hello!")], "Bye", settings)

    assert request["generationConfig"] == {"temperature": 0.3, "maxOutputTokens": 100}
    assert request["contents"][-1] == {"role": "user", "parts": [{"text": "Bye"}]}
    assert len(request["contents"]) == 3
