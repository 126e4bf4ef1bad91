import pytest
from unittest.mock import Mock

from scriptosaur.errors import GatewayError
from scriptosaur.gateway import ConversationHandle, LLMGateway

def _response(text):
    response = Mock()
    response.text = text
    return response

@pytest.fixture
def client():
    client = Mock()
    client.models.generate_content.return_value = _response("ok")
    return client

@pytest.fixture
def gateway(client):
    return LLMGateway(api_key="test", client=client)

def _call_kwargs(client):
    return client.models.generate_content.call_args.kwargs

def test_analyze_style_sends_name_and_system(gateway, client):
    result = gateway.analyze_style("gemini-3-flash-preview", "Utopia Show", "SYSTEM")

    assert result == "ok"
    kwargs = _call_kwargs(client)
    assert kwargs["model"] == "gemini-3-flash-preview"
    assert "Utopia Show" in kwargs["contents"]
    assert kwargs["config"].system_instruction == "SYSTEM"
    assert len(kwargs["config"].safety_settings) == 2

def test_empty_response_falls_back(gateway, client):
    client.models.generate_content.return_value = _response(None)

    assert gateway.analyze_style("m", "name", "sys") == "Не удалось сгенерировать анализ стиля."
    assert gateway.fix_cliches("m", "original", "ID 1", "sys") == "original"
    assert gateway.apply_humor("m", "original", "style", "sys") == "original"
    assert gateway.free_edit("m", "original", "style", "do it") == "original"
    assert gateway.detect_cliches("m", "original", "sys") == "[]"

def test_detect_cliches_uses_json_mode(gateway, client):
    client.models.generate_content.return_value = _response('[{"id": 1}]')

    raw = gateway.detect_cliches("m", "Текст", "DETECT")

    assert raw == '[{"id": 1}]'
    config = _call_kwargs(client)["config"]
    assert config.response_mime_type == "application/json"
    assert not config.safety_settings

def test_review_does_not_touch_text(gateway, client):
    text = "Сценарий"
    gateway.review("m", text, "REVIEW")
    assert _call_kwargs(client)["contents"] == "Проанализируй следующий сценарий:\n\nСценарий"

def test_free_edit_embeds_style_in_system(gateway, client):
    gateway.free_edit("m", "text", "ИРОНИЧНЫЙ СТИЛЬ", "")

    kwargs = _call_kwargs(client)
    assert "ИРОНИЧНЫЙ СТИЛЬ" in kwargs["config"].system_instruction
    assert "{STYLE}" not in kwargs["config"].system_instruction
    assert kwargs["contents"].endswith("ЗАДАЧА ПО РЕДАКТИРОВАНИЮ:\n")

def test_service_error_is_wrapped_and_logged(gateway, client):
    client.models.generate_content.side_effect = RuntimeError("quota exceeded")

    with pytest.raises(GatewayError) as exc:
        gateway.review("m", "text", "sys")

    assert exc.value.operation == "review"
    assert "quota exceeded" in str(exc.value)
    assert gateway.logs[-1].ok is False

def test_start_conversation_substitutes_placeholders(gateway, client):
    handle = gateway.start_conversation("m", "STYLE TEXT", "TOPIC TEXT", "Тема: {TOPIC}\nСтиль: {STYLE}\n{TOPIC}")

    assert isinstance(handle, ConversationHandle)
    config = client.chats.create.call_args.kwargs["config"]
    assert config.system_instruction == "Тема: TOPIC TEXT\nСтиль: STYLE TEXT\n{TOPIC}"

def test_missing_placeholder_is_not_an_error(gateway, client):
    gateway.start_conversation("m", "style", "topic", "Без подстановок")
    config = client.chats.create.call_args.kwargs["config"]
    assert config.system_instruction == "Без подстановок"

def test_conversation_messages_go_through_handle(gateway, client):
    chat = client.chats.create.return_value
    chat.send_message.side_effect = [_response("PLAN"), _response("BLOCK 1"), _response("")]

    handle = gateway.start_conversation("m", "style", "topic", "persona")
    assert gateway.request_structure(handle, "plan please") == "PLAN"
    assert gateway.continue_script(handle, "next") == "BLOCK 1"
    assert gateway.continue_script(handle, "next") == "Не удалось сгенерировать часть сценария."

    assert [c.args[0] for c in chat.send_message.call_args_list] == ["plan please", "next", "next"]
    assert handle.turns == 3

def test_conversation_failure(gateway, client):
    chat = client.chats.create.return_value
    chat.send_message.side_effect = ConnectionError("network down")
    handle = gateway.start_conversation("m", "style", "topic", "persona")

    with pytest.raises(GatewayError) as exc:
        gateway.continue_script(handle, "next")
    assert exc.value.operation == "continue_script"
    assert handle.turns == 0

def test_temperature_is_forwarded(client):
    gateway = LLMGateway(client=client, temperature=0.3)
    gateway.review("m", "text", "sys")
    assert _call_kwargs(client)["config"].temperature == 0.3
