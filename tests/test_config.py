import pytest
from pathlib import Path
from pydantic import ValidationError

from scriptosaur.config import Config, GeminiConfig, UIConfig, resolve_api_key

def test_default_config():
    config = Config()
    assert config.gemini.default_model == "gemini-3-flash-preview"
    assert config.gemini.default_model in config.gemini.models
    assert config.ui.port == 7860
    assert config.storage.prompts_path == Path("data/prompts.json")

def test_config_from_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("""
gemini:
  default_model: gemini-3-pro-preview
storage:
  prompts_path: custom/prompts.json
ui:
  port: 8000
""")

    config = Config.from_yaml(config_file)
    assert config.gemini.default_model == "gemini-3-pro-preview"
    assert str(config.storage.prompts_path) == "custom/prompts.json"
    assert config.ui.port == 8000

def test_empty_yaml_gives_defaults(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("")
    assert Config.from_yaml(config_file) == Config()

def test_config_validation():
    with pytest.raises(ValidationError):
        Config(ui=UIConfig(port=0))
    with pytest.raises(ValidationError):
        GeminiConfig(default_model="gpt-4")

def test_config_to_yaml(tmp_path):
    config = Config(ui=UIConfig(port=9000), log_file=tmp_path / "app.log")
    output_file = tmp_path / "output.yaml"

    config.to_yaml(output_file)

    loaded = Config.from_yaml(output_file)
    assert loaded.ui.port == 9000
    assert loaded.log_file == tmp_path / "app.log"

def test_api_key_cookie_wins():
    key = resolve_api_key(
        {"GEMINI_API_KEY": "from-cookie"},
        configured="from-config",
        environ={"GEMINI_API_KEY": "from-env"},
    )
    assert key == "from-cookie"

def test_api_key_configured_before_env():
    assert resolve_api_key({}, configured="from-config", environ={"API_KEY": "env"}) == "from-config"

def test_api_key_env_order():
    assert resolve_api_key(environ={"API_KEY": "b", "GEMINI_API_KEY": "a"}) == "a"
    assert resolve_api_key(environ={"API_KEY": "b"}) == "b"

def test_api_key_missing():
    assert resolve_api_key({"other": "x"}, environ={}) == ""
