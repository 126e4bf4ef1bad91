from loguru import logger

from scriptosaur.utils import logger as logger_module
from scriptosaur.utils.logger import setup_logger
from scriptosaur.workflow import Workflow

MODELS = ["gemini-3-flash-preview"]


def test_workflow_lines_carry_session(tmp_path, monkeypatch, gateway, prompt_store):
    monkeypatch.setattr(logger_module, "_configured", False)
    log_file = tmp_path / "logs" / "scriptosaur.log"
    setup_logger("INFO", log_file)
    try:
        wf = Workflow(gateway, prompt_store, models=MODELS, session_id="abc12345")
        wf.confirm_setup()
        logger.info("outside any session")
    finally:
        logger.remove()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert any("abc12345" in line and "setup -> style_analysis" in line for line in lines)
    outside = [line for line in lines if "outside any session" in line]
    assert outside and "abc12345" not in outside[0]
    assert " | - " in outside[0]


def test_second_call_without_file_keeps_sinks(monkeypatch):
    monkeypatch.setattr(logger_module, "_configured", True)
    assert setup_logger("DEBUG") is logger
