"""Shared fixtures: an in-memory prompt store and a scripted fake gateway."""

import pytest

from scriptosaur.errors import GatewayError
from scriptosaur.gateway import ConversationHandle
from scriptosaur.prompt_store import PromptStore
from scriptosaur.workflow import Workflow

MODELS = ["gemini-3-flash-preview", "gemini-3-pro-preview"]


class FakeGateway:
    """Records every call and answers from canned responses.

    ``fail`` names operations that should raise ``GatewayError``.
    """

    def __init__(self):
        self.calls = []
        self.fail = set()
        self.api_key = "test-key"
        self.logs = []
        self.style = "Говори коротко и с иронией."
        self.structure = "1. Вступление\n2. Основная часть\n3. Финал"
        self.blocks = []
        self.cliches = "[]"
        self.edited = "EDITED"

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail:
            raise GatewayError(name, RuntimeError("service unavailable"))

    def analyze_style(self, model, subject_name, instruction):
        self._record("analyze_style", model, subject_name, instruction)
        return self.style

    def start_conversation(self, model, style, topic, persona_template):
        self._record("start_conversation", model, style, topic, persona_template)
        return ConversationHandle(chat=object(), model=model)

    def request_structure(self, handle, instruction):
        self._record("request_structure", handle, instruction)
        return self.structure

    def continue_script(self, handle, instruction):
        self._record("continue_script", handle, instruction)
        return self.blocks.pop(0) if self.blocks else f"Block text {len(self.calls)}"

    def review(self, model, text, instruction):
        self._record("review", model, text, instruction)
        return "Хороший текст."

    def detect_cliches(self, model, text, instruction):
        self._record("detect_cliches", model, text, instruction)
        return self.cliches

    def fix_cliches(self, model, text, change_instructions, instruction):
        self._record("fix_cliches", model, text, change_instructions, instruction)
        return self.edited

    def apply_humor(self, model, text, style, instruction):
        self._record("apply_humor", model, text, style, instruction)
        return self.edited

    def free_edit(self, model, text, style, user_instruction):
        self._record("free_edit", model, text, style, user_instruction)
        return self.edited

    def names(self):
        return [name for name, _ in self.calls]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def prompt_store(tmp_path):
    return PromptStore(tmp_path / "prompts.json")


@pytest.fixture
def workflow(gateway, prompt_store):
    return Workflow(gateway, prompt_store, models=MODELS)


@pytest.fixture
def post_workflow(workflow, gateway):
    """A workflow that already reached post-processing with two blocks."""
    gateway.blocks = ["Intro text", "Outro text"]
    workflow.confirm_setup()
    workflow.accept_style("Utopia Show", gateway.style)
    workflow.build_structure("Почему мы боимся темноты?")
    workflow.accept_structure()
    workflow.generate_next_block()
    workflow.generate_next_block()
    workflow.finish()
    gateway.calls.clear()
    return workflow
