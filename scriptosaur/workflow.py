"""Wizard state machine: style -> structure -> generation -> post-processing."""

import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterable, List, Optional

from loguru import logger

from .cliches import build_fix_instructions, parse_cliches
from .errors import ClicheFormatError, PreconditionError, WorkflowBusyError
from .gateway import LLMGateway
from .models.script import copy_text, split_blocks, update_block
from .models.state import ClicheItem, Step, Tool, ToolPanel, WorkflowState
from .prompt_store import PromptStore
from .prompts import CONTINUE_LINE, PromptKey
from .utils.text import substitute_placeholders


class Workflow:
    """Owns one session's ``WorkflowState`` and drives the gateway.

    Every action checks its preconditions first, then calls the gateway and
    only replaces the state snapshot after the call succeeded. A failed
    action therefore leaves the state as it was.
    """

    def __init__(
        self,
        gateway: LLMGateway,
        prompts: PromptStore,
        models: Optional[List[str]] = None,
        state: Optional[WorkflowState] = None,
        session_id: Optional[str] = None,
    ):
        self.gateway = gateway
        self.prompts = prompts
        self.models = list(models) if models else []
        if state is None:
            state = WorkflowState(selected_model=self.models[0] if self.models else "")
        self._state = state
        self._busy = threading.Lock()
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self.log = logger.bind(session=self.session_id)

    @property
    def state(self) -> WorkflowState:
        return self._state

    def _replace(self, **changes) -> WorkflowState:
        self._state = self._state.with_changes(**changes)
        return self._state

    @contextmanager
    def _action(self, name: str):
        if not self._busy.acquire(blocking=False):
            raise WorkflowBusyError(f"Cannot start '{name}': another request is still running")
        try:
            yield
        finally:
            self._busy.release()

    def _require_step(self, *steps: Step) -> None:
        if self._state.step not in steps:
            allowed = ", ".join(s.value for s in steps)
            raise PreconditionError(
                f"Action not available at step '{self._state.step.value}' (needs {allowed})"
            )

    def _advance(self, **changes) -> WorkflowState:
        nxt = self._state.step.next()
        self.log.info(f"Workflow: {self._state.step.value} -> {nxt.value}")
        return self._replace(step=nxt, **changes)

    # ------------------------------------------------------------------
    # setup / model
    # ------------------------------------------------------------------
    def select_model(self, model: str) -> WorkflowState:
        if self.models and model not in self.models:
            raise PreconditionError(f"Unsupported model: {model}")
        return self._replace(selected_model=model)

    def confirm_setup(self, model: Optional[str] = None) -> WorkflowState:
        self._require_step(Step.SETUP)
        if model:
            self.select_model(model)
        if not self._state.selected_model:
            raise PreconditionError("Choose a model first")
        return self._advance()

    # ------------------------------------------------------------------
    # style analysis
    # ------------------------------------------------------------------
    def analyze_style(self, name: str) -> str:
        self._require_step(Step.STYLE_ANALYSIS)
        name = name.strip()
        if not name:
            raise PreconditionError("Enter an author or channel name")
        with self._action("analyze_style"):
            self.log.info(f"Analyzing style of '{name}'")
            return self.gateway.analyze_style(
                self._state.selected_model,
                name,
                self.prompts.get(PromptKey.STYLE_ANALYSIS_SYSTEM),
            )

    def accept_style(self, name: str, style: str) -> WorkflowState:
        self._require_step(Step.STYLE_ANALYSIS)
        if not name.strip() or not style.strip():
            raise PreconditionError("Author name and style description are required")
        return self._advance(blogger_name=name.strip(), blogger_style=style)

    # ------------------------------------------------------------------
    # structure
    # ------------------------------------------------------------------
    def build_structure(self, topic: str) -> str:
        """Open a new conversation for ``topic`` and ask it for a plan.

        The new handle replaces any earlier one only when both calls succeed.
        """
        self._require_step(Step.STRUCTURE)
        topic = topic.strip()
        if not topic:
            raise PreconditionError("Enter a topic for the video")
        with self._action("build_structure"):
            self.log.info(f"Building structure for topic '{topic}'")
            handle = self.gateway.start_conversation(
                self._state.selected_model,
                self._state.blogger_style,
                topic,
                self.prompts.get(PromptKey.GENERATOR_PERSONA),
            )
            structure = self.gateway.request_structure(
                handle, self.prompts.get(PromptKey.STRUCTURE_REQUEST)
            )
            self._replace(topic=topic, structure=structure, conversation=handle)
            return structure

    def accept_structure(self, structure: Optional[str] = None) -> WorkflowState:
        self._require_step(Step.STRUCTURE)
        if self._state.conversation is None:
            raise PreconditionError("Generate a structure before approving it")
        if structure is None:
            structure = self._state.structure
        if not structure.strip():
            raise PreconditionError("The structure is empty")
        return self._advance(structure=structure, plan_pending=True)

    # ------------------------------------------------------------------
    # generation
    # ------------------------------------------------------------------
    def _next_block_instruction(self, custom_instruction: str) -> str:
        if custom_instruction.strip():
            instruction = custom_instruction
        else:
            template = self.prompts.get(PromptKey.GENERATION_INSTRUCTION)
            instruction = substitute_placeholders(
                template, {"TOPIC": self._state.topic, "STYLE": self._state.blogger_style}
            )
            instruction = f"{instruction}\n{CONTINUE_LINE}"
        if self._state.plan_pending:
            # the user may have edited the plan after the model proposed it
            instruction = f"УТВЕРЖДЕННЫЙ ПЛАН:\n{self._state.structure}\n\n{instruction}"
        return instruction

    def generate_next_block(self, custom_instruction: str = "") -> str:
        self._require_step(Step.GENERATION)
        handle = self._state.conversation
        if handle is None:
            raise PreconditionError("No conversation is open")
        with self._action("generate_next_block"):
            self.log.info(f"Generating block {len(self._state.blocks) + 1}")
            text = self.gateway.continue_script(handle, self._next_block_instruction(custom_instruction))
            self._replace(blocks=self._state.blocks + (text,), plan_pending=False)
            return text

    def finish(self) -> WorkflowState:
        self._require_step(Step.GENERATION)
        if not self._state.blocks:
            raise PreconditionError("Generate at least one block first")
        return self._advance(target_block=None, tools=ToolPanel())

    # ------------------------------------------------------------------
    # block model
    # ------------------------------------------------------------------
    def update_block(self, index: int, text: str) -> WorkflowState:
        self._require_step(Step.GENERATION, Step.POST_PROCESSING)
        blocks = update_block(self._state.blocks, index, text)
        return self._set_blocks(blocks, keep_target=True)

    def edit_script(self, text: str) -> WorkflowState:
        """Replace the whole script with manually edited text."""
        self._require_step(Step.POST_PROCESSING)
        return self._set_blocks(split_blocks(text), keep_target=False)

    def select_target(self, index: Optional[int]) -> WorkflowState:
        self._require_step(Step.POST_PROCESSING)
        if index is not None and not 0 <= index < len(self._state.blocks):
            raise PreconditionError(f"Block {index + 1} does not exist")
        return self._replace(target_block=index)

    def copy_text(self) -> str:
        return copy_text(self._state.blocks)

    def _set_blocks(self, blocks: Iterable[str], keep_target: bool) -> WorkflowState:
        blocks = tuple(blocks)
        target = self._state.target_block
        if not keep_target or len(blocks) != len(self._state.blocks):
            target = None
        return self._replace(blocks=blocks, target_block=target)

    def _target_text(self) -> str:
        target = self._state.target_block
        if target is None:
            return self._state.generated_script
        return self._state.blocks[target]

    def _apply_result(self, text: str) -> None:
        target = self._state.target_block
        if target is None:
            self._set_blocks(split_blocks(text), keep_target=False)
        else:
            # a result that contains separators becomes several blocks in place
            blocks = list(self._state.blocks)
            blocks[target:target + 1] = split_blocks(text) or [""]
            self._set_blocks(blocks, keep_target=True)

    # ------------------------------------------------------------------
    # post-processing tools
    # ------------------------------------------------------------------
    def close_tool(self) -> WorkflowState:
        self._require_step(Step.POST_PROCESSING)
        return self._replace(tools=ToolPanel())

    def review(self) -> str:
        self._require_step(Step.POST_PROCESSING)
        with self._action("review"):
            result = self.gateway.review(
                self._state.selected_model,
                self._target_text(),
                self.prompts.get(PromptKey.REVIEW_SYSTEM),
            )
            self._replace(tools=ToolPanel(active_tool=Tool.REVIEW, review_result=result))
            return result

    def detect_cliches(self) -> List[ClicheItem]:
        self._require_step(Step.POST_PROCESSING)
        with self._action("detect_cliches"):
            raw = self.gateway.detect_cliches(
                self._state.selected_model,
                self._target_text(),
                self.prompts.get(PromptKey.CLICHE_DETECTION_SYSTEM),
            )
            try:
                items = parse_cliches(raw)
            except ClicheFormatError as e:
                self.log.warning(f"Unusable cliché response: {e}")
                self._replace(tools=ToolPanel())
                raise
            # replaces any earlier batch
            self._replace(tools=ToolPanel(active_tool=Tool.CLICHE, cliches=tuple(items)))
            self.log.info(f"Detected {len(items)} cliché(s)")
            return items

    def toggle_cliche(self, cliche_id: int) -> WorkflowState:
        self._require_step(Step.POST_PROCESSING)
        tools = self._state.tools
        if not any(c.id == cliche_id for c in tools.cliches):
            raise PreconditionError(f"No cliché with id {cliche_id}")
        cliches = tuple(
            replace(c, selected=not c.selected)
            if c.id == cliche_id else c
            for c in tools.cliches
        )
        return self._replace(tools=ToolPanel(tools.active_tool, tools.review_result, cliches))

    def set_cliche_selection(self, selected_ids: Iterable[int]) -> WorkflowState:
        self._require_step(Step.POST_PROCESSING)
        wanted = set(selected_ids)
        tools = self._state.tools
        cliches = tuple(
            replace(c, selected=c.id in wanted)
            for c in tools.cliches
        )
        return self._replace(tools=ToolPanel(tools.active_tool, tools.review_result, cliches))

    def fix_cliches(self) -> str:
        self._require_step(Step.POST_PROCESSING)
        selected = self._state.tools.selected_cliches
        if not selected:
            raise PreconditionError("Select at least one cliché to fix")
        with self._action("fix_cliches"):
            result = self.gateway.fix_cliches(
                self._state.selected_model,
                self._target_text(),
                build_fix_instructions(selected),
                self.prompts.get(PromptKey.CLICHE_FIX_SYSTEM),
            )
            self._apply_result(result)
            self._replace(tools=ToolPanel())
            return result

    def apply_humor(self) -> str:
        self._require_step(Step.POST_PROCESSING)
        with self._action("apply_humor"):
            result = self.gateway.apply_humor(
                self._state.selected_model,
                self._target_text(),
                self._state.blogger_style,
                self.prompts.get(PromptKey.HUMOR_SYSTEM),
            )
            self._apply_result(result)
            self._replace(tools=ToolPanel())
            return result

    def free_edit(self, instruction: str) -> str:
        """Edit the target with a free-form instruction (may be empty)."""
        self._require_step(Step.POST_PROCESSING)
        with self._action("free_edit"):
            result = self.gateway.free_edit(
                self._state.selected_model,
                self._target_text(),
                self._state.blogger_style,
                instruction,
            )
            self._apply_result(result)
            self._replace(tools=ToolPanel(active_tool=Tool.EDIT))
            return result
