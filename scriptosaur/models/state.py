"""Immutable workflow snapshots for the script wizard."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

from .script import join_blocks

if TYPE_CHECKING:
    from ..gateway import ConversationHandle


class Step(str, Enum):
    SETUP = "setup"
    STYLE_ANALYSIS = "style_analysis"
    STRUCTURE = "structure"
    GENERATION = "generation"
    POST_PROCESSING = "post_processing"

    @property
    def label(self) -> str:
        return STEP_LABELS[self]

    def next(self) -> "Step":
        idx = STEP_ORDER.index(self)
        if idx + 1 >= len(STEP_ORDER):
            raise ValueError(f"{self.value} is the last step")
        return STEP_ORDER[idx + 1]


STEP_ORDER = [
    Step.SETUP,
    Step.STYLE_ANALYSIS,
    Step.STRUCTURE,
    Step.GENERATION,
    Step.POST_PROCESSING,
]

STEP_LABELS = {
    Step.SETUP: "Настройка",
    Step.STYLE_ANALYSIS: "Стиль",
    Step.STRUCTURE: "Структура",
    Step.GENERATION: "Генерация",
    Step.POST_PROCESSING: "Обработка",
}


class Tool(str, Enum):
    CLICHE = "cliche"
    HUMOR = "humor"
    REVIEW = "review"
    EDIT = "edit"


@dataclass(frozen=True)
class ClicheItem:
    id: int
    text: str
    type: str
    severity: int  # 1-10
    suggestion: str
    selected: bool = False

    @classmethod
    def create(cls, id: int, text: str, type: str, severity: int, suggestion: str) -> "ClicheItem":
        """New item, preselected when the defect is severe."""
        return cls(id, text, type, severity, suggestion, selected=severity >= 7)


@dataclass(frozen=True)
class ToolPanel:
    active_tool: Optional[Tool] = None
    review_result: str = ""
    cliches: Tuple[ClicheItem, ...] = ()

    @property
    def selected_cliches(self) -> Tuple[ClicheItem, ...]:
        return tuple(c for c in self.cliches if c.selected)


@dataclass(frozen=True)
class WorkflowState:
    step: Step = Step.SETUP
    selected_model: str = ""
    blogger_name: str = ""
    blogger_style: str = ""
    topic: str = ""
    structure: str = ""
    # Blocks are kept as produced; the script text is joined from them.
    blocks: Tuple[str, ...] = ()
    conversation: Optional["ConversationHandle"] = None
    # True until the first block after the plan was approved is requested.
    plan_pending: bool = False
    target_block: Optional[int] = None
    tools: ToolPanel = field(default_factory=ToolPanel)

    @property
    def generated_script(self) -> str:
        return join_blocks(self.blocks)

    def with_changes(self, **changes) -> "WorkflowState":
        return replace(self, **changes)
