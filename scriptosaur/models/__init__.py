from .state import (
    Step,
    STEP_ORDER,
    Tool,
    ClicheItem,
    ToolPanel,
    WorkflowState,
)
from .script import (
    BLOCK_SEPARATOR,
    COPY_SEPARATOR,
    split_blocks,
    join_blocks,
    update_block,
    copy_text,
)

__all__ = [
    "Step",
    "STEP_ORDER",
    "Tool",
    "ClicheItem",
    "ToolPanel",
    "WorkflowState",
    "BLOCK_SEPARATOR",
    "COPY_SEPARATOR",
    "split_blocks",
    "join_blocks",
    "update_block",
    "copy_text",
]
