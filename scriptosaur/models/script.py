"""Splitting the generated script into ordered blocks and back."""

from typing import List, Sequence

from ..errors import PreconditionError

BLOCK_SEPARATOR = "\n\n***\n\n"
COPY_SEPARATOR = "\n\n"


def split_blocks(text: str) -> List[str]:
    """Split the canonical script text into blocks.

    An empty script has no blocks. Blocks are never trimmed or collapsed, so
    ``join_blocks(split_blocks(text)) == text``.
    """
    if not text:
        return []
    return text.split(BLOCK_SEPARATOR)


def join_blocks(blocks: Sequence[str]) -> str:
    return BLOCK_SEPARATOR.join(blocks)


def update_block(blocks: Sequence[str], index: int, text: str) -> List[str]:
    """Return a copy of ``blocks`` with block ``index`` replaced."""
    if not 0 <= index < len(blocks):
        raise PreconditionError(f"Block {index + 1} does not exist (script has {len(blocks)} blocks)")
    updated = list(blocks)
    updated[index] = text
    return updated


def copy_text(blocks: Sequence[str]) -> str:
    """Plain text for the clipboard: blocks separated by a blank line."""
    return COPY_SEPARATOR.join(block.strip() for block in blocks)
