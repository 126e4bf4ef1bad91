from .logger import setup_logger
from .text import strip_code_fences, substitute_placeholders

__all__ = [
    "setup_logger",
    "strip_code_fences",
    "substitute_placeholders",
]
