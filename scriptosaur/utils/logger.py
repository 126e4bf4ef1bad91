"""loguru sinks for the CLI and the web UI.

Every record carries a ``session`` extra: workflow code logs through
``logger.bind(session=...)`` so the lines of concurrent browser sessions
can be told apart. Records without a binding show ``-``.
"""

import sys
from loguru import logger
from pathlib import Path
from typing import Optional

_configured = False

NO_SESSION = "-"

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[session]: <8}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[session]: <8} | "
    "{name}:{function}:{line} - {message}"
)


def setup_logger(log_level: str = "INFO", log_file: Optional[Path] = None):
    """Configure loguru sinks once per process.

    A later call with a log file re-installs the sinks so the file handler
    can be added after the CLI has parsed its options. The file sink always
    records DEBUG, which includes the per-call gateway timings.
    """
    global _configured

    if _configured and log_file is None:
        return logger

    logger.remove()
    logger.configure(extra={"session": NO_SESSION})
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=log_level.upper(), colorize=True)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level="DEBUG",
            rotation="5 MB",
            retention="14 days",
            encoding="utf-8",
        )

    _configured = True
    return logger
