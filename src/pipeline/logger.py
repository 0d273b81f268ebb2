"""Logging configuration utilities for the pipeline."""

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"

# Names given to the handlers setup_logging installs
CONSOLE_HANDLER_NAME = "pipeline-console"
FILE_HANDLER_NAME = "pipeline-file"


def _own_handlers(root_logger: logging.Logger, name: str) -> list[logging.Handler]:
    return [h for h in root_logger.handlers if h.get_name() == name]


def setup_logging(
    log_file: Path | str | None,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> logging.Logger:
    """Configure the root logger for console and, optionally, file output.

    Safe to call repeatedly: an existing console handler at the same level is
    reused, and a file handler for a different path replaces the previous
    one. Handlers installed by others (such as pytest's caplog) are kept.

    Args:
        log_file: Path to the log file, or None for console only
        console_level: Logging level for console output
        file_level: Logging level for file output

    Returns:
        The configured root logger
    """
    formatter = logging.Formatter(LOG_FORMAT)
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    if not any(
        h.level == console_level for h in _own_handlers(root_logger, CONSOLE_HANDLER_NAME)
    ):
        # Replace unencodable characters (e.g. status symbols on Windows consoles)
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(errors="replace")  # pyright: ignore[reportAttributeAccessIssue]
        console_handler = logging.StreamHandler(stream=sys.stdout)
        console_handler.set_name(CONSOLE_HANDLER_NAME)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file is None:
        return root_logger

    resolved_path = str(Path(log_file).resolve())
    file_handlers = _own_handlers(root_logger, FILE_HANDLER_NAME)
    if any(h.baseFilename == resolved_path for h in file_handlers):
        return root_logger

    for handler in file_handlers:
        root_logger.removeHandler(handler)
        handler.close()

    Path(resolved_path).parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(resolved_path, mode="a", encoding="utf-8")
    file_handler.set_name(FILE_HANDLER_NAME)
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    return root_logger
