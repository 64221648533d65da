"""
FILE: mason/logging_setup.py
PURPOSE: Configure stdlib logging for the CLI and REPL
EXPORTS:
  - setup_logging(log_dir, console_level, file_level) -> None
DEPENDENCIES:
  - logging (stdlib)
  - pathlib (stdlib)
NOTES:
  - Console handler writes to stderr so it never mixes with --json output
  - File handler keeps everything at DEBUG for troubleshooting
  - Safe to call more than once (existing handlers are replaced)
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from .core.constants import LOG_DIR, LOG_FILE_NAME


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the terminal readable:
    - allow mason logs at the handler's level
    - third-party and py.warnings only at ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "mason" or record.name.startswith("mason."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: Optional[Union[str, Path]] = None,
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Configure logging with:
    - Console handler: filtered, WARNING by default
    - File handler: full logs under ~/.mason/logs

    Call this once, early (the CLI callback does it).
    """
    log_dir = Path(log_dir) if log_dir else LOG_DIR

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_dir / LOG_FILE_NAME), encoding="utf-8")
    except OSError as e:
        # Read-only home: keep console logging only
        logging.getLogger(__name__).warning("File logging disabled: %s", e)
    else:
        fh.setLevel(file_level)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)
