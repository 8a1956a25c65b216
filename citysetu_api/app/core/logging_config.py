"""
Process-wide logging for the CitySetu API.

Everything goes through the root logger, to stderr and optionally to
``LOG_FILE``, as ``<time> [<LEVEL>] <module>: <message>``.  What to
expect at each level:

``INFO``
    every document commit on the GitHub and SQLite backends (path,
    record count, new sha) and each repository append/update/remove.
``WARNING``
    write conflicts and the backoff before the retry.
``ERROR``
    upstream failures (GitHub status and message, timeouts,
    unreachable host), conflicts that exhausted their retries and a
    signup approved without its worker record.
``DEBUG``
    every outgoing GitHub request.

urllib3 is held at ``WARNING`` or above so connection pool chatter
stays out of INFO output.  Handlers are installed at most once per
process.
"""

import logging
from pathlib import Path
from typing import Optional


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure root logger.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``, ``"INFO"``).  Case
        insensitive; unknown names fall back to ``INFO``.
    logfile : Optional[str]
        Path to a file to log messages to.  If omitted, no file
        handler is added.
    """
    logger = logging.getLogger()
    if logger.handlers:
        # Already configured (tests, repeated ``create_app`` calls).
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if logfile:
        log_path = Path(logfile).resolve()
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # The GitHub client logs every request at DEBUG; keep urllib3's
    # connection chatter out of INFO output.
    logging.getLogger("urllib3").setLevel(max(numeric_level, logging.WARNING))
