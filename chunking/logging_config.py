"""
chunking/logging_config.py
--------------------------
Centralized logging configuration for the knowledge chunking pipeline.

All modules import `get_logger(__name__)` to obtain a named logger.
Logging format is structured and human-readable — no external libraries.

Log levels:
    DEBUG   — per-chunk sizes and positions
    INFO    — document and batch totals
    WARNING — skipped documents, clamped chunking settings
    ERROR   — internal failures caught at a public entry point

To change the global log level at runtime:
    import logging
    logging.getLogger("chunking").setLevel(logging.DEBUG)
"""

import logging
import sys


# ── Configuration ──────────────────────────────────────────────────────────────

_LOG_FORMAT  = "%(asctime)s [%(levelname)-8s] %(name)s — %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_ROOT_NAME   = "chunking"   # parent logger; all pipeline loggers are children


def configure_logging(level: int = logging.INFO) -> None:
    """
    Configures the 'chunking' logger with a stdout StreamHandler.

    Safe to call multiple times — handlers are not duplicated.

    Args:
        level: Logging level for the chunking namespace (default: INFO).
    """
    root = logging.getLogger(_ROOT_NAME)

    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Returns a logger under the 'chunking' namespace.

    Names outside the namespace (e.g. "service.api") are nested under it so
    every pipeline component shares one handler.

    Args:
        name: Typically __name__ of the calling module.

    Returns:
        A configured logging.Logger instance.
    """
    configure_logging()
    if name != _ROOT_NAME and not name.startswith(_ROOT_NAME + "."):
        name = f"{_ROOT_NAME}.{name}"
    return logging.getLogger(name)
