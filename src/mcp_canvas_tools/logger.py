"""Central logging configuration for the package."""
from __future__ import annotations

import logging
import os
from typing import Optional

_DEFAULT_LEVEL = "INFO"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-level logger. Handlers are left to the application."""
    return logging.getLogger(name)


def configure_logging(level: Optional[str] = None) -> None:
    """Send records to stderr at the given level (default: $MCP_LOG_LEVEL or INFO).

    stderr keeps log output off the MCP stdio transport.
    """
    level = (level or os.environ.get("MCP_LOG_LEVEL") or _DEFAULT_LEVEL).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    root.setLevel(level)
