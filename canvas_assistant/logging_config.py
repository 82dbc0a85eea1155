from __future__ import annotations

import logging

logger = logging.getLogger("canvas_assistant.server")


def configure_logging(level: int = logging.INFO) -> None:
    """Configure root logging once for the server process."""
    if logger.handlers or logging.getLogger().handlers:
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
