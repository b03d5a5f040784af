from __future__ import annotations

import logging


_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the ``postboard`` logger.

    Safe to call more than once (tests build several apps per process).
    """
    logger = logging.getLogger("postboard")
    logger.setLevel((level or "INFO").upper())
    if not any(getattr(h, "_postboard", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._postboard = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
