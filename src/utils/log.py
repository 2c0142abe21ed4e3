"""
Logging setup for the fill simulator.

Modules obtain their logger with ``logging.getLogger(__name__)`` and never
configure handlers themselves. Drivers (backtest scripts, notebooks, tests
that want output) call :func:`configure_logging` once.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER_NAME = "fill_sim"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """
    Install a single stream handler on the root logger.

    Calling this more than once only updates the level; it never stacks
    duplicate handlers.

    Args:
        level: Level name (e.g. "DEBUG") or numeric logging level.

    Returns:
        The root logger.

    Raises:
        ValueError: If ``level`` is a name logging does not know.
    """
    if isinstance(level, str):
        numeric_level = logging.getLevelName(level.upper())
        if not isinstance(numeric_level, int):
            raise ValueError(f"Unknown log level: {level!r}")
    else:
        numeric_level = level

    root = logging.getLogger()
    root.setLevel(numeric_level)

    if not any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    return root
