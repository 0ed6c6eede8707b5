"""
Warehouse logging utilities.

All loggers live under the ``warehouse`` namespace. Library code only
obtains loggers; handlers are attached by ``configure_logging``, which the
CLI calls once at startup.
"""

import logging

_package_logger = logging.getLogger("warehouse")

_DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(
    level: int | str = logging.WARNING,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure Warehouse logging.

    Args:
        level: Log level for all Warehouse loggers (default: WARNING).
            Level names such as ``"INFO"`` are accepted.
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: includes timestamp, level, logger name)

    Example:
        ```python
        import logging
        from warehouse.logging import configure_logging

        configure_logging(level=logging.INFO)
        ```
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter(format_string or _DEFAULT_FORMAT))

    # Replace handlers from an earlier call instead of stacking them
    for existing in list(_package_logger.handlers):
        _package_logger.removeHandler(existing)

    _package_logger.setLevel(level)
    _package_logger.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a Warehouse logger.

    Args:
        name: Logger name suffix (e.g., "backend", "sync"). If None, returns the package logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _package_logger
    return logging.getLogger(f"warehouse.{name}")


__all__ = [
    "configure_logging",
    "get_logger",
]
