from __future__ import annotations

import logging
from collections.abc import Mapping


def _render(message: str, fields: Mapping[str, object]) -> str:
    tokens = [message]
    for name, value in fields.items():
        text = "" if value is None else str(value).strip()
        if text:
            tokens.append(f"{name}={text}")
    return " ".join(tokens)


def _emit(logger: logging.Logger, level: int, message: str, fields: Mapping[str, object]) -> None:
    if logger.isEnabledFor(level):
        logger.log(level, "%s", _render(message, fields))


def log_event(logger: logging.Logger, message: str, **fields: object) -> None:
    """Emit ``message`` followed by ``k=v`` tokens at INFO.

    Empty and None fields are dropped so plain-text sinks stay grep-able.
    """

    _emit(logger, logging.INFO, message, fields)


def debug_event(logger: logging.Logger, message: str, **fields: object) -> None:
    """Same line format as :func:`log_event`, at DEBUG (per-object noise)."""

    _emit(logger, logging.DEBUG, message, fields)
