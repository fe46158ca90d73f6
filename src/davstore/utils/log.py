"""
log — настройка loguru для davstore.

Библиотека пишет через `from loguru import logger`; по умолчанию
сообщения davstore выключены, приложение включает их через setup_logging().
"""

from __future__ import annotations

import sys

from loguru import logger


def setup_logging(verbose: bool = False, sink=sys.stderr) -> int:
    """Ставит sink для сообщений davstore. Возвращает id обработчика."""
    level = "DEBUG" if verbose else "INFO"
    logger.enable("davstore")
    return logger.add(
        sink,
        level=level,
        filter="davstore",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
    )
