"""
tmp — локальные временные файлы для передачи содержимого.

Каждый открытый дескриптор получает свой уникальный файл;
удаление гарантируется вызывающим кодом (TransferContext.close).
"""

from __future__ import annotations

import os
import tempfile

from loguru import logger

TMP_PREFIX = "davstore."


def make_tempfile(tmpdir: str | None = None) -> tuple[int, str]:
    """Создаёт уникальный временный файл. Возвращает (fd, путь)."""
    fd, path = tempfile.mkstemp(prefix=TMP_PREFIX, dir=tmpdir)
    logger.debug("Opened temp file {}", path)
    return fd, path


def remove_tempfile(path: str | None) -> None:
    """Удаляет временный файл; ошибка удаления только логируется."""
    if not path:
        return
    try:
        os.unlink(path)
    except OSError as e:
        logger.warning("Could not remove temp file {}: {}", path, e)
