"""
errors — таксономия ошибок адаптера.

Коды совпадают со значениями errno, чтобы движок синхронизации,
понимающий только ошибки локальной ФС, мог их интерпретировать напрямую.
"""

from __future__ import annotations

import errno
from enum import IntEnum


class DavErrno(IntEnum):
    """Код ошибки адаптера (аналог errno)."""

    SUCCESS = 0
    PERMISSION_DENIED = errno.EPERM
    NOT_FOUND = errno.ENOENT
    RETRY_LATER = errno.EAGAIN
    ACCESS_DENIED = errno.EACCES
    INVALID_REQUEST = errno.EINVAL
    OUT_OF_SPACE = errno.ENOSPC
    IO_ERROR = errno.EIO
    OUT_OF_MEMORY = errno.ENOMEM
    # В POSIX это тот же EINVAL: псевдоним INVALID_REQUEST.
    INVALID_ARGUMENT = errno.EINVAL


class DavError(Exception):
    """Ошибка операции адаптера с кодом из DavErrno.

    Бросается внутри компонентов и ловится на границе FileStore,
    где превращается в значение атрибута errno.
    """

    def __init__(self, code: DavErrno, message: str = ""):
        self.errno = DavErrno(code)
        self.message = message or self.errno.name
        super().__init__(f"{self.errno.name}: {self.message}")
