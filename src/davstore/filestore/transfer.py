"""
transfer — контекст передачи содержимого для одного открытого файла.

Принцип:
- запись: байты буферизуются в локальный временный файл, PUT уходит на close()
- чтение: файл целиком скачивается при открытии, read() читает локальную копию
- временный файл удаляется на любом выходе: успех, ошибка, ранний возврат

Произвольный доступ (lseek) не поддерживается: только последовательное чтение.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import IO

import requests
from loguru import logger

from davstore.errors import DavErrno, DavError
from davstore.filestore.tmp import make_tempfile, remove_tempfile
from davstore.net.http import DavSession
from davstore.status import failure_errno


class TransferMode(Enum):
    READ = "GET"
    WRITE = "PUT"


def mode_for_flags(flags: int) -> TransferMode:
    """Любой из O_WRONLY, O_RDWR, O_CREAT означает запись."""
    if flags & (os.O_WRONLY | os.O_RDWR | os.O_CREAT):
        return TransferMode.WRITE
    return TransferMode.READ


def _local_error(e: OSError, what: str) -> DavError:
    code = DavErrno.NOT_FOUND if isinstance(e, FileNotFoundError) else DavErrno.IO_ERROR
    return DavError(code, f"{what}: {e}")


class TransferContext:
    """Состояние одного файлового дескриптора (Idle -> Opened -> Closed)."""

    def __init__(self, session: DavSession, uri: str, path: str, mode: TransferMode, tmpdir: str | None = None):
        self.session = session
        self.uri = uri
        self.path = path
        self.mode = mode
        self.tmpdir = tmpdir

        self.tmp_path: str | None = None
        self.bytes_transferred = 0
        self.pending: requests.Request | None = None
        self.closed = False
        self._file: IO[bytes] | None = None

    def __repr__(self) -> str:
        return f"TransferContext({self.mode.value} {self.path!r}, tmp={self.tmp_path!r})"

    @classmethod
    def open(
        cls,
        session: DavSession,
        uri: str,
        path: str,
        mode: TransferMode,
        tmpdir: str | None = None,
    ) -> "TransferContext":
        ctx = cls(session, uri, path, mode, tmpdir=tmpdir)
        try:
            ctx._start()
        except BaseException:
            ctx._release()
            raise
        return ctx

    def __enter__(self) -> "TransferContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self.closed:
            self.close()

    # --- Открытие ---

    def _start(self) -> None:
        try:
            fd, self.tmp_path = make_tempfile(self.tmpdir)
        except OSError as e:
            raise _local_error(e, "cannot create temp file") from e

        if self.mode is TransferMode.WRITE:
            self._file = open(fd, "wb", buffering=0)
            self.pending = self.session.new_request("PUT", self.path)
            logger.debug("PUT request on {} pending until close", self.path)
            return

        logger.debug("GET request on {}", self.path)
        with open(fd, "wb") as f:
            result = self.session.get(self.path, f)
        if not result.ok:
            raise DavError(failure_errno(result.code, result.error), f"GET {self.path}: {result.error}")
        # локальная копия откроется на чтение при первом read()
        self._file = None

    # --- Чтение/запись ---

    def read(self, count: int) -> bytes:
        if self.closed or self.mode is not TransferMode.READ:
            raise DavError(DavErrno.INVALID_ARGUMENT, f"{self!r} is not open for reading")
        if self._file is None:
            try:
                self._file = open(self.tmp_path, "rb")
            except OSError as e:
                raise _local_error(e, f"cannot open local file {self.tmp_path}") from e
            logger.debug("Local download file size={}", os.fstat(self._file.fileno()).st_size)

        try:
            data = self._file.read(count)
        except OSError as e:
            raise _local_error(e, f"cannot read local file {self.tmp_path}") from e
        self.bytes_transferred += len(data)
        return data

    def write(self, data: bytes) -> int:
        if self.closed or self.mode is not TransferMode.WRITE or self._file is None:
            raise DavError(DavErrno.IO_ERROR, f"{self!r} has no valid local file for writing")
        try:
            written = self._file.write(data) or 0
        except OSError as e:
            raise _local_error(e, f"cannot write local file {self.tmp_path}") from e
        if written != len(data):
            logger.warning("Written bytes not equal to count ({} of {}) for {}", written, len(data), self.path)
        self.bytes_transferred += written
        return written

    # --- Закрытие ---

    def close(self) -> None:
        """Запись: отправляет PUT и требует 2xx. Чтение: закрывает локальный файл.

        Временный файл удаляется в любом случае.
        """
        if self.closed:
            raise DavError(DavErrno.INVALID_ARGUMENT, f"{self!r} is already closed")
        try:
            if self.mode is TransferMode.WRITE:
                self._commit()
            elif self._file is not None:
                self._file.close()
                self._file = None
        finally:
            self._release()

    def _commit(self) -> None:
        if self._file is not None:
            try:
                self._file.close()
            except OSError as e:
                raise _local_error(e, f"could not close file {self.tmp_path}") from e
            self._file = None

        try:
            body = open(self.tmp_path, "rb")
        except OSError as e:
            raise _local_error(e, f"cannot reopen local file {self.tmp_path}") from e

        with body:
            size = os.fstat(body.fileno()).st_size
            result = self.session.dispatch(self.pending, body if size else b"", size)

        if not result.ok:
            logger.debug("PUT status is not 2xx: {}", result.error)
            raise DavError(failure_errno(result.code, result.error), f"PUT {self.path}: {result.error}")
        logger.debug("Uploaded {} bytes to {}", size, self.path)

    def _release(self) -> None:
        if self._file is not None:
            try:
                self._file.close()
            except OSError as e:
                logger.warning("Could not close local file {}: {}", self.tmp_path, e)
            self._file = None
        remove_tempfile(self.tmp_path)
        self.pending = None
        self.closed = True
