"""
FileStore — набор файловых операций, который вызывает движок синхронизации.

Принцип:
- операции повторяют семантику вызовов локальной ФС (open/read/write/close,
  opendir/readdir/closedir, stat, mkdir/rmdir, rename, unlink, utimes)
- ошибки не бросаются наружу: операция возвращает None (дескрипторы, stat,
  read) или -1 (целочисленный результат), код ошибки — в атрибуте errno

Важно:
- read_bytes/write_bytes/listdir/walk имеют дефолтные реализации поверх
  базовых методов, чтобы бэкенды можно было реализовать минимально.
"""

from __future__ import annotations

import os
from typing import Any, Iterator, Protocol, Tuple

from davstore.errors import DavErrno
from davstore.filestore.types import FileStat

READ_CHUNK = 64 * 1024


class FileStore(Protocol):
    """Файловые операции над удалённым (или локальным) деревом."""

    errno: DavErrno

    # --- Файлы ---

    def open(self, uri: str, flags: int = os.O_RDONLY, mode: int = 0o644) -> Any | None:
        """Открывает файл; возвращает дескриптор или None."""
        ...

    def creat(self, uri: str, mode: int = 0o644) -> Any | None:
        """Создаёт пустой файл и открывает его на запись."""
        ...

    def close(self, handle: Any) -> int:
        ...

    def read(self, handle: Any, count: int) -> bytes | None:
        """До count байт; b"" в конце файла."""
        ...

    def write(self, handle: Any, data: bytes) -> int:
        """Возвращает число записанных байт (может быть меньше len(data))."""
        ...

    def lseek(self, handle: Any, offset: int, whence: int = os.SEEK_SET) -> int:
        ...

    # --- Каталоги ---

    def opendir(self, uri: str) -> Any | None:
        ...

    def readdir(self, handle: Any) -> FileStat | None:
        """Следующая запись каталога или None в конце."""
        ...

    def closedir(self, handle: Any) -> int:
        ...

    def mkdir(self, uri: str, mode: int = 0o755) -> int:
        ...

    def rmdir(self, uri: str) -> int:
        ...

    # --- Метаданные и пространство имён ---

    def stat(self, uri: str) -> FileStat | None:
        ...

    def rename(self, olduri: str, newuri: str) -> int:
        ...

    def unlink(self, uri: str) -> int:
        ...

    def chmod(self, uri: str, mode: int) -> int:
        ...

    def chown(self, uri: str, owner: int, group: int) -> int:
        ...

    def utimes(self, uri: str, times: Any) -> int:
        ...

    # --- Дефолтные "удобные" методы ---

    def read_bytes(self, uri: str) -> bytes | None:
        """Читает файл целиком (байтами)."""
        handle = self.open(uri, os.O_RDONLY)
        if handle is None:
            return None
        chunks: list[bytes] = []
        failed = False
        while True:
            chunk = self.read(handle, READ_CHUNK)
            if chunk is None:
                failed = True
                break
            if not chunk:
                break
            chunks.append(chunk)

        # код ошибки чтения важнее результата close
        err = self.errno
        rc = self.close(handle)
        if failed:
            self.errno = err
            return None
        if rc != 0:
            return None
        return b"".join(chunks)

    def write_bytes(self, uri: str, data: bytes) -> int:
        """Пишет файл целиком (байтами). 0 при успехе, -1 при ошибке."""
        handle = self.open(uri, os.O_CREAT | os.O_WRONLY | os.O_TRUNC)
        if handle is None:
            return -1
        view = memoryview(data)
        while view:
            n = self.write(handle, bytes(view))
            if n <= 0:
                self.close(handle)
                self.errno = DavErrno.IO_ERROR
                return -1
            view = view[n:]
        return self.close(handle)

    def listdir(self, uri: str) -> list[FileStat] | None:
        """Все записи каталога в порядке листинга."""
        handle = self.opendir(uri)
        if handle is None:
            return None
        out: list[FileStat] = []
        try:
            while (st := self.readdir(handle)) is not None:
                out.append(st)
        finally:
            self.closedir(handle)
        return out

    def walk(self, top: str) -> Iterator[Tuple[str, list[str], list[str]]]:
        """Рекурсивный обход каталога (аналог os.walk).

        Возвращает:
        - dirpath: путь/URL каталога
        - dirnames: имена подкаталогов
        - filenames: имена файлов

        Записи с неизвестным типом (ошибки, ссылки) пропускаются.
        Каталог, который не удалось открыть, пропускается.
        """

        def _join(parent: str, name: str) -> str:
            return f"{parent.rstrip('/')}/{name}"

        stack: list[str] = [top]

        while stack:
            dirpath = stack.pop()
            entries = self.listdir(dirpath)
            if entries is None:
                continue

            dirnames = sorted(st.name for st in entries if st.is_dir)
            filenames = sorted(st.name for st in entries if st.is_file)

            yield dirpath, dirnames, filenames

            for d in reversed(dirnames):
                stack.append(_join(dirpath, d))
