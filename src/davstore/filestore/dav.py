"""
DavFileStore — реализация FileStore поверх WebDAV-сервера.

Используется движком синхронизации вместо локальной ФС для "удалённой" стороны.

Требования:
- реализовать полный контракт FileStore
- каждая сетевая операция проходит через перевод статусов (status) ровно один раз
- автоматических повторов нет: RETRY_LATER интерпретирует вызывающий код

Замечание:
- uri — полный URL (owncloud://host/remote.php/webdav/dir/file) или путь,
  который разрешается относительно base_url.
"""

from __future__ import annotations

import functools
import os
import posixpath
from dataclasses import replace
from numbers import Real
from typing import Any, Callable
from urllib.parse import unquote, urlsplit

import requests
from loguru import logger

from davstore.errors import DavErrno, DavError
from davstore.filestore.base import FileStore
from davstore.filestore.catalog import DEPTH_ONE, Catalog, fetch_resource_list
from davstore.filestore.statcache import StatCache
from davstore.filestore.transfer import TransferContext, TransferMode, mode_for_flags
from davstore.filestore.types import FileStat
from davstore.net.http import DEFAULT_TIMEOUT, DavResult, DavSession
from davstore.net.url import basename, clean_path, collection_path, decode_path, dirname, has_scheme
from davstore.secrets.base import AuthCallback
from davstore.status import failure_errno


def _vio_call(failure: Any) -> Callable:
    """Граница FileStore: исключения -> значение failure и код в self.errno."""

    def deco(fn):
        @functools.wraps(fn)
        def wrapper(self: "DavFileStore", *args, **kwargs):
            try:
                return fn(self, *args, **kwargs)
            except DavError as e:
                self.errno = e.errno
                logger.debug("{} failed: {}", fn.__name__, e)
            except FileNotFoundError as e:
                self.errno = DavErrno.NOT_FOUND
                logger.debug("{} failed: {}", fn.__name__, e)
            except OSError as e:
                self.errno = DavErrno.IO_ERROR
                logger.debug("{} failed: {}", fn.__name__, e)
            except MemoryError:
                self.errno = DavErrno.OUT_OF_MEMORY
                logger.error("{} failed: out of memory", fn.__name__)
            return failure

        return wrapper

    return deco


def _check(result: DavResult, what: str) -> None:
    if not result.ok:
        raise DavError(failure_errno(result.code, result.error), f"{what}: {result.error}")


def _expect(handle: Any, cls: type) -> Any:
    if not isinstance(handle, cls):
        raise DavError(DavErrno.INVALID_ARGUMENT, f"not a {cls.__name__}: {handle!r}")
    return handle


class DavFileStore(FileStore):
    """WebDAV-реализация FileStore. Один экземпляр — одна сессия к одному серверу."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        username: str | None = None,
        password: str | None = None,
        auth_callback: AuthCallback | None = None,
        userdata: Any = None,
        timeout: float = DEFAULT_TIMEOUT,
        tmpdir: str | None = None,
        verify: bool = True,
        user_agent: str = "davstore",
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self.base_url = base_url
        self.tmpdir = tmpdir
        self.session = DavSession(
            timeout=timeout,
            user_agent=user_agent,
            username=username,
            password=password,
            auth_callback=auth_callback,
            userdata=userdata,
            verify=verify,
            session_factory=session_factory,
        )
        self.stat_cache = StatCache()
        self.errno = DavErrno.SUCCESS

    def __enter__(self) -> "DavFileStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def shutdown(self) -> None:
        """Освобождает учётные данные и закрывает сессию."""
        self.session.close()
        self.stat_cache.invalidate()

    # --- Пути и соединение ---

    def _resolve(self, uri: str) -> tuple[str | None, str]:
        """(URL для connect, экранированный путь запроса)."""
        s = str(uri)
        if has_scheme(s):
            return s, clean_path(s)
        if not self.base_url:
            return None, clean_path(s)
        base_path = unquote(urlsplit(self.base_url).path) or "/"
        return self.base_url, clean_path(posixpath.join(base_path, s.lstrip("/")))

    def _connect(self, uri: str) -> str:
        if uri is None:
            raise DavError(DavErrno.INVALID_ARGUMENT, "uri must not be None")
        connect_url, path = self._resolve(uri)
        if not self.session.connected:
            if not connect_url:
                raise DavError(DavErrno.IO_ERROR, f"no server URL to connect for {uri!r}")
            self.session.connect(connect_url)
        return path

    # --- Файлы ---

    def _open(self, uri: str, flags: int) -> TransferContext:
        logger.debug("open {} flags={:#o}", uri, flags)
        path = self._connect(uri)
        tmode = mode_for_flags(flags)

        if tmode is TransferMode.WRITE:
            parent = dirname(uri)
            try:
                self._stat(parent)
            except DavError as e:
                logger.debug("Directory {} of file to open does NOT exist", parent)
                raise DavError(DavErrno.NOT_FOUND, f"parent collection {parent} does not exist") from e

        return TransferContext.open(self.session, uri, path, tmode, tmpdir=self.tmpdir)

    @_vio_call(None)
    def open(self, uri: str, flags: int = os.O_RDONLY, mode: int = 0o644) -> TransferContext | None:
        return self._open(uri, flags)

    @_vio_call(None)
    def creat(self, uri: str, mode: int = 0o644) -> TransferContext | None:
        handle = self._open(uri, os.O_CREAT | os.O_WRONLY | os.O_TRUNC)
        # файл создаётся пустым
        handle.write(b"")
        return handle

    @_vio_call(-1)
    def close(self, handle: TransferContext) -> int:
        _expect(handle, TransferContext).close()
        return 0

    @_vio_call(None)
    def read(self, handle: TransferContext, count: int) -> bytes | None:
        return _expect(handle, TransferContext).read(count)

    @_vio_call(-1)
    def write(self, handle: TransferContext, data: bytes) -> int:
        return _expect(handle, TransferContext).write(data)

    @_vio_call(-1)
    def lseek(self, handle: TransferContext, offset: int, whence: int = os.SEEK_SET) -> int:
        raise DavError(DavErrno.INVALID_ARGUMENT, "seeking is not supported")

    # --- Каталоги ---

    @_vio_call(None)
    def opendir(self, uri: str) -> Catalog | None:
        logger.debug("opendir {}", uri)
        path = self._connect(uri)
        # новый листинг сбрасывает кэш stat
        self.stat_cache.invalidate()
        return fetch_resource_list(self.session, path, DEPTH_ONE, include_target=False)

    @_vio_call(None)
    def readdir(self, handle: Catalog) -> FileStat | None:
        res = _expect(handle, Catalog).next()
        if res is None:
            return None
        st = FileStat.from_resource(res)
        self.stat_cache.put(st)
        return st

    @_vio_call(-1)
    def closedir(self, handle: Catalog) -> int:
        _expect(handle, Catalog).close()
        return 0

    @_vio_call(-1)
    def mkdir(self, uri: str, mode: int = 0o755) -> int:
        path = collection_path(self._connect(uri))
        logger.debug("MKCOL on {}", path)
        _check(self.session.mkcol(path), f"MKCOL {path}")
        return 0

    def _delete(self, uri: str) -> int:
        path = self._connect(uri)
        self.stat_cache.invalidate(basename(uri))
        _check(self.session.delete(path), f"DELETE {path}")
        return 0

    @_vio_call(-1)
    def rmdir(self, uri: str) -> int:
        return self._delete(uri)

    @_vio_call(-1)
    def unlink(self, uri: str) -> int:
        return self._delete(uri)

    # --- Метаданные и пространство имён ---

    def _stat(self, uri: str) -> FileStat:
        name = basename(uri)
        cached = self.stat_cache.get(name)
        if cached is not None:
            logger.debug("stat {} answered from cache", name)
            return cached

        path = self._connect(uri)
        catalog = fetch_resource_list(self.session, path, DEPTH_ONE, include_target=True)
        try:
            wanted = decode_path(path).rstrip("/")
            res = next((r for r in catalog if r.uri.rstrip("/") == wanted), None)
            if res is None and len(catalog):
                res = catalog.entries[0]
        finally:
            catalog.close()

        if res is None:
            raise DavError(DavErrno.NOT_FOUND, f"{uri} not found")
        st = replace(FileStat.from_resource(res), name=name)
        logger.debug("STAT result: {} type={}", st.name, st.type.value)
        return st

    @_vio_call(None)
    def stat(self, uri: str) -> FileStat | None:
        return self._stat(uri)

    @_vio_call(-1)
    def rename(self, olduri: str, newuri: str) -> int:
        src = self._connect(olduri)
        _, dst = self._resolve(newuri)
        self.stat_cache.invalidate(basename(olduri))
        self.stat_cache.invalidate(basename(newuri))
        logger.debug("MOVE: {} => {}", src, dst)
        _check(self.session.move(src, dst, overwrite=True), f"MOVE {src}")
        return 0

    def chmod(self, uri: str, mode: int) -> int:
        return 0

    def chown(self, uri: str, owner: int, group: int) -> int:
        return 0

    @_vio_call(-1)
    def utimes(self, uri: str, times: Any) -> int:
        """times — (atime, mtime) как в os.utime или одно число (mtime)."""
        if times is None:
            raise DavError(DavErrno.INVALID_ARGUMENT, "times must not be None")
        if isinstance(times, Real):
            mtime = times
        else:
            try:
                _, mtime = times
            except (TypeError, ValueError) as e:
                raise DavError(DavErrno.INVALID_ARGUMENT, f"bad times value {times!r}") from e

        path = self._connect(uri)
        value = str(int(mtime))
        logger.debug("Setting LastModified of {} to {}", path, value)
        _check(self.session.proppatch(path, {"lastmodified": value}), f"PROPPATCH {path}")
        return 0
