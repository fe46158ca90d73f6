"""
davstore — файловый адаптер поверх WebDAV.

Назначение:
- дать движку синхронизации тот же набор операций, что и у локальной ФС
  (open/read/write/close, opendir/readdir, stat, mkdir/rmdir, rename, unlink, utimes)
- спрятать HTTP/WebDAV за единым транспортом (net)
- свести ошибки транспорта к небольшой POSIX-подобной таксономии (errors/status)
"""

from loguru import logger

from davstore.errors import DavErrno, DavError
from davstore.filestore import DavFileStore, FileStat, FileStore
from davstore.runtime import Settings, load_settings, module_init, module_shutdown

logger.disable("davstore")

__all__ = [
    "DavErrno",
    "DavError",
    "DavFileStore",
    "FileStat",
    "FileStore",
    "Settings",
    "load_settings",
    "module_init",
    "module_shutdown",
]
