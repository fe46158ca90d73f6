"""
types — типы для FileStore.

Назначение:
- Resource: одна запись листинга коллекции на сервере
- FileStat: метаданные в форме, привычной движку синхронизации (как stat)

Принцип:
- права доступа WebDAV не передаёт, они синтезируются из типа ресурса
"""

from __future__ import annotations

import stat as _stat
from dataclasses import dataclass
from enum import Enum, IntEnum, IntFlag


class ResourceKind(IntEnum):
    NORMAL = 0
    COLLECTION = 1
    REFERENCE = 2
    ERROR = 3


class FileType(Enum):
    UNKNOWN = "unknown"
    REGULAR = "regular"
    DIRECTORY = "directory"


class StatFields(IntFlag):
    """Какие поля FileStat заполнены."""

    NONE = 0
    TYPE = 1
    SIZE = 2
    MTIME = 4
    PERMISSIONS = 8


DIR_MODE = _stat.S_IFDIR | 0o755  # rwx для владельца, rx для группы и остальных
FILE_MODE = _stat.S_IFREG | 0o644  # rw для владельца, r для группы и остальных


def synth_mode(file_type: FileType) -> int:
    """Права по типу ресурса (сервер не источник истины для прав)."""
    return DIR_MODE if file_type is FileType.DIRECTORY else FILE_MODE


@dataclass(frozen=True, slots=True)
class Resource:
    """Запись листинга. uri — декодированный путь, name — последний сегмент."""

    uri: str
    name: str
    kind: ResourceKind = ResourceKind.NORMAL
    size: int = 0
    mtime: int | None = None
    content_type: str | None = None


@dataclass(frozen=True, slots=True)
class FileStat:
    """Метаданные файла/каталога.

    Поля, которые не удалось определить, не отмечены во fields.
    """

    name: str
    type: FileType = FileType.UNKNOWN
    size: int = 0
    mtime: int | None = None
    mode: int = FILE_MODE
    fields: StatFields = StatFields.NONE

    @property
    def is_dir(self) -> bool:
        return self.type is FileType.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.type is FileType.REGULAR

    @classmethod
    def from_resource(cls, res: Resource) -> "FileStat":
        fields = StatFields.SIZE | StatFields.PERMISSIONS
        if res.kind is ResourceKind.NORMAL:
            ftype = FileType.REGULAR
            fields |= StatFields.TYPE
        elif res.kind is ResourceKind.COLLECTION:
            ftype = FileType.DIRECTORY
            fields |= StatFields.TYPE
        else:
            ftype = FileType.UNKNOWN
        if res.mtime is not None:
            fields |= StatFields.MTIME
        return cls(
            name=res.name,
            type=ftype,
            size=res.size,
            mtime=res.mtime,
            mode=synth_mode(ftype),
            fields=fields,
        )
