"""
statcache — однослотовый кэш последнего результата readdir.

Движок синхронизации обычно вызывает stat сразу после readdir на ту же запись:
в этом случае ответ берётся из кэша без HTTP-запроса.

Кэш — подсказка, а не источник истины:
- перезаписывается каждым шагом readdir
- сбрасывается новым листингом (opendir)
- сбрасывается rename/unlink/rmdir записи с тем же именем
"""

from __future__ import annotations

from davstore.filestore.types import FileStat


class StatCache:
    def __init__(self):
        self.entry: FileStat | None = None

    def put(self, st: FileStat) -> None:
        self.entry = st

    def get(self, name: str) -> FileStat | None:
        if self.entry is not None and self.entry.name == name:
            return self.entry
        return None

    def invalidate(self, name: str | None = None) -> None:
        """Без имени — сброс всегда, с именем — только при совпадении."""
        if name is None or (self.entry is not None and self.entry.name == name):
            self.entry = None
