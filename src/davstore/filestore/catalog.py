"""
catalog — упорядоченный каталог ресурсов по результату PROPFIND.

Порядок записей (важно для движка синхронизации):
- сначала ERROR-записи, в порядке ответа сервера
- затем коллекции, по байтовому сравнению uri
- затем файлы (и REFERENCE), так же по uri
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass, field
from email.utils import parsedate_tz
from typing import Iterator

from loguru import logger

from davstore.errors import DavError
from davstore.filestore.types import Resource, ResourceKind
from davstore.net.http import DavSession
from davstore.net.propfind import LISTING_PROPS, PropEntry
from davstore.net.url import basename, decode_path, same_path, url_path
from davstore.status import failure_errno

_LENGTH_RE = re.compile(r"^\s*\+?(\d*)(.*)$", flags=re.DOTALL)

DEPTH_ONE = 1


def parse_content_length(raw: str | None) -> int:
    """Беззнаковое целое; хвост из не-цифр (или мусор) даёт 0."""
    if raw is None:
        return 0
    m = _LENGTH_RE.match(raw)
    digits, tail = m.group(1), m.group(2)
    if tail or not digits:
        return 0
    return int(digits)


def parse_http_date(raw: str | None) -> int | None:
    """RFC 1123 / RFC 850 / asctime -> секунды epoch (UTC). None при ошибке разбора."""
    if not raw:
        return None
    try:
        parsed = parsedate_tz(raw)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    offset = parsed[9] or 0
    try:
        return calendar.timegm(parsed[:6] + (0, 0, 0)) - offset
    except (OverflowError, ValueError):
        return None


def classify(entry: PropEntry) -> ResourceKind:
    if entry.status is not None:
        if 300 <= entry.status < 400:
            return ResourceKind.REFERENCE
        if not 200 <= entry.status < 300:
            return ResourceKind.ERROR
    elif not entry.propstat_ok:
        return ResourceKind.ERROR
    if entry.props.get("getcontentlength") is None and entry.collection:
        return ResourceKind.COLLECTION
    return ResourceKind.NORMAL


def to_resource(entry: PropEntry) -> Resource:
    path = decode_path(url_path(entry.href))
    kind = classify(entry)
    return Resource(
        uri=path,
        name=basename(path),
        kind=kind,
        size=parse_content_length(entry.props.get("getcontentlength")),
        mtime=parse_http_date(entry.props.get("getlastmodified")),
        content_type=entry.props.get("getcontenttype") or None,
    )


def _sort_key(res: Resource) -> tuple[int, bytes]:
    if res.kind is ResourceKind.ERROR:
        # порядок сервера сохраняется стабильной сортировкой
        return (0, b"")
    tier = 1 if res.kind is ResourceKind.COLLECTION else 2
    return (tier, res.uri.encode("utf-8", "surrogateescape"))


def order_resources(resources: list[Resource]) -> list[Resource]:
    return sorted(resources, key=_sort_key)


@dataclass
class Catalog:
    """Дескриптор каталога: упорядоченные записи и курсор итерации."""

    target: str
    entries: list[Resource] = field(default_factory=list)
    cursor: int | None = None
    closed: bool = False

    def __post_init__(self):
        if self.cursor is None and self.entries:
            self.cursor = 0

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self.entries)

    @property
    def exhausted(self) -> bool:
        return self.cursor is None or self.cursor >= len(self.entries)

    def next(self) -> Resource | None:
        """Возвращает следующую запись и сдвигает курсор; None в конце."""
        if self.closed or self.exhausted:
            return None
        res = self.entries[self.cursor]
        self.cursor += 1
        return res

    def close(self) -> None:
        self.entries = []
        self.cursor = None
        self.closed = True


def build_catalog(entries: list[PropEntry], target: str, include_target: bool = False) -> Catalog:
    """Из разобранного multistatus строит упорядоченный Catalog."""
    seen: set[str] = set()
    resources: list[Resource] = []
    for entry in entries:
        href_path = url_path(entry.href)
        if not include_target and same_path(href_path, target):
            logger.debug("Skipping target resource {}", href_path)
            continue
        res = to_resource(entry)
        if res.uri in seen:
            continue
        seen.add(res.uri)
        resources.append(res)
    return Catalog(target=target, entries=order_resources(resources))


def fetch_resource_list(
    session: DavSession,
    target: str,
    depth: int = DEPTH_ONE,
    include_target: bool = False,
) -> Catalog:
    """PROPFIND по target и сборка каталога. Ошибка -> DavError, частичного каталога нет."""
    result = session.propfind(target, depth=depth, props=LISTING_PROPS)
    if not result.ok:
        # статус ответа переводится по таблице HTTP, исключения транспорта по своей
        code = failure_errno(result.code, result.error, status=result.status_code)
        raise DavError(code, f"PROPFIND {target}: {result.error}")

    catalog = build_catalog(result.entries, target, include_target=include_target)
    logger.debug("Listing of {} returned {} entries", target, len(catalog))
    return catalog
