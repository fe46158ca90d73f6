"""
url — разбор адресов WebDAV-ресурсов.

Задача:
- разобрать базовый URL (схема, хост, порт, userinfo, путь)
- привести "свои" схемы (owncloud://, ownclouds://, davs:// ...) к http/https
- получить экранированный путь запроса из URL или голого пути
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from urllib.parse import quote, unquote, urlsplit

from davstore.errors import DavErrno, DavError

_SECURE_SCHEMES = frozenset({"ownclouds", "davs", "webdavs", "https"})
_DEFAULT_PORTS = {"http": 80, "https": 443}

# Символы пути, которые не экранируются.
_PATH_SAFE = "/:@!$&'()*+,;=~-._"


@dataclass(frozen=True, slots=True)
class DavURI:
    """Разобранный адрес сервера."""

    scheme: str  # "http" | "https"
    host: str
    port: int
    path: str
    username: str | None = None
    password: str | None = None

    @property
    def origin(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        if _DEFAULT_PORTS.get(self.scheme) == self.port:
            return f"{self.scheme}://{host}"
        return f"{self.scheme}://{host}:{self.port}"


def map_scheme(scheme: str) -> str:
    """Защищённые варианты схем -> https, остальные -> http."""
    return "https" if (scheme or "").lower() in _SECURE_SCHEMES else "http"


def parse_uri(raw: str) -> DavURI:
    """Разбирает базовый URL. Без хоста поднимает DavError(IO_ERROR)."""
    if raw is None:
        raise DavError(DavErrno.IO_ERROR, "empty URI")
    try:
        parts = urlsplit(str(raw).strip())
        host = parts.hostname
        port = parts.port
    except ValueError as e:
        raise DavError(DavErrno.IO_ERROR, f"cannot parse URI {raw!r}: {e}") from e

    if not parts.scheme or not host:
        raise DavError(DavErrno.IO_ERROR, f"cannot parse URI {raw!r}")

    scheme = map_scheme(parts.scheme)
    username = unquote(parts.username) if parts.username is not None else None
    password = unquote(parts.password) if parts.password is not None else None

    return DavURI(
        scheme=scheme,
        host=host,
        port=port or _DEFAULT_PORTS[scheme],
        path=parts.path or "/",
        username=username or None,
        password=password,
    )


def has_scheme(raw: str) -> bool:
    return "://" in str(raw)


def split_url(raw: str) -> tuple[str, str]:
    """'scheme://netloc/путь' -> ('scheme://netloc', '/путь').

    Путь берётся как есть: '#' и '?' в имени ресурса не считаются
    фрагментом или запросом.
    """
    s = str(raw)
    scheme, sep, rest = s.partition("://")
    if not sep:
        return "", s
    slash = rest.find("/")
    if slash < 0:
        return s, "/"
    return f"{scheme}://{rest[:slash]}", rest[slash:]


def url_path(raw: str) -> str:
    """Путь из полного URL или сам голый путь."""
    return split_url(raw)[1]


def clean_path(raw: str) -> str:
    """Возвращает экранированный путь запроса.

    Принимает полный URL (берётся только путь) или голый путь.
    Путь считается неэкранированным: '%' превращается в '%25'.
    """
    s = url_path(raw)
    if not s.startswith("/"):
        s = "/" + s
    return quote(s, safe=_PATH_SAFE)


def decode_path(path: str) -> str:
    return unquote(path)


def same_path(a: str, b: str) -> bool:
    """Сравнение путей без учёта экранирования и завершающего '/'."""
    return unquote(a).rstrip("/") == unquote(b).rstrip("/")


def basename(path: str) -> str:
    """Последний сегмент пути (завершающий '/' игнорируется)."""
    stripped = url_path(path).rstrip("/")
    if not stripped:
        return "/"
    return posixpath.basename(stripped)


def dirname(raw: str) -> str:
    """Родительский путь или URL (без завершающего '/')."""
    prefix, path = split_url(raw)
    return prefix + (posixpath.dirname(path.rstrip("/")) or "/")


def collection_path(path: str) -> str:
    """MKCOL требует завершающий '/'."""
    return path if path.endswith("/") else path + "/"
