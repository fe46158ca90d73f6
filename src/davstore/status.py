"""
status — перевод кодов транспорта и HTTP-статусов в DavErrno.

Два входа:
- HTTP-статус (обычно ведущее число в тексте последней ошибки сессии)
- код результата транспорта (TransportCode)

Все функции чистые: одинаковый вход всегда даёт одинаковый код.
"""

from __future__ import annotations

import re

from davstore.errors import DavErrno
from davstore.net.codes import TransportCode

_SUCCESS_STATUSES = frozenset({200, 201, 202, 203, 204, 205, 207, 304})

_STATUS_TABLE: dict[int, DavErrno] = {
    401: DavErrno.PERMISSION_DENIED,
    402: DavErrno.PERMISSION_DENIED,
    407: DavErrno.PERMISSION_DENIED,
    301: DavErrno.NOT_FOUND,
    303: DavErrno.NOT_FOUND,
    404: DavErrno.NOT_FOUND,
    410: DavErrno.NOT_FOUND,
    408: DavErrno.RETRY_LATER,
    504: DavErrno.RETRY_LATER,
    423: DavErrno.ACCESS_DENIED,
    400: DavErrno.INVALID_REQUEST,
    403: DavErrno.INVALID_REQUEST,
    405: DavErrno.INVALID_REQUEST,
    409: DavErrno.INVALID_REQUEST,
    411: DavErrno.INVALID_REQUEST,
    412: DavErrno.INVALID_REQUEST,
    414: DavErrno.INVALID_REQUEST,
    415: DavErrno.INVALID_REQUEST,
    424: DavErrno.INVALID_REQUEST,
    501: DavErrno.INVALID_REQUEST,
    413: DavErrno.OUT_OF_SPACE,
    507: DavErrno.OUT_OF_SPACE,
}

_TRANSPORT_TABLE: dict[TransportCode, DavErrno] = {
    TransportCode.OK: DavErrno.SUCCESS,
    # Унаследованное поведение: "общая ошибка" этой таблицей считается успехом.
    # translate() разрешает её через текст ошибки сессии.
    TransportCode.ERROR: DavErrno.SUCCESS,
    TransportCode.AUTH: DavErrno.ACCESS_DENIED,
    TransportCode.PROXYAUTH: DavErrno.ACCESS_DENIED,
    TransportCode.CONNECT: DavErrno.RETRY_LATER,
    TransportCode.TIMEOUT: DavErrno.RETRY_LATER,
    TransportCode.RETRY: DavErrno.RETRY_LATER,
    TransportCode.FAILED: DavErrno.INVALID_REQUEST,
    TransportCode.REDIRECT: DavErrno.NOT_FOUND,
    TransportCode.LOOKUP: DavErrno.IO_ERROR,
}

_AUTH_CODES = frozenset({TransportCode.AUTH, TransportCode.PROXYAUTH})

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def errno_from_status(status: int) -> DavErrno:
    """HTTP-статус -> DavErrno. Неизвестные статусы дают IO_ERROR."""
    if status in _SUCCESS_STATUSES:
        return DavErrno.SUCCESS
    return _STATUS_TABLE.get(status, DavErrno.IO_ERROR)


def errno_from_session_error(text: str | None) -> DavErrno:
    """Текст последней ошибки сессии ("404 Not Found") -> DavErrno."""
    m = _LEADING_INT.match(text or "")
    if not m:
        return DavErrno.IO_ERROR
    return errno_from_status(int(m.group(1)))


def errno_from_transport(code: int) -> DavErrno:
    """Код результата транспорта -> DavErrno."""
    try:
        key = TransportCode(code)
    except ValueError:
        return DavErrno.IO_ERROR
    return _TRANSPORT_TABLE.get(key, DavErrno.IO_ERROR)


def translate(code: int, last_error: str | None = None) -> DavErrno:
    """Единая точка перевода результата сетевой операции.

    ERROR неоднозначен (транспорт получил ответ, но не 2xx), поэтому
    для него код берётся из HTTP-статуса в тексте ошибки сессии.
    """
    if code == TransportCode.ERROR:
        return errno_from_session_error(last_error)
    return errno_from_transport(code)


def failure_errno(code: int, last_error: str | None = None, status: int | None = None) -> DavErrno:
    """translate() для заведомо неуспешной операции: SUCCESS заменяется на IO_ERROR.

    Если передан HTTP-статус ответа с отказом в аутентификации, код берётся
    из таблицы статусов: 401/407 на листинге дают PERMISSION_DENIED, а не
    ACCESS_DENIED. Остальные коды транспорта переводятся как обычно.
    """
    if status is not None and code in _AUTH_CODES:
        result = errno_from_status(status)
    else:
        result = translate(code, last_error)
    return DavErrno.IO_ERROR if result == DavErrno.SUCCESS else result
