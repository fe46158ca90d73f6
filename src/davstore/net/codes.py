"""
codes — коды результата транспорта.

Значения повторяют коды классического WebDAV-клиента (OK=0, ERROR=1, ...),
чтобы их можно было логировать и сравнивать как числа.
"""

from __future__ import annotations

from enum import IntEnum


class TransportCode(IntEnum):
    OK = 0
    ERROR = 1  # ответ получен, но статус не 2xx
    LOOKUP = 2  # не удалось разрешить имя хоста
    AUTH = 3
    PROXYAUTH = 4
    CONNECT = 5
    TIMEOUT = 6
    FAILED = 7  # не удалось собрать запрос
    RETRY = 8
    REDIRECT = 9
