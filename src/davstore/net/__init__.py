"""
net — сетевой слой davstore.

Назначение:
- разбор URL и экранирование путей (url)
- сборка и разбор XML-тел PROPFIND/PROPPATCH (propfind)
- одна сессия к одному WebDAV-серверу поверх requests (http)
"""

from davstore.net.codes import TransportCode
from davstore.net.http import DavResult, DavSession
from davstore.net.url import DavURI, clean_path, parse_uri

__all__ = [
    "TransportCode",
    "DavResult",
    "DavSession",
    "DavURI",
    "clean_path",
    "parse_uri",
]
