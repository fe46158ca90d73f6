"""
http — одна WebDAV-сессия поверх requests.

Ключевые детали:
- connect() идемпотентен: дешёво вызывать перед каждой операцией
- каждый запрос возвращает DavResult и не бросает исключений транспорта,
  последний код и текст ошибки сохраняются в сессии (last_code/last_error)
- текст ошибки для HTTP-статуса имеет вид "404 Not Found", чтобы статус
  можно было извлечь из него (status.errno_from_session_error)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import IO, Any, Callable
from xml.etree.ElementTree import ParseError

import requests
import urllib3.exceptions
from loguru import logger

from davstore.errors import DavErrno, DavError
from davstore.net.auth import ChallengeAuth
from davstore.net.codes import TransportCode
from davstore.net.propfind import (
    LISTING_PROPS,
    PropEntry,
    build_propfind_body,
    build_proppatch_body,
    parse_multistatus,
    proppatch_failures,
)
from davstore.net.url import DavURI, parse_uri
from davstore.secrets.base import AuthCallback, CredentialProvider
from davstore.secrets.callback import CallbackCredentialProvider, ChainedCredentialProvider, StaticCredentialProvider

DEFAULT_TIMEOUT = 30
CHUNK_SIZE = 64 * 1024
XML_CONTENT_TYPE = 'application/xml; charset="utf-8"'


@dataclass(frozen=True)
class DavResult:
    """
    Результат одного запроса к серверу.
    """
    code: TransportCode
    status_code: int | None = None
    error: str | None = None
    entries: list[PropEntry] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.code == TransportCode.OK


def _code_for_status(status: int) -> TransportCode:
    if 200 <= status < 300:
        return TransportCode.OK
    if status == 401:
        return TransportCode.AUTH
    if status == 407:
        return TransportCode.PROXYAUTH
    if 300 <= status < 400:
        return TransportCode.REDIRECT
    return TransportCode.ERROR


def _is_lookup_failure(exc: BaseException) -> bool:
    """Ищет NameResolutionError в цепочке причин ConnectionError."""
    seen: set[int] = set()
    stack: list[Any] = [exc]
    while stack:
        cur = stack.pop()
        if cur is None or id(cur) in seen:
            continue
        seen.add(id(cur))
        if isinstance(cur, urllib3.exceptions.NameResolutionError):
            return True
        if isinstance(cur, BaseException):
            stack.extend(cur.args)
            stack.append(cur.__cause__)
            stack.append(cur.__context__)
        stack.append(getattr(cur, "reason", None))
    return False


def _code_for_exception(exc: requests.RequestException) -> TransportCode:
    if isinstance(exc, requests.Timeout):
        return TransportCode.TIMEOUT
    if isinstance(exc, (requests.exceptions.RetryError, requests.exceptions.ChunkedEncodingError)):
        return TransportCode.RETRY
    if isinstance(exc, requests.ConnectionError):
        if _is_lookup_failure(exc):
            return TransportCode.LOOKUP
        return TransportCode.CONNECT
    if isinstance(exc, (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema,
                        requests.exceptions.InvalidSchema, requests.exceptions.InvalidHeader)):
        return TransportCode.FAILED
    return TransportCode.ERROR


class DavSession:
    """Сессия к одному WebDAV-серверу."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = "davstore",
        username: str | None = None,
        password: str | None = None,
        auth_callback: AuthCallback | None = None,
        userdata: Any = None,
        verify: bool = True,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self.verify = verify
        self._session_factory = session_factory
        self._static = StaticCredentialProvider(username, password)
        self._callback = CallbackCredentialProvider(auth_callback, userdata) if auth_callback else None

        self.uri: DavURI | None = None
        self.http: requests.Session | None = None
        self.auth: ChallengeAuth | None = None
        self.connected = False
        self.last_code = TransportCode.OK
        self.last_error: str | None = None

    # --- Соединение ---

    def connect(self, base_uri: str) -> None:
        """Устанавливает сессию (один раз). Ошибка разбора/создания -> DavError(IO_ERROR)."""
        if self.connected:
            return

        uri = parse_uri(base_uri)
        logger.debug("Connecting: scheme={} host={} port={} path={}", uri.scheme, uri.host, uri.port, uri.path)

        # userinfo из URL перекрывает данные, переданные извне
        if uri.username:
            self._static = StaticCredentialProvider(uri.username, uri.password)
        logger.debug("User: {}", self._static.username or "")

        try:
            http = self._session_factory()
        except Exception as e:
            raise DavError(DavErrno.IO_ERROR, f"cannot create HTTP session: {e}") from e

        provider: CredentialProvider = ChainedCredentialProvider(self._static, self._callback)
        self.auth = ChallengeAuth(provider)
        http.auth = self.auth
        http.headers["User-Agent"] = self.user_agent
        http.verify = self.verify

        self.uri = uri
        self.http = http
        self.connected = True

    def close(self) -> None:
        """Освобождает соединение и учётные данные."""
        if self.http is not None:
            self.http.close()
        if self.auth is not None:
            self.auth.forget()
        self._static.clear()
        self.http = None
        self.auth = None
        self.uri = None
        self.connected = False

    def url(self, path: str) -> str:
        if self.uri is None:
            raise DavError(DavErrno.IO_ERROR, "session is not connected")
        return self.uri.origin + path

    # --- Низкоуровневый запрос ---

    def _record(self, code: TransportCode, status: int | None, error: str | None, entries=None) -> DavResult:
        self.last_code = code
        self.last_error = error
        if code != TransportCode.OK:
            logger.debug("Request failed: code={} status={} error={}", code.name, status, error)
        return DavResult(code=code, status_code=status, error=error, entries=entries or [])

    def _from_response(self, r: requests.Response) -> DavResult:
        code = _code_for_status(r.status_code)
        error = None if code == TransportCode.OK else f"{r.status_code} {r.reason or ''}".strip()
        return self._record(code, r.status_code, error)

    def _send(self, prep: requests.PreparedRequest, *, stream: bool = False) -> requests.Response | DavResult:
        if self.http is None:
            return self._record(TransportCode.FAILED, None, "session is not connected")
        try:
            return self.http.send(prep, timeout=self.timeout, allow_redirects=False, stream=stream)
        except requests.RequestException as e:
            return self._record(_code_for_exception(e), None, f"{type(e).__name__}: {e}")

    def _request(self, method: str, path: str, *, headers=None, data=None, stream: bool = False):
        if self.http is None:
            return self._record(TransportCode.FAILED, None, "session is not connected")
        logger.debug("{} {}", method, path)
        try:
            prep = self.http.prepare_request(requests.Request(method, self.url(path), headers=headers, data=data))
        except (requests.RequestException, ValueError) as e:
            return self._record(TransportCode.FAILED, None, f"{type(e).__name__}: {e}")
        return self._send(prep, stream=stream)

    def _simple(self, method: str, path: str, **kwargs) -> DavResult:
        r = self._request(method, path, **kwargs)
        if isinstance(r, DavResult):
            return r
        with r:
            return self._from_response(r)

    # --- Примитивы WebDAV ---

    def propfind(self, path: str, depth: int | str = 1, props=LISTING_PROPS) -> DavResult:
        headers = {"Depth": str(depth), "Content-Type": XML_CONTENT_TYPE}
        r = self._request("PROPFIND", path, headers=headers, data=build_propfind_body(props))
        if isinstance(r, DavResult):
            return r
        with r:
            if r.status_code != 207:
                # 2xx без multistatus для листинга тоже ошибка
                code = _code_for_status(r.status_code)
                if code == TransportCode.OK:
                    code = TransportCode.ERROR
                return self._record(code, r.status_code, f"{r.status_code} {r.reason or ''}".strip())
            try:
                entries = parse_multistatus(r.content)
            except ParseError as e:
                return self._record(TransportCode.ERROR, r.status_code, f"Invalid multistatus body: {e}")
        return self._record(TransportCode.OK, r.status_code, None, entries)

    def get(self, path: str, fileobj: IO[bytes]) -> DavResult:
        """Скачивает тело ответа в локальный файл потоком."""
        r = self._request("GET", path, stream=True)
        if isinstance(r, DavResult):
            return r
        with r:
            result = self._from_response(r)
            if not result.ok:
                return result
            try:
                for chunk in r.iter_content(CHUNK_SIZE):
                    fileobj.write(chunk)
            except requests.RequestException as e:
                return self._record(_code_for_exception(e), r.status_code, f"{type(e).__name__}: {e}")
        return result

    def new_request(self, method: str, path: str, headers: dict[str, str] | None = None) -> requests.Request:
        """Создаёт запрос, который будет отправлен позже (dispatch)."""
        return requests.Request(method, self.url(path), headers=dict(headers or {}))

    def dispatch(self, request: requests.Request, body: IO[bytes] | bytes | None = None, length: int | None = None) -> DavResult:
        if self.http is None:
            return self._record(TransportCode.FAILED, None, "session is not connected")
        request.data = body if body is not None else b""
        if length is not None:
            request.headers["Content-Length"] = str(length)
        logger.debug("{} {} ({} bytes)", request.method, request.url, length)
        try:
            prep = self.http.prepare_request(request)
        except (requests.RequestException, ValueError) as e:
            return self._record(TransportCode.FAILED, None, f"{type(e).__name__}: {e}")
        r = self._send(prep)
        if isinstance(r, DavResult):
            return r
        with r:
            return self._from_response(r)

    def delete(self, path: str) -> DavResult:
        return self._simple("DELETE", path)

    def mkcol(self, path: str) -> DavResult:
        return self._simple("MKCOL", path)

    def move(self, src: str, dst: str, overwrite: bool = True) -> DavResult:
        headers = {"Destination": self.url(dst), "Overwrite": "T" if overwrite else "F"}
        return self._simple("MOVE", src, headers=headers)

    def proppatch(self, path: str, values: dict[str, str]) -> DavResult:
        headers = {"Content-Type": XML_CONTENT_TYPE}
        r = self._request("PROPPATCH", path, headers=headers, data=build_proppatch_body(values))
        if isinstance(r, DavResult):
            return r
        with r:
            result = self._from_response(r)
            if not result.ok or r.status_code != 207:
                return result
            try:
                bad = proppatch_failures(r.content)
            except ParseError as e:
                return self._record(TransportCode.ERROR, r.status_code, f"Invalid multistatus body: {e}")
        if bad:
            return self._record(TransportCode.ERROR, bad[0], f"{bad[0]} PROPPATCH failed")
        return result
