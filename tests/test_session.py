"""
DavSession: соединение, коды транспорта, ошибки сети.
"""

import pytest
import requests
import urllib3.exceptions
from requests.adapters import BaseAdapter

from davstore.errors import DavErrno, DavError
from davstore.filestore.dav import DavFileStore
from davstore.net.codes import TransportCode
from davstore.net.http import DavSession, _code_for_status
from davstore.status import failure_errno
from fakedav import BASE_URL, session_factory


class RaisingAdapter(BaseAdapter):
    """Транспорт, который падает с заданным исключением."""

    def __init__(self, exc):
        super().__init__()
        self.exc = exc
        self.calls = 0

    def send(self, request, **kwargs):
        self.calls += 1
        raise self.exc

    def close(self):
        pass


def _lookup_error():
    reason = urllib3.exceptions.NameResolutionError("dav.example.com", None, OSError("Name or service not known"))
    return requests.ConnectionError(urllib3.exceptions.MaxRetryError(None, "/dav", reason))


class TestConnect:
    def test_connect_is_idempotent(self, server):
        made = []

        def factory():
            made.append(1)
            return session_factory(server)()

        s = DavSession(session_factory=factory)
        s.connect(BASE_URL)
        s.connect(BASE_URL)
        assert len(made) == 1
        assert s.uri.scheme == "http"
        assert s.url("/dav/a") == "http://dav.example.com/dav/a"

    def test_secure_scheme(self, server):
        s = DavSession(session_factory=session_factory(server))
        s.connect("ownclouds://dav.example.com:8443/dav")
        assert s.url("/x") == "https://dav.example.com:8443/x"

    def test_session_settings(self, server):
        s = DavSession(user_agent="engine/1.0", verify=False, session_factory=session_factory(server))
        s.connect(BASE_URL)
        assert s.http.headers["User-Agent"] == "engine/1.0"
        assert s.http.verify is False

    @pytest.mark.parametrize("raw", ["not a url", "owncloud://", "http://host:port/"])
    def test_bad_uri(self, raw):
        s = DavSession()
        with pytest.raises(DavError) as exc:
            s.connect(raw)
        assert exc.value.errno == DavErrno.IO_ERROR
        assert not s.connected

    def test_factory_failure(self):
        def factory():
            raise RuntimeError("no sessions today")

        s = DavSession(session_factory=factory)
        with pytest.raises(DavError) as exc:
            s.connect(BASE_URL)
        assert exc.value.errno == DavErrno.IO_ERROR
        assert not s.connected

    def test_url_requires_connection(self):
        with pytest.raises(DavError):
            DavSession().url("/x")

    def test_requests_before_connect_fail(self):
        result = DavSession().delete("/x")
        assert result.code == TransportCode.FAILED

    def test_close_resets(self, server):
        s = DavSession(username="u", password="p", session_factory=session_factory(server))
        s.connect(BASE_URL)
        s.close()
        assert not s.connected
        assert s.http is None
        assert s.uri is None


class TestStoreConnect:
    def test_no_base_url(self, tmpdir_path):
        store = DavFileStore(None, tmpdir=str(tmpdir_path))
        assert store.opendir("/x") is None
        assert store.errno == DavErrno.IO_ERROR
        assert not store.session.connected

    def test_unparsable_uri(self, tmpdir_path):
        store = DavFileStore(None, tmpdir=str(tmpdir_path))
        assert store.stat("owncloud:///no-host") is None
        assert store.errno == DavErrno.IO_ERROR

    def test_shutdown_then_reconnect(self, server, store):
        assert store.listdir("/") == []
        store.shutdown()
        assert not store.session.connected
        assert store.listdir("/") == []
        assert store.session.connected


class TestTransportFailures:
    def _session(self, exc):
        adapter = RaisingAdapter(exc)

        def factory():
            s = requests.Session()
            s.mount("http://", adapter)
            s.mount("https://", adapter)
            return s

        s = DavSession(session_factory=factory)
        s.connect(BASE_URL)
        return s

    @pytest.mark.parametrize(
        "exc,code,errno",
        [
            (requests.Timeout("slow"), TransportCode.TIMEOUT, DavErrno.RETRY_LATER),
            (requests.ConnectionError("refused"), TransportCode.CONNECT, DavErrno.RETRY_LATER),
            (requests.exceptions.ChunkedEncodingError("cut"), TransportCode.RETRY, DavErrno.RETRY_LATER),
            (requests.exceptions.InvalidURL("bad"), TransportCode.FAILED, DavErrno.INVALID_REQUEST),
            (requests.RequestException("other"), TransportCode.ERROR, DavErrno.IO_ERROR),
        ],
    )
    def test_exception_codes(self, exc, code, errno):
        s = self._session(exc)
        result = s.propfind("/dav")
        assert result.code == code
        assert s.last_code == code
        assert failure_errno(result.code, result.error) == errno

    def test_lookup_failure(self):
        s = self._session(_lookup_error())
        result = s.mkcol("/dav/x/")
        assert result.code == TransportCode.LOOKUP
        assert failure_errno(result.code, result.error) == DavErrno.IO_ERROR

    def test_no_automatic_retry(self, tmpdir_path):
        adapter = RaisingAdapter(requests.Timeout("slow"))

        def factory():
            s = requests.Session()
            s.mount("http://", adapter)
            return s

        store = DavFileStore(BASE_URL, tmpdir=str(tmpdir_path), session_factory=factory)
        assert store.opendir("/") is None
        assert store.errno == DavErrno.RETRY_LATER
        assert adapter.calls == 1


class TestResponses:
    @pytest.mark.parametrize(
        "status,code",
        [(200, TransportCode.OK), (207, TransportCode.OK), (301, TransportCode.REDIRECT),
         (401, TransportCode.AUTH), (407, TransportCode.PROXYAUTH), (404, TransportCode.ERROR),
         (500, TransportCode.ERROR)],
    )
    def test_code_for_status(self, status, code):
        assert _code_for_status(status) == code

    def test_error_text_carries_status(self, server):
        s = DavSession(session_factory=session_factory(server))
        s.connect(BASE_URL)
        result = s.delete("/dav/missing")
        assert not result.ok
        assert result.status_code == 404
        assert s.last_error == "404 Not Found"

    def test_propfind_without_multistatus(self, server):
        server.force("PROPFIND", "/dav", 200)
        s = DavSession(session_factory=session_factory(server))
        s.connect(BASE_URL)
        result = s.propfind("/dav")
        assert result.code == TransportCode.ERROR
        assert failure_errno(result.code, result.error) == DavErrno.IO_ERROR

    def test_redirect_not_followed(self, server):
        server.force("PROPFIND", "/dav/moved", 301)
        s = DavSession(session_factory=session_factory(server))
        s.connect(BASE_URL)
        result = s.propfind("/dav/moved")
        assert result.code == TransportCode.REDIRECT
        assert failure_errno(result.code, result.error) == DavErrno.NOT_FOUND
        assert server.request_count == 1

    def test_move_headers(self, server):
        server.add_file("/dav/a", b"x")
        server.add_file("/dav/b", b"y")
        s = DavSession(session_factory=session_factory(server))
        s.connect(BASE_URL)
        result = s.move("/dav/a", "/dav/b", overwrite=False)
        assert result.status_code == 412
        assert failure_errno(result.code, result.error) == DavErrno.INVALID_REQUEST
