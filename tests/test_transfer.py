"""
TransferContext, временные файлы и однослотовый кэш stat.
"""

import os

import pytest

from davstore.errors import DavErrno, DavError
from davstore.filestore.statcache import StatCache
from davstore.filestore.tmp import TMP_PREFIX, make_tempfile, remove_tempfile
from davstore.filestore.transfer import TransferContext, TransferMode, mode_for_flags
from davstore.filestore.types import FileStat
from davstore.net.http import DavSession
from fakedav import BASE_URL, session_factory


@pytest.fixture
def session(server):
    s = DavSession(session_factory=session_factory(server))
    s.connect(BASE_URL)
    yield s
    s.close()


class TestModeForFlags:
    @pytest.mark.parametrize(
        "flags,mode",
        [
            (os.O_RDONLY, TransferMode.READ),
            (os.O_WRONLY, TransferMode.WRITE),
            (os.O_RDWR, TransferMode.WRITE),
            (os.O_CREAT, TransferMode.WRITE),
            (os.O_WRONLY | os.O_CREAT | os.O_TRUNC, TransferMode.WRITE),
        ],
    )
    def test_flags(self, flags, mode):
        assert mode_for_flags(flags) is mode


class TestTransferContext:
    def test_upload_as_context_manager(self, server, session, tmpdir_path):
        with TransferContext.open(session, "t.txt", "/dav/t.txt", TransferMode.WRITE, tmpdir=str(tmpdir_path)) as ctx:
            ctx.write(b"abc")
            assert ctx.pending.method == "PUT"
        assert ctx.closed
        assert ctx.bytes_transferred == 3
        assert server.files["/dav/t.txt"] == b"abc"
        assert list(tmpdir_path.iterdir()) == []

    def test_download_happens_on_open(self, server, session, tmpdir_path):
        server.add_file("/dav/t.txt", b"hello")
        ctx = TransferContext.open(session, "t.txt", "/dav/t.txt", TransferMode.READ, tmpdir=str(tmpdir_path))
        assert server.requests == [("GET", "/dav/t.txt")]
        assert os.path.basename(ctx.tmp_path).startswith(TMP_PREFIX)
        assert ctx.read(100) == b"hello"
        ctx.close()
        assert not os.path.exists(ctx.tmp_path)

    def test_write_after_close(self, session, tmpdir_path):
        ctx = TransferContext.open(session, "t.txt", "/dav/t.txt", TransferMode.WRITE, tmpdir=str(tmpdir_path))
        ctx.close()
        with pytest.raises(DavError) as exc:
            ctx.write(b"late")
        assert exc.value.errno == DavErrno.IO_ERROR

    def test_double_close(self, session, tmpdir_path):
        ctx = TransferContext.open(session, "t.txt", "/dav/t.txt", TransferMode.WRITE, tmpdir=str(tmpdir_path))
        ctx.close()
        with pytest.raises(DavError) as exc:
            ctx.close()
        assert exc.value.errno == DavErrno.INVALID_ARGUMENT

    def test_read_on_write_handle(self, session, tmpdir_path):
        ctx = TransferContext.open(session, "t.txt", "/dav/t.txt", TransferMode.WRITE, tmpdir=str(tmpdir_path))
        with pytest.raises(DavError):
            ctx.read(10)
        ctx.close()

    def test_failed_download_leaves_nothing(self, server, session, tmpdir_path):
        server.mkdirs("/dav/dir")
        with pytest.raises(DavError) as exc:
            TransferContext.open(session, "dir", "/dav/dir", TransferMode.READ, tmpdir=str(tmpdir_path))
        assert exc.value.errno == DavErrno.INVALID_REQUEST
        assert list(tmpdir_path.iterdir()) == []

    def test_missing_tmpdir(self, session, tmp_path):
        with pytest.raises(DavError) as exc:
            TransferContext.open(session, "t.txt", "/dav/t.txt", TransferMode.WRITE, tmpdir=str(tmp_path / "absent"))
        assert exc.value.errno == DavErrno.NOT_FOUND


class TestTempFiles:
    def test_unique_names(self, tmp_path):
        fd1, p1 = make_tempfile(str(tmp_path))
        fd2, p2 = make_tempfile(str(tmp_path))
        os.close(fd1)
        os.close(fd2)
        assert p1 != p2
        remove_tempfile(p1)
        remove_tempfile(p2)
        assert list(tmp_path.iterdir()) == []

    def test_remove_missing_is_quiet(self, tmp_path):
        remove_tempfile(str(tmp_path / "gone"))
        remove_tempfile(None)


class TestStatCache:
    def test_single_slot(self):
        cache = StatCache()
        a, b = FileStat(name="a"), FileStat(name="b")
        cache.put(a)
        cache.put(b)
        assert cache.get("a") is None
        assert cache.get("b") is b

    def test_invalidate_by_name(self):
        cache = StatCache()
        cache.put(FileStat(name="a"))
        cache.invalidate("b")
        assert cache.get("a") is not None
        cache.invalidate("a")
        assert cache.get("a") is None

    def test_invalidate_all(self):
        cache = StatCache()
        cache.put(FileStat(name="a"))
        cache.invalidate()
        assert cache.entry is None
