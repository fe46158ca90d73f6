import pytest

from davstore.filestore.dav import DavFileStore
from fakedav import BASE_URL, FakeDavServer, session_factory


@pytest.fixture
def server():
    return FakeDavServer()


@pytest.fixture
def tmpdir_path(tmp_path):
    d = tmp_path / "transfers"
    d.mkdir()
    return d


@pytest.fixture
def store(server, tmpdir_path):
    s = DavFileStore(BASE_URL, tmpdir=str(tmpdir_path), session_factory=session_factory(server))
    yield s
    s.shutdown()
