from wsgiref.util import setup_testing_defaults

import pytest

from promkit.static_server import static_file_server


class Recorder:
    def __init__(self):
        self.status = None
        self.headers = {}

    def __call__(self, status, headers, exc_info=None):
        self.status = status
        self.headers = dict(headers)
        return lambda data: None

    @property
    def code(self):
        return int(self.status.split()[0])


def make_environ(path, method="GET"):
    env = {}
    setup_testing_defaults(env)
    env["REQUEST_METHOD"] = method
    env["PATH_INFO"] = path
    env["QUERY_STRING"] = ""
    return env


@pytest.fixture
def site(tmp_path):
    for name in ("index.html", "test.js", "test.css", "test.png", "test.jpg", "test.gif"):
        (tmp_path / name).write_bytes(b"content")
    return tmp_path


@pytest.mark.parametrize(
    "path,content_type",
    [
        ("test.js", "application/javascript"),
        ("test.css", "text/css"),
        ("test.png", "image/png"),
        ("test.jpg", "image/jpeg"),
        ("test.gif", "image/gif"),
    ],
)
def test_content_types(site, path, content_type):
    rec = Recorder()
    body = b"".join(static_file_server(site)(make_environ("/" + path), rec))
    assert rec.code == 200
    assert rec.headers["Content-Type"] == content_type
    assert body == b"content"


def test_index_html_redirects_without_content_type(site):
    rec = Recorder()
    static_file_server(site)(make_environ("/index.html"), rec)
    assert rec.code == 301
    assert rec.headers["Location"] == "./"
    assert "Content-Type" not in rec.headers


def test_directory_serves_index(site):
    rec = Recorder()
    body = b"".join(static_file_server(site)(make_environ("/"), rec))
    assert rec.code == 200
    assert body == b"content"


def test_directory_without_slash_redirects(tmp_path):
    (tmp_path / "sub").mkdir()
    rec = Recorder()
    static_file_server(tmp_path)(make_environ("/sub"), rec)
    assert rec.code == 301
    assert rec.headers["Location"] == "sub/"


def test_directory_listing(tmp_path):
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "b.txt").write_text("b")
    (sub / "a").mkdir()
    rec = Recorder()
    body = b"".join(static_file_server(tmp_path)(make_environ("/sub/"), rec)).decode()
    assert rec.code == 200
    assert rec.headers["Content-Type"] == "text/html; charset=utf-8"
    assert body.index('<a href="a/">a/</a>') < body.index('<a href="b.txt">b.txt</a>')


def test_file_with_trailing_slash_redirects(site):
    rec = Recorder()
    static_file_server(site)(make_environ("/test.css/"), rec)
    assert rec.code == 301
    assert rec.headers["Location"] == "../test.css"


def test_missing_file(site):
    rec = Recorder()
    body = b"".join(static_file_server(site)(make_environ("/missing.js"), rec))
    assert rec.code == 404
    assert body == b"404 page not found\n"
    assert rec.headers["Content-Type"] == "text/plain; charset=utf-8"


def test_path_cannot_escape_root(tmp_path):
    root = tmp_path / "root"
    root.mkdir()
    (tmp_path / "outside.txt").write_text("private")
    rec = Recorder()
    static_file_server(root)(make_environ("/../outside.txt"), rec)
    assert rec.code == 404


def test_head_has_no_body(site):
    rec = Recorder()
    body = b"".join(static_file_server(site)(make_environ("/test.js", "HEAD"), rec))
    assert rec.code == 200
    assert rec.headers["Content-Length"] == "7"
    assert body == b""