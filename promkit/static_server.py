"""Serving files from a directory over WSGI, with fixed content types for web assets."""

from __future__ import annotations

import html
import mimetypes
import os
import posixpath
from email.utils import formatdate
from http import HTTPStatus
from pathlib import Path
from typing import Callable, Iterable
from urllib.parse import quote

MIME_TYPES: dict[str, str] = {
    ".cjs": "application/javascript",
    ".css": "text/css",
    ".eot": "font/eot",
    ".gif": "image/gif",
    ".ico": "image/x-icon",
    ".jpg": "image/jpeg",
    ".js": "application/javascript",
    ".json": "application/json",
    ".less": "text/plain",
    ".map": "application/json",
    ".otf": "font/otf",
    ".png": "image/png",
    ".svg": "image/svg+xml",
    ".ttf": "font/ttf",
    ".txt": "text/plain",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
}

_INDEX_PAGE = "index.html"

StartResponse = Callable[..., object]


def _status(code: int) -> str:
    try:
        return f"{code} {HTTPStatus(code).phrase}"
    except ValueError:
        return f"{code} status code {code}"


def _clean(p: str) -> str:
    """Lexically clean a rooted slash-separated path."""
    cleaned = posixpath.normpath(p)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _ext(p: str) -> str:
    base = p.rsplit("/", 1)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def _respond(
    start_response: StartResponse,
    code: int,
    headers: dict[str, str],
    body: bytes = b"",
    *,
    head: bool = False,
) -> list[bytes]:
    start_response(_status(code), list(headers.items()))
    return [] if head else [body]


def _error(
    start_response: StartResponse, headers: dict[str, str], code: int, text: str
) -> list[bytes]:
    out = {k: v for k, v in headers.items() if k.lower() != "content-length"}
    out["Content-Type"] = "text/plain; charset=utf-8"
    out["X-Content-Type-Options"] = "nosniff"
    return _respond(start_response, code, out, (text + "\n").encode("utf-8"))


def _local_redirect(
    start_response: StartResponse, headers: dict[str, str], target: str, query: str
) -> list[bytes]:
    if query:
        target += "?" + query
    out = dict(headers)
    out["Location"] = target
    return _respond(start_response, 301, out)


def _content_type(name: str, data: bytes) -> str:
    guessed, _ = mimetypes.guess_type(name)
    if guessed:
        if guessed.startswith("text/"):
            return guessed + "; charset=utf-8"
        return guessed
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return "application/octet-stream"
    if "\x00" in text:
        return "application/octet-stream"
    return "text/plain; charset=utf-8"


def _send_file(
    start_response: StartResponse,
    headers: dict[str, str],
    target: Path,
    st: os.stat_result,
    head: bool,
) -> list[bytes]:
    try:
        data = target.read_bytes()
    except PermissionError:
        return _error(start_response, headers, 403, "403 Forbidden")
    except OSError:
        return _error(start_response, headers, 500, "500 Internal Server Error")
    out = dict(headers)
    if "Content-Type" not in out:
        out["Content-Type"] = _content_type(target.name, data)
    out["Last-Modified"] = formatdate(st.st_mtime, usegmt=True)
    out["Content-Length"] = str(len(data))
    return _respond(start_response, 200, out, data, head=head)


def _list_directory(
    start_response: StartResponse, headers: dict[str, str], target: Path, head: bool
) -> list[bytes]:
    try:
        entries = sorted(target.iterdir(), key=lambda entry: entry.name)
    except OSError:
        return _error(start_response, headers, 500, "Error reading directory")
    lines = [
        "<!doctype html>",
        '<meta name="viewport" content="width=device-width">',
        "<pre>",
    ]
    for entry in entries:
        name = entry.name + ("/" if entry.is_dir() else "")
        lines.append(f'<a href="{html.escape(quote(name))}">{html.escape(name)}</a>')
    lines.append("</pre>")
    out = dict(headers)
    out["Content-Type"] = "text/html; charset=utf-8"
    return _respond(
        start_response, 200, out, ("\n".join(lines) + "\n").encode("utf-8"), head=head
    )


def _serve(
    root: str | os.PathLike,
    environ: dict,
    start_response: StartResponse,
    headers: dict[str, str],
) -> list[bytes]:
    """Serve the file or directory named by PATH_INFO below root."""
    upath = environ.get("PATH_INFO") or "/"
    if not upath.startswith("/"):
        upath = "/" + upath
    query = environ.get("QUERY_STRING", "")
    head = environ.get("REQUEST_METHOD", "GET").upper() == "HEAD"

    if upath.endswith("/" + _INDEX_PAGE):
        return _local_redirect(start_response, headers, "./", query)

    name = _clean(upath)
    target = Path(root).joinpath(*[part for part in name.split("/") if part])
    try:
        st = target.stat()
    except (FileNotFoundError, NotADirectoryError):
        return _error(start_response, headers, 404, "404 page not found")
    except PermissionError:
        return _error(start_response, headers, 403, "403 Forbidden")
    except OSError:
        return _error(start_response, headers, 500, "500 Internal Server Error")

    if target.is_dir():
        if not upath.endswith("/"):
            return _local_redirect(
                start_response, headers, posixpath.basename(name) + "/", query
            )
        index = target / _INDEX_PAGE
        if index.is_file():
            return _send_file(start_response, headers, index, index.stat(), head)
        return _list_directory(start_response, headers, target, head)

    if upath.endswith("/"):
        return _local_redirect(
            start_response, headers, "../" + posixpath.basename(name), query
        )
    return _send_file(start_response, headers, target, st, head)


def static_file_server(root: str | os.PathLike) -> Callable[[dict, StartResponse], Iterable[bytes]]:
    """Return a WSGI app serving files from root with fixed types for web assets."""

    def app(environ: dict, start_response: StartResponse) -> list[bytes]:
        headers: dict[str, str] = {}
        content_type = MIME_TYPES.get(_ext(environ.get("PATH_INFO") or ""))
        if content_type is not None:
            headers["Content-Type"] = content_type
        return _serve(root, environ, start_response, headers)

    return app