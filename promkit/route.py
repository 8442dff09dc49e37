"""A WSGI router with path parameters, prefixed sub-routers and instrumentation."""

from __future__ import annotations

import html
import os
import posixpath
import re
from dataclasses import dataclass
from typing import Callable, Iterable
from urllib.parse import urlsplit

from .static_server import _clean, _error, _respond, _serve, _status

WSGIApp = Callable[[dict, Callable], Iterable[bytes]]
Instrumentation = Callable[[str, WSGIApp], WSGIApp]

_PARAMS_KEY = "promkit.route.params"
_WILDCARD = re.compile(r"[:*]([^/]*)")


def param(environ: dict, name: str) -> str:
    """Return the named path parameter of a request, or "" if it has none."""
    return environ.get(_PARAMS_KEY, {}).get(name, "")


def with_param(environ: dict, name: str, value: str) -> dict:
    """Return a copy of environ with the parameter name set to value."""
    params = dict(environ.get(_PARAMS_KEY, {}))
    params[name] = value
    out = dict(environ)
    out[_PARAMS_KEY] = params
    return out


def _compile(pattern: str) -> tuple[re.Pattern, tuple[str, ...]]:
    if not pattern.startswith("/"):
        raise ValueError(f"path must begin with '/' in path {pattern!r}")
    parts: list[str] = []
    names: list[str] = []
    pos = 0
    for match in _WILDCARD.finditer(pattern):
        name = match.group(1)
        if not name:
            raise ValueError(f"wildcards must be named with a non-empty name in path {pattern!r}")
        if ":" in name or "*" in name:
            raise ValueError(f"only one wildcard per path segment is allowed in path {pattern!r}")
        static = pattern[pos:match.start()]
        if match.group(0).startswith(":"):
            parts.append(re.escape(static))
            parts.append("([^/]+)")
        else:
            if match.end() != len(pattern):
                raise ValueError(
                    f"catch-all routes are only allowed at the end of the path in path {pattern!r}"
                )
            if not static.endswith("/"):
                raise ValueError(f"no / before catch-all in path {pattern!r}")
            parts.append(re.escape(static[:-1]))
            parts.append("(/.*)")
        names.append(name)
        pos = match.end()
    parts.append(re.escape(pattern[pos:]))
    return re.compile("".join(parts)), tuple(names)


@dataclass
class _Route:
    pattern: str
    regex: re.Pattern
    names: tuple[str, ...]
    handle: Callable[[dict, Callable, dict], Iterable[bytes]]


class _Table:
    """Routes by method, shared by a router and the routers derived from it."""

    def __init__(self) -> None:
        self._routes: dict[str, list[_Route]] = {}

    def add(self, method: str, pattern: str, handle) -> None:
        regex, names = _compile(pattern)
        routes = self._routes.setdefault(method, [])
        if any(route.pattern == pattern for route in routes):
            raise ValueError(f"a handle is already registered for path {pattern!r}")
        routes.append(_Route(pattern, regex, names, handle))

    def match(self, method: str, path: str) -> tuple[_Route, dict[str, str]] | None:
        for route in self._routes.get(method, ()):
            found = route.regex.fullmatch(path)
            if found:
                return route, dict(zip(route.names, found.groups()))
        return None

    def allowed(self, path: str, request_method: str) -> str:
        methods = {
            method
            for method in self._routes
            if method != request_method and self.match(method, path) is not None
        }
        if not methods:
            return ""
        methods.add("OPTIONS")
        return ", ".join(sorted(methods))


class Router:
    """Routes WSGI requests by method and path, with ":name" and "*name" wildcards."""

    def __init__(self) -> None:
        self._table = _Table()
        self._prefix = ""
        self._instrh: Instrumentation | None = None

    @classmethod
    def _derive(cls, table: _Table, prefix: str, instrh: Instrumentation | None) -> Router:
        router = cls.__new__(cls)
        router._table = table
        router._prefix = prefix
        router._instrh = instrh
        return router

    @property
    def prefix(self) -> str:
        return self._prefix

    def with_instrumentation(self, instrh: Instrumentation) -> Router:
        """Return a router that wraps every handler it registers with instrh."""
        previous = self._instrh
        if previous is not None:
            outer = instrh

            def instrh(name: str, handler: WSGIApp) -> WSGIApp:
                return outer(name, previous(name, handler))

        return Router._derive(self._table, self._prefix, instrh)

    def with_prefix(self, prefix: str) -> Router:
        """Return a router that prefixes every route it registers."""
        return Router._derive(self._table, self._prefix + prefix, self._instrh)

    def _handle(self, handler_name: str, handler: WSGIApp):
        if self._instrh is not None:
            handler = self._instrh(handler_name, handler)

        def handle(environ: dict, start_response, params: dict[str, str]):
            merged = dict(environ.get(_PARAMS_KEY, {}))
            merged.update(params)
            env = dict(environ)
            env[_PARAMS_KEY] = merged
            return handler(env, start_response)

        return handle

    def _register(self, method: str, path: str, handler: WSGIApp) -> None:
        self._table.add(method, self._prefix + path, self._handle(path, handler))

    def get(self, path: str, handler: WSGIApp) -> None:
        self._register("GET", path, handler)

    def options(self, path: str, handler: WSGIApp) -> None:
        self._register("OPTIONS", path, handler)

    def delete(self, path: str, handler: WSGIApp) -> None:
        self._register("DELETE", path, handler)

    def put(self, path: str, handler: WSGIApp) -> None:
        self._register("PUT", path, handler)

    def post(self, path: str, handler: WSGIApp) -> None:
        self._register("POST", path, handler)

    def head(self, path: str, handler: WSGIApp) -> None:
        self._register("HEAD", path, handler)

    def redirect(self, environ: dict, start_response, path: str, code: int) -> list[bytes]:
        """Redirect to an absolute path below this router's prefix."""
        url = self._prefix + path
        parts = urlsplit(url)
        if not parts.scheme and not parts.netloc:
            if url == "":
                url = "/"
            if not url.startswith("/"):
                old_dir = posixpath.split(environ.get("PATH_INFO") or "/")[0]
                url = old_dir.rstrip("/") + "/" + url
            query = ""
            if "?" in url:
                url, query = url[: url.index("?")], url[url.index("?"):]
            trailing = url.endswith("/")
            url = _clean(url)
            if trailing and not url.endswith("/"):
                url += "/"
            url += query

        method = environ.get("REQUEST_METHOD", "GET").upper()
        headers = {"Location": url}
        body = b""
        if method in ("GET", "HEAD"):
            headers["Content-Type"] = "text/html; charset=utf-8"
        if method == "GET":
            phrase = _status(code).split(" ", 1)[1]
            body = f'<a href="{html.escape(url)}">{phrase}</a>.\n'.encode("utf-8")
        return _respond(start_response, code, headers, body)

    def __call__(self, environ: dict, start_response) -> Iterable[bytes]:
        path = environ.get("PATH_INFO") or "/"
        method = environ.get("REQUEST_METHOD", "GET").upper()

        found = self._table.match(method, path)
        if found is not None:
            route, params = found
            return route.handle(environ, start_response, params)

        if method == "OPTIONS":
            allow = self._table.allowed(path, method)
            if allow:
                return _respond(start_response, 200, {"Allow": allow})

        if method != "CONNECT" and path != "/":
            alternative = path[:-1] if path.endswith("/") else path + "/"
            if self._table.match(method, alternative) is not None:
                query = environ.get("QUERY_STRING", "")
                location = alternative + ("?" + query if query else "")
                code = 301 if method == "GET" else 308
                return _respond(start_response, code, {"Location": location})

        allow = self._table.allowed(path, method)
        if allow:
            return _error(start_response, {"Allow": allow}, 405, "Method Not Allowed")
        return _error(start_response, {}, 404, "404 page not found")


def file_serve(directory: str | os.PathLike) -> WSGIApp:
    """Return a handler serving files from directory; its route must end in *filepath."""

    def app(environ: dict, start_response) -> list[bytes]:
        env = dict(environ)
        env["PATH_INFO"] = param(environ, "filepath")
        return _serve(directory, env, start_response, {})

    return app