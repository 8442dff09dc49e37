"""Leveled key/value loggers with timestamps, caller info and a changeable level."""

from __future__ import annotations

import json
import os
import sys
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Protocol, TextIO

import yaml

LEVEL_FLAG_OPTIONS = ["debug", "info", "warn", "error"]
FORMAT_FLAG_OPTIONS = ["logfmt", "json"]

_LEVEL_KEY = "level"
_MISSING_VALUE = "(MISSING)"


class Logger(Protocol):
    def log(self, *keyvals: Any) -> None: ...


class _LevelValue:
    """A level attached to a log entry; the filter recognises it by type."""

    __slots__ = ("name", "rank")

    def __init__(self, name: str, rank: int) -> None:
        self.name = name
        self.rank = rank

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"_LevelValue({self.name!r})"


_LEVELS = {
    name: _LevelValue(name, rank) for rank, name in enumerate(LEVEL_FLAG_OPTIONS)
}


class _Valuer:
    """A context value computed afresh for every log entry."""

    def __init__(self, fn: Callable[[], Any]) -> None:
        self._fn = fn

    def __call__(self) -> Any:
        return self._fn()


def _timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def _caller() -> str:
    frame = sys._getframe(1)
    here = os.path.normcase(__file__)
    while frame is not None and os.path.normcase(frame.f_code.co_filename) == here:
        frame = frame.f_back
    if frame is None:
        return "???"
    return f"{os.path.basename(frame.f_code.co_filename)}:{frame.f_lineno}"


_TIMESTAMP = _Valuer(_timestamp)
_CALLER = _Valuer(_caller)


def _pad(keyvals: tuple) -> tuple:
    if len(keyvals) % 2:
        return keyvals + (_MISSING_VALUE,)
    return keyvals


class _Context:
    """Prepends fixed key/value pairs, resolving valuers at log time."""

    def __init__(self, inner: Logger, *keyvals: Any) -> None:
        self._inner = inner
        self._keyvals = keyvals

    def log(self, *keyvals: Any) -> None:
        bound = tuple(v() if isinstance(v, _Valuer) else v for v in self._keyvals)
        self._inner.log(*bound, *keyvals)


class _Filter:
    """Drops entries whose level is below the allowed minimum."""

    def __init__(self, inner: Logger, minimum: int) -> None:
        self._inner = inner
        self._minimum = minimum

    def log(self, *keyvals: Any) -> None:
        for value in keyvals[1::2]:
            if isinstance(value, _LevelValue):
                if value.rank < self._minimum:
                    return
                break
        self._inner.log(*keyvals)


def _needs_quotes(value: str) -> bool:
    return any(c in ' ="\\' or ord(c) < 0x20 or ord(c) == 0x7F for c in value)


def _logfmt_key(key: Any) -> str:
    text = "null" if key is None else str(key)
    cleaned = "".join(
        "_" if c in ' ="' or ord(c) < 0x20 or ord(c) == 0x7F else c for c in text
    )
    return cleaned or "_"


def _logfmt_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    if text == "null" or _needs_quotes(text):
        return json.dumps(text, ensure_ascii=False)
    return text


class LogfmtLogger:
    """Writes each entry as one line of key=value pairs."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def log(self, *keyvals: Any) -> None:
        keyvals = _pad(keyvals)
        line = " ".join(
            f"{_logfmt_key(k)}={_logfmt_value(v)}"
            for k, v in zip(keyvals[::2], keyvals[1::2])
        )
        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()


def _json_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


class JSONLogger:
    """Writes each entry as one JSON object per line."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def log(self, *keyvals: Any) -> None:
        keyvals = _pad(keyvals)
        record = {
            ("null" if k is None else str(k)): _json_value(v)
            for k, v in zip(keyvals[::2], keyvals[1::2])
        }
        line = json.dumps(record, ensure_ascii=False)
        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()


class AllowedLevel:
    """The minimum level an entry must have to be logged."""

    def __init__(self) -> None:
        self.name = ""
        self._minimum = 0

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"AllowedLevel({self.name!r})"

    def set(self, s: str) -> None:
        level = _LEVELS.get(s)
        if level is None:
            raise ValueError(f"unrecognized log level {json.dumps(s, ensure_ascii=False)}")
        self.name = s
        self._minimum = level.rank

    @classmethod
    def from_yaml(cls, text: str | bytes) -> AllowedLevel:
        loaded = yaml.safe_load(text)
        level = cls()
        if loaded is None:
            return level
        if isinstance(loaded, (dict, list)):
            raise ValueError("log level must be a YAML scalar")
        s = str(loaded)
        if s:
            level.set(s)
        return level


class AllowedFormat:
    """The output format of a logger."""

    def __init__(self) -> None:
        self.name = ""

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"AllowedFormat({self.name!r})"

    def set(self, s: str) -> None:
        if s not in FORMAT_FLAG_OPTIONS:
            raise ValueError(f"unrecognized log format {json.dumps(s, ensure_ascii=False)}")
        self.name = s


@dataclass
class Config:
    """Logger settings; unset fields keep the defaults."""

    level: AllowedLevel | None = None
    format: AllowedFormat | None = None


def _base_logger(config: Config, stream: TextIO | None) -> Logger:
    out = sys.stderr if stream is None else stream
    if config.format is not None and config.format.name == "json":
        return JSONLogger(out)
    return LogfmtLogger(out)


def new(config: Config, stream: TextIO | None = None) -> Logger:
    """Return a leveled logger writing to stream, standard error by default."""
    return new_with_logger(_base_logger(config, stream), config)


def new_with_logger(base: Logger, config: Config) -> Logger:
    """Wrap base with a timestamp, the caller and, if configured, a level filter."""
    logger: Logger = _Context(base, "ts", _TIMESTAMP, "caller", _CALLER)
    if config.level is not None:
        logger = _Filter(logger, config.level._minimum)
    return logger


class DynamicLogger:
    """A logger whose level can be changed while in use."""

    def __init__(self, base: Logger) -> None:
        self.base = base
        self._leveled: Logger = base
        self.current_level: AllowedLevel | None = None
        self._lock = threading.Lock()

    def log(self, *args: Any) -> None:
        with self._lock:
            self._leveled.log(*args)

    def set_level(self, level: AllowedLevel | None) -> None:
        with self._lock:
            if level is None:
                self._leveled = _Context(self.base, "ts", _TIMESTAMP, "caller", _CALLER)
                self.current_level = None
                return
            if self.current_level is not None and self.current_level.name != level.name:
                self.base.log(
                    "msg", "Log level changed", "prev", self.current_level, "current", level
                )
            self.current_level = level
            self._leveled = _Filter(
                _Context(self.base, "ts", _TIMESTAMP, "caller", _CALLER), level._minimum
            )


def new_dynamic(config: Config, stream: TextIO | None = None) -> DynamicLogger:
    """Return a logger with a changeable level, writing to standard error by default."""
    return new_dynamic_with_logger(_base_logger(config, stream), config)


def new_dynamic_with_logger(base: Logger, config: Config) -> DynamicLogger:
    logger = DynamicLogger(base)
    if config.level is not None:
        logger.set_level(config.level)
    return logger


def debug(logger: Logger) -> Logger:
    return _Context(logger, _LEVEL_KEY, _LEVELS["debug"])


def info(logger: Logger) -> Logger:
    return _Context(logger, _LEVEL_KEY, _LEVELS["info"])


def warn(logger: Logger) -> Logger:
    return _Context(logger, _LEVEL_KEY, _LEVELS["warn"])


def error(logger: Logger) -> Logger:
    return _Context(logger, _LEVEL_KEY, _LEVELS["error"])