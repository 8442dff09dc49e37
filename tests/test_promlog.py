import io
import json
import re

import pytest

from promkit import promlog


class Recorder:
    def __init__(self):
        self.count = 0

    def log(self, *keyvals):
        if any(str(v) == "Log level changed" for v in keyvals):
            return
        self.count += 1


def make_level(name):
    level = promlog.AllowedLevel()
    level.set(name)
    return level


def make_format(name):
    fmt = promlog.AllowedFormat()
    fmt.set(name)
    return fmt


def test_default_config_logs():
    out = io.StringIO()
    logger = promlog.new(promlog.Config(), out)
    logger.log("hello", "world")
    line = out.getvalue()
    assert line.endswith("hello=world\n")
    assert re.match(r"ts=\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z caller=test_promlog\.py:\d+ ", line)


def test_json_format():
    out = io.StringIO()
    logger = promlog.new(promlog.Config(format=make_format("json")), out)
    promlog.info(logger).log("hello", "world")
    record = json.loads(out.getvalue())
    assert record["hello"] == "world"
    assert record["level"] == "info"
    assert record["caller"].startswith("test_promlog.py:")


def test_unmarshal_level():
    level = promlog.AllowedLevel.from_yaml("debug")
    assert str(level) == "debug"


def test_unmarshal_empty_level():
    level = promlog.AllowedLevel.from_yaml("")
    assert str(level) == ""


def test_unmarshal_bad_level():
    with pytest.raises(ValueError) as excinfo:
        promlog.AllowedLevel.from_yaml("debugg")
    assert str(excinfo.value) == 'unrecognized log level "debugg"'


def test_bad_format():
    with pytest.raises(ValueError, match="unrecognized log format"):
        promlog.AllowedFormat().set("xml")


def test_filter_drops_lower_levels():
    out = io.StringIO()
    logger = promlog.new(promlog.Config(level=make_level("warn")), out)
    promlog.info(logger).log("msg", "dropped")
    promlog.error(logger).log("msg", "kept")
    lines = out.getvalue().splitlines()
    assert len(lines) == 1
    assert "level=error msg=kept" in lines[0]


def test_dynamic():
    logger = promlog.new_dynamic(promlog.Config())
    recorder = Recorder()
    logger.base = recorder

    logger.set_level(make_level("debug"))
    promlog.debug(logger).log("hello", "world")
    assert recorder.count == 1

    recorder.count = 0
    logger.set_level(make_level("info"))
    promlog.debug(logger).log("hello", "world")
    assert recorder.count == 0
    promlog.info(logger).log("hello", "world")
    assert recorder.count == 1
    promlog.debug(logger).log("hello", "world")
    assert recorder.count == 1


def test_dynamic_reports_level_change():
    out = io.StringIO()
    logger = promlog.new_dynamic_with_logger(
        promlog.LogfmtLogger(out), promlog.Config(level=make_level("debug"))
    )
    logger.set_level(make_level("error"))
    assert out.getvalue() == "msg=\"Log level changed\" prev=debug current=error\n"


def test_dynamic_without_level_passes_everything():
    out = io.StringIO()
    logger = promlog.new_dynamic_with_logger(promlog.LogfmtLogger(out), promlog.Config())
    promlog.debug(logger).log("a", "b")
    assert out.getvalue() == "level=debug a=b\n"


def test_logfmt_quoting_and_missing_value():
    out = io.StringIO()
    promlog.LogfmtLogger(out).log("msg", "two words", "empty", "", "odd")
    assert out.getvalue() == 'msg="two words" empty= odd=(MISSING)\n'