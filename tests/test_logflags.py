import argparse

import pytest

from promkit import logflags, promlog


def make_parser():
    config = promlog.Config()
    parser = argparse.ArgumentParser(prog="app")
    logflags.add_flags(parser, config)
    return parser, config


def test_defaults_applied():
    parser, config = make_parser()
    parser.parse_args([])
    assert str(config.level) == "info"
    assert str(config.format) == "logfmt"


def test_explicit_values():
    parser, config = make_parser()
    args = parser.parse_args(["--log.level", "debug", "--log.format", "json"])
    assert str(config.level) == "debug"
    assert str(config.format) == "json"
    assert args.log_level is config.level


def test_bad_level_rejected():
    parser, _ = make_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["--log.level", "verbose"])


def test_bad_format_rejected():
    parser, _ = make_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["--log.format", "xml"])


def test_help_lists_options():
    assert logflags.LEVEL_FLAG_HELP.endswith("One of: [debug, info, warn, error]")
    assert logflags.FORMAT_FLAG_HELP.endswith("One of: [logfmt, json]")