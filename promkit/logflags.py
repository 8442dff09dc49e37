"""Command-line flags that configure a logger."""

from __future__ import annotations

import argparse

from .promlog import FORMAT_FLAG_OPTIONS, LEVEL_FLAG_OPTIONS, AllowedFormat, AllowedLevel, Config

LEVEL_FLAG_NAME = "log.level"
LEVEL_FLAG_HELP = (
    "Only log messages with the given severity or above. One of: ["
    + ", ".join(LEVEL_FLAG_OPTIONS)
    + "]"
)
FORMAT_FLAG_NAME = "log.format"
FORMAT_FLAG_HELP = (
    "Output format of log messages. One of: [" + ", ".join(FORMAT_FLAG_OPTIONS) + "]"
)


def _setter(target):
    def apply(value: str):
        try:
            target.set(value)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(str(exc)) from None
        return target

    return apply


def add_flags(parser: argparse.ArgumentParser, config: Config) -> None:
    """Add the log level and format flags; parsing fills in config."""
    config.level = AllowedLevel()
    parser.add_argument(
        "--" + LEVEL_FLAG_NAME,
        dest="log_level",
        default="info",
        type=_setter(config.level),
        metavar="{" + ",".join(LEVEL_FLAG_OPTIONS) + "}",
        help=LEVEL_FLAG_HELP,
    )
    config.format = AllowedFormat()
    parser.add_argument(
        "--" + FORMAT_FLAG_NAME,
        dest="log_format",
        default="logfmt",
        type=_setter(config.format),
        metavar="{" + ",".join(FORMAT_FLAG_OPTIONS) + "}",
        help=FORMAT_FLAG_HELP,
    )