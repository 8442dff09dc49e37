"""Build and version information for a program."""

from __future__ import annotations

import platform
import sys

# Populated by the build; empty when unknown.
VERSION = ""
REVISION = ""
BRANCH = ""
BUILD_USER = ""
BUILD_DATE = ""
PYTHON_VERSION = platform.python_version()
OS = sys.platform
ARCH = platform.machine()

# No build metadata is embedded at runtime, so these stay unknown.
_COMPUTED_REVISION = "unknown"
_COMPUTED_TAGS = "unknown"

_TEMPLATE = """
{program}, version {version} (branch: {branch}, revision: {revision})
  build user:       {build_user}
  build date:       {build_date}
  python version:   {python_version}
  platform:         {platform}
  tags:             {tags}
"""


def get_revision() -> str:
    return REVISION or _COMPUTED_REVISION


def get_tags() -> str:
    return _COMPUTED_TAGS


def print_version(program: str) -> str:
    """Return a multi-line description of the program's version."""
    return _TEMPLATE.format(
        program=program,
        version=VERSION,
        branch=BRANCH,
        revision=get_revision(),
        build_user=BUILD_USER,
        build_date=BUILD_DATE,
        python_version=PYTHON_VERSION,
        platform=f"{OS}/{ARCH}",
        tags=get_tags(),
    ).strip()


def info() -> str:
    """Return version, branch and revision."""
    return f"(version={VERSION}, branch={BRANCH}, revision={get_revision()})"


def build_context() -> str:
    """Return runtime version, platform, build user, build date and tags."""
    return (
        f"(python={PYTHON_VERSION}, platform={OS}/{ARCH}, user={BUILD_USER}, "
        f"date={BUILD_DATE}, tags={get_tags()})"
    )