"""
Version of the Scrypto SDK.

Installed packages report the version from their distribution metadata. A
source checkout that was never installed reads it from pyproject.toml, and
anything else reports ``0.0.0`` rather than guessing.
"""
import importlib.metadata
import pathlib

import tomli

DISTRIBUTION = "scrypto-sdk"
UNKNOWN_VERSION = "0.0.0"


def _source_tree_version() -> str:
    path = pathlib.Path(__file__).parent.parent / "pyproject.toml"
    try:
        with path.open("rb") as f:
            return tomli.load(f)["project"]["version"]
    except (OSError, KeyError, tomli.TOMLDecodeError):
        return UNKNOWN_VERSION


try:
    __version__ = importlib.metadata.version(DISTRIBUTION)
except importlib.metadata.PackageNotFoundError:
    __version__ = _source_tree_version()
