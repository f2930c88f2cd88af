"""
Harness version, taken from the installed distribution or, in a source
checkout, from the ``[project]`` table of pyproject.toml.
"""
import importlib.metadata
import pathlib

import tomli

DISTRIBUTION = "rpc-conformance"
FALLBACK_VERSION = "0.1.0"
PYPROJECT = pathlib.Path(__file__).resolve().parent.parent / "pyproject.toml"


def _pyproject_version(path: pathlib.Path = PYPROJECT) -> str:
    try:
        with path.open("rb") as f:
            project = tomli.load(f).get("project", {})
    except (OSError, tomli.TOMLDecodeError):
        return FALLBACK_VERSION
    return project.get("version", FALLBACK_VERSION)


def get_version() -> str:
    try:
        return importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        return _pyproject_version()


__version__ = get_version()
