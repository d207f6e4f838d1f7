"""
Makelaarwatch package initializer.

This package keeps a local SQLite copy of the Funda listing feed in sync and
ranks real-estate agents (makelaars) by the number of listings they own.

The package exposes a ``__version__`` attribute indicating the installed
version of Makelaarwatch. The version is read from pyproject.toml via
importlib.metadata – this is the single source of truth.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("makelaarwatch")
except PackageNotFoundError:
    # Package is not installed (running from source without pip install -e .)
    __version__ = "0.0.0.dev"

__all__: list[str] = ["__version__"]
