"""Farm Advisory API - multi-agent crop advisory pipeline."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("farm-advisory")
except PackageNotFoundError:
    __version__ = "unknown"
