"""RandomImage: a small wiki host with a ``<randomimage>`` parser tag."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("randomimage")
except PackageNotFoundError:
    # Source checkout that was never installed
    __version__ = "0.0.0"
