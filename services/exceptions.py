"""Fatal errors raised by the probe.

A ProbeError means the probe itself is misconfigured or cannot read its
inputs. It never describes the health of the monitored archive; that is
what a Verdict is for.
"""

from pathlib import Path


class ProbeError(Exception):
    """Base class for fatal probe failures (exit code 127)."""


class ConfigurationError(ProbeError):
    """Missing or invalid option, or a WAL segment size that cannot be used."""


class ArchiveNotFoundError(ProbeError):
    """The archive directory does not exist or is not a directory.

    Attributes:
        path: The directory that was expected
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"archive directory not found: {self.path}")


class ArchiveReadError(ProbeError):
    """An archived file or history file exists but could not be read.

    Attributes:
        path: The file or directory being read
    """

    def __init__(self, path: Path | str, reason: OSError) -> None:
        self.path = Path(path)
        super().__init__(f"cannot read {self.path}: {reason.strerror or reason}")


class CatalogError(ProbeError):
    """The backup catalog could not be obtained or does not have the expected shape."""


class SegmentFormatError(ValueError):
    """A name does not start with a 24 hex digit WAL segment identifier."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"not a WAL segment name: {name!r}")
