import logging
import re
from dataclasses import dataclass
from pathlib import Path

from services.exceptions import ArchiveNotFoundError, ArchiveReadError
from services.interfaces import ILogger
from services.walvalidation.wal_segment import (
    DEFAULT_WAL_SEGMENT_SIZE,
    HEX_DIGITS,
    SegmentId,
)

DEFAULT_SUFFIX = ".gz"

_default_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArchivedFile:
    segment_id: SegmentId
    mtime: float
    path: Path

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class HistoryEntry:
    """One line of a timeline history file.

    Attributes:
        parent_timeline: Timeline that was left at the switch
        switch_log_file: Log file number of the switch LSN
        switch_offset: Byte offset of the switch LSN inside the log file
    """

    parent_timeline: int
    switch_log_file: int
    switch_offset: int

    def switch_segment(self, wal_segment_size: int = DEFAULT_WAL_SEGMENT_SIZE) -> SegmentId:
        """Segment of the parent timeline in which the switch happened.

        With 16 MiB segments this is the high byte of the offset; the rest
        is a position inside the segment and is dropped.
        """
        return SegmentId(
            timeline=self.parent_timeline,
            log_file=self.switch_log_file,
            segment=self.switch_offset // wal_segment_size,
        )


def segment_file_pattern(suffix: str) -> re.Pattern:
    return re.compile(r"^[0-9A-F]{24}.*" + re.escape(suffix) + r"$")


def scan_archive(directory: Path | str, suffix: str = DEFAULT_SUFFIX, logger: ILogger | None = None) -> list[ArchivedFile]:
    """Collect archived WAL files below directory, oldest first.

    Files are ordered by modification time, then by name, which is the
    order in which they were archived. Names that do not look like WAL
    segments ending with suffix are ignored.
    """
    logger = logger or _default_logger
    directory = Path(directory)
    if not directory.is_dir():
        raise ArchiveNotFoundError(directory)

    pattern = segment_file_pattern(suffix)
    files = []
    try:
        for path in directory.rglob("*"):
            if not pattern.match(path.name) or not path.is_file():
                continue
            files.append(
                ArchivedFile(
                    segment_id=SegmentId.parse(path.name),
                    mtime=path.stat().st_mtime,
                    path=path,
                )
            )
    except OSError as e:
        raise ArchiveReadError(e.filename or directory, e) from e

    files.sort(key=lambda f: (f.mtime, f.name))
    logger.debug(f"Found {len(files)} archived WAL files in {directory}")
    return files


def history_file_name(timeline: int | str) -> str:
    if isinstance(timeline, int):
        return f"{timeline:08X}.history"
    return f"{timeline}.history"


def _is_hex(text: str) -> bool:
    return bool(text) and all(c in HEX_DIGITS for c in text)


def parse_history_line(line: str) -> HistoryEntry | None:
    """Parse "<parent tli>\\t<LOG>/<OFFSET>\\t<reason>", None when malformed."""
    fields = line.lstrip().split("\t")
    if len(fields) < 3:
        return None

    tli, lsn = fields[0], fields[1]
    log_hex, sep, offset_hex = lsn.partition("/")
    if not (tli.isascii() and tli.isdigit()) or not sep or not _is_hex(log_hex) or not _is_hex(offset_hex):
        return None

    return HistoryEntry(
        parent_timeline=int(tli),
        switch_log_file=int(log_hex, 16),
        switch_offset=int(offset_hex, 16),
    )


def read_history(directory: Path | str, timeline: int | str, logger: ILogger | None = None) -> list[HistoryEntry]:
    """Read the history file of a timeline stored next to the archived WAL.

    A missing or empty history file yields no entries. Lines that cannot be
    parsed (comments, blank lines, garbage) are skipped.
    """
    logger = logger or _default_logger
    path = Path(directory) / history_file_name(timeline)
    entries = []
    try:
        if not path.is_file() or path.stat().st_size == 0:
            logger.debug(f"No history file at {path}")
            return []

        # the reason field is free text in whatever encoding the server used
        with path.open("r", encoding="utf-8", errors="replace") as f:
            for lineno, line in enumerate(f, start=1):
                entry = parse_history_line(line.rstrip("\r\n"))
                if entry is None:
                    logger.debug(f"Skipping line {lineno} of {path.name}: {line.strip()!r}")
                    continue
                entries.append(entry)
    except OSError as e:
        raise ArchiveReadError(path, e) from e

    logger.info(f"Read {len(entries)} timeline switches from {path.name}")
    return entries
