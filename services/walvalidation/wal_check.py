import time
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable, Sequence

from services.interfaces import ILogger
from services.output import format_interval
from services.verdict import PerfData, Verdict
from services.walvalidation.archive_scanner import (
    DEFAULT_SUFFIX,
    ArchivedFile,
    HistoryEntry,
    read_history,
    scan_archive,
)
from services.walvalidation.wal_segment import (
    DEFAULT_WAL_SEGMENT_SIZE,
    SegmentId,
    segments_per_wal_file,
)

HistoryReader = Callable[[int], Sequence[HistoryEntry]]


@dataclass(frozen=True)
class ArchiveRange:
    """WAL range the catalog says must be present in the archive."""

    min_id: SegmentId
    max_id: SegmentId
    wal_segment_size: int = DEFAULT_WAL_SEGMENT_SIZE
    db_version: str | None = None

    @classmethod
    def from_names(cls, min_wal: str, max_wal: str, wal_segment_size: int = DEFAULT_WAL_SEGMENT_SIZE, db_version=None) -> "ArchiveRange":
        return cls(SegmentId.parse(min_wal), SegmentId.parse(max_wal), wal_segment_size, db_version)

    @property
    def segments_per_wal_file(self) -> int:
        return segments_per_wal_file(self.wal_segment_size, self.db_version)


@dataclass(frozen=True)
class WalCursor:
    """Position of the sequence walk: the segment expected next and how many
    archived files have been matched so far."""

    expected: SegmentId
    consumed: int = 0

    def advance(self, segments_per_wal_file: int) -> "WalCursor":
        return WalCursor(self.expected.next(segments_per_wal_file), self.consumed + 1)

    def cross_branch(self, timeline: int) -> "WalCursor":
        # the new timeline starts over from the segment holding the switch point
        return WalCursor(self.expected.with_timeline(timeline), self.consumed + 1)


def branch_points(history: Sequence[HistoryEntry], end_timeline: int, wal_segment_size: int = DEFAULT_WAL_SEGMENT_SIZE) -> dict[SegmentId, int]:
    """Map every switch segment to the timeline that continues after it.

    A history file lists the ancestors of its timeline in order, so the
    child of an entry is the parent of the following one, and the child of
    the last entry is the timeline the file belongs to.
    """
    entries = sorted(history, key=lambda e: e.parent_timeline)
    children = [e.parent_timeline for e in entries[1:]] + [end_timeline]
    return {
        entry.switch_segment(wal_segment_size): child
        for entry, child in zip(entries, children)
    }


def next_cursor(cursor: WalCursor, branches: dict[SegmentId, int], segments_per_wal_file: int) -> WalCursor:
    if cursor.expected in branches:
        return cursor.cross_branch(branches[cursor.expected])
    return cursor.advance(segments_per_wal_file)


class WalArchiveValidation:
    def __init__(
        self,
        archive_range: ArchiveRange,
        archived_files: Sequence[ArchivedFile],
        history_reader: HistoryReader,
        logger: ILogger,
        now: float | None = None,
    ):
        self.archive_range = archive_range
        self.archived_files: list[ArchivedFile] = list(archived_files)
        self._history_reader = history_reader
        self._logger = logger
        self._now = now

    def _missing_bounds(self) -> list[str]:
        present = {f.segment_id for f in self.archived_files}
        missing = []
        if self.archive_range.min_id not in present:
            missing.append(f"min WAL not found: {self.archive_range.min_id}")
        if self.archive_range.max_id not in present:
            missing.append(f"max WAL not found: {self.archive_range.max_id}")
        return missing

    def _order_warnings(self) -> list[str]:
        """Archives older than min or newer than max hint at stale or orphaned files."""
        warnings = []
        if self.archived_files[0].segment_id != self.archive_range.min_id:
            warnings.append("min WAL is not the oldest archive")
        if self.archived_files[-1].segment_id != self.archive_range.max_id:
            warnings.append("max WAL is not the latest archive")
        return warnings

    def _branch_points(self) -> dict[SegmentId, int]:
        start_tl = self.archive_range.min_id.timeline
        end_tl = self.archive_range.max_id.timeline
        if start_tl == end_tl:
            return {}

        history = self._history_reader(end_tl)
        branches = branch_points(history, end_tl, self.archive_range.wal_segment_size)
        self._logger.info(
            f"Timeline switch between {start_tl:08X} and {end_tl:08X}, "
            f"branch points: {', '.join(str(b) for b in branches) or 'none'}"
        )
        return branches

    def find_first_gap(self, segments_per_wal_file: int, branches: dict[SegmentId, int]) -> SegmentId | None:
        """
        Walk the expected WAL sequence from min WAL, one archived file per step
        in archival order, and return the first expected segment that does
        not match. Files after the gap are not examined.
        """
        cursor = WalCursor(self.archive_range.min_id)
        while cursor.consumed < len(self.archived_files):
            archived = self.archived_files[cursor.consumed]
            if archived.segment_id != cursor.expected:
                self._logger.error(
                    f"Detected gap in WAL chain. Expected {cursor.expected}, "
                    f"position {cursor.consumed} of {len(self.archived_files)}"
                )
                return cursor.expected
            cursor = next_cursor(cursor, branches, segments_per_wal_file)
        return None

    def validate(self) -> Verdict:
        spw = self.archive_range.segments_per_wal_file

        if not self.archived_files:
            self._logger.warning("No archived WAL found")
            return Verdict.unknown("no archived WAL found")

        missing = self._missing_bounds()
        if missing:
            for message in missing:
                self._logger.error(message)
            return Verdict.critical(", ".join(missing))

        warnings = self._order_warnings()
        for message in warnings:
            self._logger.warning(message)

        gap = self.find_first_gap(spw, self._branch_points())
        if gap is not None:
            return Verdict.critical(f"wrong sequence or missing file @ {gap}", details=warnings)

        latest = self.archived_files[-1]
        now = self._now if self._now is not None else time.time()
        latest_age = max(0, int(now - latest.mtime))
        num_archives = len(self.archived_files)

        details = warnings + [
            f"min WAL: {self.archive_range.min_id}",
            f"max WAL: {self.archive_range.max_id}",
            f"latest archive: {latest.name}",
        ]
        perfdata = [
            PerfData("num_archives", num_archives),
            PerfData("latest_archive_age", latest_age, "s"),
        ]

        if warnings:
            return Verdict.warning(", ".join(warnings), details=details, perfdata=perfdata)

        self._logger.info(f"WAL chain complete: {num_archives} files, latest {latest.name}")
        return Verdict.ok(
            f"{num_archives} WAL archived, latest archived since {format_interval(latest_age)}",
            details=details,
            perfdata=perfdata,
        )


def archive_directory(repo_path: Path | str, stanza: str, archive_id: str) -> Path:
    return Path(repo_path) / stanza / archive_id


def check_archives(
    archive_range: ArchiveRange,
    directory: Path | str,
    logger: ILogger,
    suffix: str = DEFAULT_SUFFIX,
    now: float | None = None,
) -> Verdict:
    """Scan directory and validate its WAL chain against archive_range."""
    files = scan_archive(directory, suffix, logger=logger)
    validation = WalArchiveValidation(
        archive_range,
        files,
        partial(read_history, directory, logger=logger),
        logger,
        now=now,
    )
    return validation.validate()
