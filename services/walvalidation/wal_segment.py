from dataclasses import dataclass, replace

from services.exceptions import ConfigurationError, SegmentFormatError

WAL_FILE_SIZE = 0x100000000           # 4 GiB of WAL per log file
DEFAULT_WAL_SEGMENT_SIZE = 16 * 1024 * 1024
SEGMENT_NAME_LENGTH = 24
HEX_DIGITS = frozenset("0123456789ABCDEF")

# Servers up to 9.2 never use the last segment of a log file
LAST_SEGMENT_SKIPPED_UNTIL = (9, 2)


def is_segment_name(name: str) -> bool:
    prefix = name[:SEGMENT_NAME_LENGTH]
    return len(prefix) == SEGMENT_NAME_LENGTH and all(c in HEX_DIGITS for c in prefix)


@dataclass(frozen=True, order=True)
class SegmentId:
    """Timeline, log file and segment of an archived WAL file.

    Attributes:
        timeline: Timeline the segment was written on
        log_file: 4 GiB log file number
        segment: Segment index inside the log file
    """

    timeline: int
    log_file: int
    segment: int

    @classmethod
    def parse(cls, name: str) -> "SegmentId":
        """Parse the leading 24 characters of a WAL file name.

        Anything after the identifier (checksum, compression suffix) is ignored.
        """
        if not is_segment_name(name):
            raise SegmentFormatError(name)
        return cls(
            timeline=int(name[0:8], 16),
            log_file=int(name[8:16], 16),
            segment=int(name[16:24], 16),
        )

    def render(self) -> str:
        return f"{self.timeline:08X}{self.log_file:08X}{self.segment:08X}"

    def __str__(self) -> str:
        return self.render()

    def next(self, segments_per_wal_file: int) -> "SegmentId":
        """Calculate the next WAL segment on the same timeline."""
        seg = self.segment + 1
        log = self.log_file
        if seg >= segments_per_wal_file:
            seg = 0
            log += 1
        return replace(self, log_file=log, segment=seg)

    def with_timeline(self, timeline: int) -> "SegmentId":
        return replace(self, timeline=timeline)


def parse_server_version(version) -> tuple[int, int]:
    """Turn a catalog version such as "9.6", 9.2 or "13" into (major, minor)."""
    text = str(version).strip()
    major, _, minor = text.partition(".")
    try:
        return int(major), int(minor or 0)
    except ValueError:
        raise ConfigurationError(f"invalid server version: {version!r}")


def segments_per_wal_file(wal_segment_size: int, db_version=None) -> int:
    if wal_segment_size <= 0 or WAL_FILE_SIZE % wal_segment_size != 0:
        raise ConfigurationError(
            f"WAL segment size {wal_segment_size} does not divide {WAL_FILE_SIZE} bytes"
        )

    count = WAL_FILE_SIZE // wal_segment_size
    if db_version is not None and parse_server_version(db_version) <= LAST_SEGMENT_SKIPPED_UNTIL:
        count -= 1

    if count <= 0:
        raise ConfigurationError(
            f"WAL segment size {wal_segment_size} leaves no usable segment per WAL file"
        )
    return count
