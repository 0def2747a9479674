import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from services.exceptions import ConfigurationError
from services.walvalidation.archive_scanner import DEFAULT_SUFFIX
from services.walvalidation.wal_segment import DEFAULT_WAL_SEGMENT_SIZE, segments_per_wal_file

_SIZE_UNITS = {
    "": 1,
    "B": 1,
    "KB": 1024,
    "MB": 1024 ** 2,
    "GB": 1024 ** 3,
}

_INTERVAL_UNITS = {
    "": 1,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}

_SIZE_RE = re.compile(r"^\s*(\d+)\s*([A-Za-z]*)\s*$")
_INTERVAL_PART_RE = re.compile(r"(\d+)\s*([smhdw]?)")


def parse_size(value) -> int:
    """Parse a size such as 16MB, 64 MB, 1GB or a plain number of bytes"""
    if isinstance(value, int):
        return value
    match = _SIZE_RE.match(str(value))
    if not match or match.group(2).upper() not in _SIZE_UNITS:
        raise ConfigurationError(f"Invalid size: {value!r}")
    return int(match.group(1)) * _SIZE_UNITS[match.group(2).upper()]


def parse_interval(value) -> int:
    """Parse an interval such as 1d, 36h, 1w2d or a plain number of seconds"""
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text or _INTERVAL_PART_RE.sub("", text).strip():
        raise ConfigurationError(f"Invalid interval: {value!r}")
    return sum(int(count) * _INTERVAL_UNITS[unit] for count, unit in _INTERVAL_PART_RE.findall(text))


@dataclass(frozen=True)
class ProbeConfig:
    service: str
    stanza: str
    repo_path: Optional[Path] = None
    wal_segsize: int = DEFAULT_WAL_SEGMENT_SIZE
    suffix: str = DEFAULT_SUFFIX
    retention_full: Optional[int] = None
    retention_age: Optional[int] = None
    pgbackrest_bin: str = "pgbackrest"
    pgbackrest_config: Optional[str] = None
    info_file: Optional[Path] = None
    output: str = "nagios"


def _pick(cli_value, environ: Mapping[str, str], env_name: str, default=None):
    if cli_value not in (None, ""):
        return cli_value
    return environ.get(env_name) or default


def validate_config(args, environ: Optional[Mapping[str, str]] = None) -> ProbeConfig:
    """
    Merge command line arguments with environment variables (loaded from
    .env by the caller) and check the preconditions of the selected service.

    Raises:
        ConfigurationError: when a required value is missing or invalid
    """
    environ = os.environ if environ is None else environ

    stanza = _pick(args.stanza, environ, "PGBACKREST_STANZA")
    if not stanza:
        raise ConfigurationError("Missing stanza. Use --stanza or PGBACKREST_STANZA")

    repo_path = _pick(args.repo_path, environ, "PGBACKREST_REPO_PATH")
    if args.service == "archives":
        if not repo_path:
            raise ConfigurationError("Missing repo path. Use --repo-path or PGBACKREST_REPO_PATH")
        if not Path(repo_path).is_dir():
            raise ConfigurationError(f"Repo path is not an existing directory: {repo_path}")

    wal_segsize = parse_size(_pick(args.wal_segsize, environ, "PGBACKREST_WAL_SEGSIZE", DEFAULT_WAL_SEGMENT_SIZE))
    # fail early on sizes that cannot split a WAL file
    segments_per_wal_file(wal_segsize)

    retention_full = args.retention_full
    if retention_full is not None and retention_full < 0:
        raise ConfigurationError("--retention-full must be a positive number")
    retention_age = parse_interval(args.retention_age) if args.retention_age else None
    if args.service == "retention" and retention_full is None and retention_age is None:
        raise ConfigurationError("The retention service needs --retention-full and/or --retention-age")

    info_file = Path(args.info_file) if args.info_file else None

    return ProbeConfig(
        service=args.service,
        stanza=stanza,
        repo_path=Path(repo_path) if repo_path else None,
        wal_segsize=wal_segsize,
        suffix=args.suffix,
        retention_full=retention_full,
        retention_age=retention_age,
        pgbackrest_bin=_pick(args.pgbackrest_bin, environ, "PGBACKREST_BIN", "pgbackrest"),
        pgbackrest_config=_pick(args.pgbackrest_config, environ, "PGBACKREST_CONFIG"),
        info_file=info_file,
        output=args.output,
    )
