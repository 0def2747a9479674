"""Shared fixtures: real archive trees laid out the way pgBackRest stores WAL."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import pytest

BASE_MTIME = 1_700_000_000.0
STANZA = "main"
ARCHIVE_ID = "9.6-1"


def wal_name(timeline: int, log_file: int, segment: int) -> str:
    return f"{timeline:08X}{log_file:08X}{segment:08X}"


def write_wal(directory: Path, name: str, mtime: float, suffix: str = "-0123456789abcdef.gz") -> Path:
    """Write an archived WAL file in its <timeline+log> subdirectory with a fixed mtime."""
    path = directory / name[:16] / f"{name}{suffix}"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x00" * 16)
    os.utime(path, (mtime, mtime))
    return path


def write_archive(directory: Path, names: list[str], start: float = BASE_MTIME, step: float = 60.0) -> list[Path]:
    """Archive names in order, one every `step` seconds."""
    return [write_wal(directory, name, start + i * step) for i, name in enumerate(names)]


def info_report(min_wal: str | None, max_wal: str | None, version: str = "9.6",
                status_code: int = 0, status_message: str = "ok", backups: list | None = None) -> dict:
    return {
        "name": STANZA,
        "status": {"code": status_code, "message": status_message},
        "db": [{"id": 1, "system-id": 6589162427331379001, "version": version}],
        "archive": [{"id": ARCHIVE_ID, "database": {"id": 1}, "min": min_wal, "max": max_wal}],
        "backup": backups if backups is not None else [],
    }


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("tests.check_pgbackrest")


@pytest.fixture
def repo_path(tmp_path: Path) -> Path:
    path = tmp_path / "archive"
    path.mkdir()
    return path


@pytest.fixture
def archive_dir(repo_path: Path) -> Path:
    """The <repo>/<stanza>/<archive-id> directory holding archived WAL."""
    path = repo_path / STANZA / ARCHIVE_ID
    path.mkdir(parents=True)
    return path


@pytest.fixture
def info_file(tmp_path: Path):
    """Factory writing a `pgbackrest info --output=json` report to disk."""

    def _write(report: dict) -> Path:
        path = tmp_path / "info.json"
        path.write_text(json.dumps([report]))
        return path

    return _write
