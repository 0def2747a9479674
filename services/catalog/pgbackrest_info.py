import json
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from decorators.utility_available import check_utility_available
from services.exceptions import CatalogError, SegmentFormatError
from services.interfaces import ICatalogSource, ILogger
from services.walvalidation.wal_check import ArchiveRange
from services.walvalidation.wal_segment import DEFAULT_WAL_SEGMENT_SIZE

DEFAULT_COMMAND = "pgbackrest"
DEFAULT_TIMEOUT = 30


def select_stanza(report: Any, stanza: str) -> dict:
    """Pick one stanza out of the JSON produced by `pgbackrest info --output=json`."""
    if isinstance(report, dict):
        report = [report]
    if not isinstance(report, list):
        raise CatalogError("pgBackRest info output is not a list of stanzas")

    for entry in report:
        if isinstance(entry, dict) and entry.get("name", stanza) == stanza:
            return entry
    raise CatalogError(f"stanza '{stanza}' not found in pgBackRest info")


@check_utility_available("command", DEFAULT_COMMAND)
def fetch_info(stanza: str, command: str = DEFAULT_COMMAND, config: str | None = None, timeout: int = DEFAULT_TIMEOUT) -> dict:
    cmd = [command]
    if config:
        cmd.append(f"--config={config}")
    cmd += [f"--stanza={stanza}", "--output=json", "info"]

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise CatalogError(f"{command} info did not answer within {timeout}s")

    if result.returncode != 0:
        raise CatalogError(
            f"{command} info failed with exit code {result.returncode}: {result.stderr.strip()}"
        )

    try:
        report = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise CatalogError(f"{command} info returned invalid JSON: {e}")
    return select_stanza(report, stanza)


def load_info_file(path: Path | str, stanza: str) -> dict:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            report = json.load(f)
    except FileNotFoundError:
        raise CatalogError(f"info file not found: {path}")
    except json.JSONDecodeError as e:
        raise CatalogError(f"info file {path} contains invalid JSON: {e}")
    except (OSError, UnicodeDecodeError) as e:
        raise CatalogError(f"cannot read info file {path}: {e}")
    return select_stanza(report, stanza)


class PgBackRestInfoSource(ICatalogSource):
    def __init__(self, stanza: str, command: str = DEFAULT_COMMAND, config: str | None = None,
                 timeout: int = DEFAULT_TIMEOUT, logger: ILogger | None = None):
        self._stanza = stanza
        self._command = command
        self._config = config
        self._timeout = timeout
        self._logger = logger

    def fetch(self) -> dict:
        if self._logger:
            self._logger.info(f"Running {self._command} info for stanza '{self._stanza}'")
        return fetch_info(self._stanza, command=self._command, config=self._config, timeout=self._timeout)


class InfoFileSource(ICatalogSource):
    def __init__(self, path: Path | str, stanza: str, logger: ILogger | None = None):
        self._path = Path(path)
        self._stanza = stanza
        self._logger = logger

    def fetch(self) -> dict:
        if self._logger:
            self._logger.info(f"Reading pgBackRest info from {self._path}")
        return load_info_file(self._path, self._stanza)


@dataclass(frozen=True)
class CatalogReport:
    """Accessors over one stanza of the pgBackRest info report."""

    data: dict

    def _first(self, key: str) -> dict:
        items = self.data.get(key)
        if not isinstance(items, list) or not items or not isinstance(items[0], dict):
            raise CatalogError(f"pgBackRest info has no '{key}' section")
        return items[0]

    @property
    def status_code(self) -> int:
        status = self.data.get("status") or {}
        try:
            return int(status.get("code", 0))
        except (AttributeError, TypeError, ValueError):
            raise CatalogError(f"pgBackRest info reports an invalid status: {status!r}")

    @property
    def status_message(self) -> str:
        status = self.data.get("status")
        return str(status.get("message", "")) if isinstance(status, dict) else ""

    @property
    def is_healthy(self) -> bool:
        return self.status_code == 0

    @property
    def db_version(self) -> str:
        version = self._first("db").get("version")
        if version is None:
            raise CatalogError("pgBackRest info has no db version")
        return str(version)

    @property
    def archive_id(self) -> str:
        archive_id = self._first("archive").get("id")
        if not archive_id:
            raise CatalogError("pgBackRest info has no archive id")
        return str(archive_id)

    @property
    def backups(self) -> list[dict]:
        backups = self.data.get("backup", [])
        return backups if isinstance(backups, list) else []

    def archive_range(self, wal_segment_size: int = DEFAULT_WAL_SEGMENT_SIZE) -> ArchiveRange:
        archive = self._first("archive")
        min_wal, max_wal = archive.get("min"), archive.get("max")
        if not min_wal or not max_wal:
            raise CatalogError("pgBackRest info does not report archived WAL min/max")
        try:
            return ArchiveRange.from_names(min_wal, max_wal, wal_segment_size, self.db_version)
        except SegmentFormatError as e:
            raise CatalogError(f"pgBackRest info reports an invalid WAL name: {e}")
