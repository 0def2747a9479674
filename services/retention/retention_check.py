import time

from services.catalog.pgbackrest_info import CatalogReport
from services.interfaces import ILogger
from services.output import format_interval
from services.verdict import PerfData, Verdict


def _backup_stop(backup: dict) -> int:
    return int(backup.get("timestamp", {}).get("stop", 0))


class BackupRetentionCheck:
    """
    Checks the backup set reported by pgBackRest against a retention policy:
    a minimum number of full backups and a maximum age of the latest backup.
    """

    def __init__(self, report: CatalogReport, logger: ILogger,
                 retention_full: int | None = None, retention_age: int | None = None,
                 now: float | None = None):
        self._report = report
        self._logger = logger
        self.retention_full = retention_full
        self.retention_age = retention_age
        self._now = now

    def validate(self) -> Verdict:
        backups = self._report.backups
        if not backups:
            self._logger.error("No backup found in pgBackRest info")
            return Verdict.critical("no backup found")

        full_count = sum(1 for b in backups if b.get("type") == "full")
        latest = max(backups, key=_backup_stop)
        now = self._now if self._now is not None else time.time()
        latest_age = max(0, int(now - _backup_stop(latest)))

        details = [
            f"full={full_count}",
            f"latest={latest.get('label', 'unknown')}",
            f"latest_age={format_interval(latest_age)}",
        ]
        perfdata = [
            PerfData("full", full_count),
            PerfData("latest_age", latest_age, "s"),
        ]

        problems = []
        if self.retention_full is not None and full_count < self.retention_full:
            problems.append(f"not enough full backup: {full_count} < {self.retention_full}")
        if self.retention_age is not None and latest_age > self.retention_age:
            problems.append(
                f"backups are too old: {format_interval(latest_age)} > {format_interval(self.retention_age)}"
            )

        if problems:
            for message in problems:
                self._logger.error(message)
            return Verdict.critical(", ".join(problems), details=details, perfdata=perfdata)

        self._logger.info(f"Retention policy satisfied: {full_count} full backups, latest {latest.get('label')}")
        return Verdict.ok("backups policy checks ok", details=details, perfdata=perfdata)
