from .command_dispatcher import ServiceDispatcher
from services.catalog.pgbackrest_info import CatalogReport, InfoFileSource, PgBackRestInfoSource
from services.exceptions import ConfigurationError
from services.interfaces import ICatalogSource, ILogger
from services.retention.retention_check import BackupRetentionCheck
from services.verdict import Verdict
from services.walvalidation.wal_check import archive_directory, check_archives

SERVICE_LABELS = {
    "archives": "WAL_ARCHIVES",
    "retention": "BACKUPS_RETENTION",
}


def catalog_source(config, logger: ILogger) -> ICatalogSource:
    if config.info_file:
        return InfoFileSource(config.info_file, config.stanza, logger=logger)
    return PgBackRestInfoSource(
        config.stanza,
        command=config.pgbackrest_bin,
        config=config.pgbackrest_config,
        logger=logger,
    )


def build_dispatcher(logger: ILogger, source_factory=catalog_source, now: float | None = None) -> ServiceDispatcher:
    dispatcher = ServiceDispatcher()

    def load_report(config) -> CatalogReport:
        return CatalogReport(source_factory(config, logger).fetch())

    def archives_service(config) -> Verdict:
        report = load_report(config)
        if not report.is_healthy:
            logger.error(f"pgBackRest reports stanza status {report.status_code}: {report.status_message}")
            return Verdict.critical(report.status_message)
        if not config.repo_path:
            raise ConfigurationError("--repo-path is required for the archives service")

        directory = archive_directory(config.repo_path, config.stanza, report.archive_id)
        logger.info(f"Checking WAL archive in {directory}")
        return check_archives(
            report.archive_range(config.wal_segsize),
            directory,
            logger,
            suffix=config.suffix,
            now=now,
        )

    def retention_service(config) -> Verdict:
        report = load_report(config)
        if not report.is_healthy:
            logger.error(f"pgBackRest reports stanza status {report.status_code}: {report.status_message}")
            return Verdict.critical(report.status_message)

        check = BackupRetentionCheck(
            report,
            logger,
            retention_full=config.retention_full,
            retention_age=config.retention_age,
            now=now,
        )
        return check.validate()

    dispatcher.register_service("archives", archives_service,
                                "Check that every WAL segment between archive min and max is archived")
    dispatcher.register_service("retention", retention_service,
                                "Check the number of full backups and the age of the latest backup")

    return dispatcher
