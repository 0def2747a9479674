import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from colorama import init
from dotenv import load_dotenv

from cli.validateconfig import validate_config
from commands.registry import SERVICE_LABELS, build_dispatcher
from console_utils import configure_messenger
from custom_logging import ProbeLogger
from services.exceptions import ConfigurationError, ProbeError
from services.output import EXIT_FATAL, FORMATTERS, render


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="check_pgbackrest",
        description="Monitoring probe for pgBackRest backups and archived WAL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check that no WAL is missing between archive min and max
  check_pgbackrest --service archives --stanza main --repo-path /var/lib/pgbackrest/archive

  # At least 2 full backups, the latest one younger than a day
  check_pgbackrest --service retention --stanza main --retention-full 2 --retention-age 1d

  # Values can also come from a .env file
  check_pgbackrest --service archives --env-file /etc/check_pgbackrest.env
    """
    )

    parser.add_argument(
        "-s", "--service",
        choices=sorted(SERVICE_LABELS),
        help="Service to check"
    )
    parser.add_argument("-l", "--list", action="store_true", help="List available services and exit")
    parser.add_argument("-S", "--stanza", help="pgBackRest stanza to check (env: PGBACKREST_STANZA)")
    parser.add_argument(
        "-P", "--repo-path",
        help="Archive root holding <stanza>/<archive-id>/ (env: PGBACKREST_REPO_PATH)"
    )
    parser.add_argument("--wal-segsize", help="WAL segment size, e.g. 16MB (env: PGBACKREST_WAL_SEGSIZE)")
    parser.add_argument("--suffix", default=".gz", help="Suffix of archived WAL files (default: .gz)")
    parser.add_argument("--retention-full", type=int, help="Minimum number of full backups")
    parser.add_argument("--retention-age", help="Maximum age of the latest backup, e.g. 1d or 36h")
    parser.add_argument("--pgbackrest-bin", help="pgbackrest executable (env: PGBACKREST_BIN)")
    parser.add_argument("--pgbackrest-config", help="pgBackRest configuration file (env: PGBACKREST_CONFIG)")
    parser.add_argument("--info-file", help="Read the `pgbackrest info --output=json` report from a file")
    parser.add_argument("-O", "--output", choices=sorted(FORMATTERS), default="nagios", help="Output format")
    parser.add_argument("--env-file", help="Environment file to load (default: .env)")
    parser.add_argument("--log-file", help="Also write log messages to this file")
    parser.add_argument("--debug", action="store_true", help="Print debug messages on stderr")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    init()
    parser = build_parser()
    args = parser.parse_args(argv)

    logger = ProbeLogger(log_file=args.log_file, level=logging.DEBUG if args.debug else logging.WARNING)
    messenger = configure_messenger(logger=logger.logger, enable_colors=sys.stderr.isatty())

    try:
        if args.env_file:
            if not Path(args.env_file).is_file():
                raise ConfigurationError(f"Environment file not found: {args.env_file}")
            load_dotenv(args.env_file)
        else:
            load_dotenv()

        dispatcher = build_dispatcher(logger)

        if args.list:
            for name, description in dispatcher.available_services():
                print(f"{name:<12}{description}")
            return 0

        if not args.service:
            raise ConfigurationError("--service is required (see --list)")

        config = validate_config(args)
        if args.debug:
            messenger.section_header("Configuration")
            messenger.config_item("Service", config.service)
            messenger.config_item("Stanza", config.stanza)
            messenger.config_item("Repo path", config.repo_path)
            messenger.config_item("WAL segment size", config.wal_segsize)
            messenger.config_item("Info file", config.info_file)

        verdict = dispatcher.dispatch(config.service, config)
        print(render(SERVICE_LABELS[config.service], verdict, config.output))
        return verdict.exit_code

    except ProbeError as e:
        messenger.critical(str(e))
        return EXIT_FATAL

    except OSError as e:
        messenger.critical(f"I/O error: {e}")
        return EXIT_FATAL

    finally:
        logger.close()


if __name__ == "__main__":
    sys.exit(main())
