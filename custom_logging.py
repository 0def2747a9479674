import logging
import sys
from typing import Optional

from console_utils import ECHOED


class ProbeLogger:
    def __init__(self, name: str = "check_pgbackrest", log_file: Optional[str] = None,
                 level: int = logging.WARNING, stream=None):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(min(level, logging.INFO) if log_file else level)
        self.logger.handlers.clear()
        self.logger.propagate = False

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        # stdout belongs to the monitoring output
        console_handler = logging.StreamHandler(stream or sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        # the messenger already printed these
        console_handler.addFilter(lambda record: not getattr(record, ECHOED, False))
        self.logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(min(level, logging.INFO))
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    def info(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def debug(self, message: str) -> None:
        self.logger.debug(message)

    def close(self) -> None:
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)
