import logging
import sys
from enum import Enum
from typing import Optional, TextIO
from colorama import Fore, Style

# set on log records the messenger already printed, see ProbeLogger
ECHOED = "console_echo"

class MessageLevel(Enum):
    INFO = "info"
    VALUE = "value"
    FATAL = "fatal"

class ConsoleMessenger:
    """Operator-facing messages on stderr, colored and mirrored to the log.

    stdout is reserved for the monitoring output, so nothing here writes to it.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, enable_colors: bool = True,
                 stream: Optional[TextIO] = None):
        self.logger = logger
        self.enable_colors = enable_colors
        self.stream = stream
        self._color_map = {
            MessageLevel.INFO: Fore.CYAN,
            MessageLevel.VALUE: Fore.GREEN,
            MessageLevel.FATAL: Fore.RED + Style.BRIGHT,
        }
        self._log_level_map = {
            MessageLevel.INFO: logging.DEBUG,
            MessageLevel.VALUE: logging.DEBUG,
            MessageLevel.FATAL: logging.CRITICAL,
        }

    def _colored(self, message: str, level: MessageLevel) -> str:
        if not self.enable_colors:
            return message
        return f"{self._color_map[level]}{message}{Style.RESET_ALL}"

    def _emit(self, message: str, level: MessageLevel, plain: Optional[str] = None) -> None:
        print(self._colored(message, level), file=self.stream or sys.stderr)

        if self.logger:
            self.logger.log(self._log_level_map[level], plain or message, extra={ECHOED: True})

    def critical(self, message: str) -> None:
        """Fatal probe failure, distinct from a CRITICAL verdict"""
        self._emit(f"FATAL: {message}", MessageLevel.FATAL)

    def section_header(self, title: str) -> None:
        separator = "=" * len(title)
        for line in (separator, title, separator):
            self._emit(line, MessageLevel.INFO)

    def config_item(self, key: str, value) -> None:
        shown = "(not set)" if value in (None, "") else str(value)
        self._emit(f"  {key}: {self._colored(shown, MessageLevel.VALUE)}", MessageLevel.INFO,
                   plain=f"  {key}: {shown}")


def configure_messenger(logger: Optional[logging.Logger] = None, enable_colors: bool = True,
                        stream: Optional[TextIO] = None) -> ConsoleMessenger:
    """Messenger for the probe run, mirroring into logger when given"""
    return ConsoleMessenger(logger=logger, enable_colors=enable_colors, stream=stream)
