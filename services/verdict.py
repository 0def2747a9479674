from dataclasses import dataclass, field
from enum import Enum


class Status(Enum):
    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3

    @property
    def exit_code(self) -> int:
        return self.value


@dataclass(frozen=True)
class PerfData:
    label: str
    value: int | float
    unit: str = ""

    def render(self) -> str:
        return f"{self.label}={self.value}{self.unit}"


@dataclass(frozen=True)
class Verdict:
    """Result of one service check, handed to the output formatter."""

    status: Status
    summary: str
    details: tuple[str, ...] = field(default_factory=tuple)
    perfdata: tuple[PerfData, ...] = field(default_factory=tuple)

    @classmethod
    def ok(cls, summary: str, details=(), perfdata=()) -> "Verdict":
        return cls(Status.OK, summary, tuple(details), tuple(perfdata))

    @classmethod
    def warning(cls, summary: str, details=(), perfdata=()) -> "Verdict":
        return cls(Status.WARNING, summary, tuple(details), tuple(perfdata))

    @classmethod
    def critical(cls, summary: str, details=(), perfdata=()) -> "Verdict":
        return cls(Status.CRITICAL, summary, tuple(details), tuple(perfdata))

    @classmethod
    def unknown(cls, summary: str, details=(), perfdata=()) -> "Verdict":
        return cls(Status.UNKNOWN, summary, tuple(details), tuple(perfdata))

    @property
    def exit_code(self) -> int:
        return self.status.exit_code
