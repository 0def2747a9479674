"""Render verdicts for the monitoring system."""

from services.verdict import Verdict

EXIT_FATAL = 127

_INTERVAL_UNITS = (
    ("d", 86400),
    ("h", 3600),
    ("m", 60),
    ("s", 1),
)


def format_interval(seconds: int | float) -> str:
    """Compact duration such as 1d2h3m4s; zero units are left out."""
    remaining = int(seconds)
    if remaining <= 0:
        return "0s"

    parts = []
    for unit, size in _INTERVAL_UNITS:
        count, remaining = divmod(remaining, size)
        if count:
            parts.append(f"{count}{unit}")
    return "".join(parts)


def format_nagios(service: str, verdict: Verdict) -> str:
    line = f"{service.upper()} {verdict.status.name} - {verdict.summary}"
    if verdict.perfdata:
        line += " | " + " ".join(p.render() for p in verdict.perfdata)
    return "\n".join([line, *verdict.details])


def format_human(service: str, verdict: Verdict) -> str:
    lines = [
        f"Service        : {service.upper()}",
        f"Returns        : {verdict.exit_code} ({verdict.status.name})",
        f"Message        : {verdict.summary}",
    ]
    for detail in verdict.details:
        lines.append(f"Long message   : {detail}")
    for perf in verdict.perfdata:
        lines.append(f"Perfdata       : {perf.render()}")
    return "\n".join(lines)


FORMATTERS = {
    "nagios": format_nagios,
    "human": format_human,
}


def render(service: str, verdict: Verdict, output: str = "nagios") -> str:
    return FORMATTERS[output](service, verdict)
