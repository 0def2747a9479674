"""Tests for verdict rendering."""

from __future__ import annotations

import pytest

from services.output import EXIT_FATAL, format_human, format_interval, format_nagios, render
from services.verdict import PerfData, Status, Verdict


class TestFormatInterval:
    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "0s"),
            (-5, "0s"),
            (59, "59s"),
            (60, "1m"),
            (3605, "1h5s"),
            (90061, "1d1h1m1s"),
            (12.9, "12s"),
        ],
    )
    def test_intervals(self, seconds, expected):
        assert format_interval(seconds) == expected


class TestFormatNagios:
    def test_status_line_with_perfdata(self):
        verdict = Verdict.ok(
            "3 WAL archived, latest archived since 1m",
            details=["min WAL: 000000010000000000000001"],
            perfdata=[PerfData("num_archives", 3), PerfData("latest_archive_age", 60, "s")],
        )

        text = format_nagios("WAL_ARCHIVES", verdict)

        assert text.splitlines() == [
            "WAL_ARCHIVES OK - 3 WAL archived, latest archived since 1m"
            " | num_archives=3 latest_archive_age=60s",
            "min WAL: 000000010000000000000001",
        ]

    def test_without_perfdata(self):
        text = format_nagios("WAL_ARCHIVES", Verdict.unknown("no archived WAL found"))
        assert text == "WAL_ARCHIVES UNKNOWN - no archived WAL found"


class TestFormatHuman:
    def test_lines(self):
        verdict = Verdict.critical("max WAL not found: 000000010000000000000009")

        text = format_human("WAL_ARCHIVES", verdict)

        assert "Service        : WAL_ARCHIVES" in text
        assert "Returns        : 2 (CRITICAL)" in text
        assert "Message        : max WAL not found: 000000010000000000000009" in text


class TestExitCodes:
    @pytest.mark.parametrize(
        "status,code",
        [(Status.OK, 0), (Status.WARNING, 1), (Status.CRITICAL, 2), (Status.UNKNOWN, 3)],
    )
    def test_status_codes(self, status, code):
        assert Verdict(status, "msg").exit_code == code

    def test_fatal_code_is_distinct(self):
        assert EXIT_FATAL not in {s.exit_code for s in Status}

    def test_render_dispatches_on_output(self):
        verdict = Verdict.warning("max WAL is not the latest archive")
        assert render("WAL_ARCHIVES", verdict, "nagios").startswith("WAL_ARCHIVES WARNING - ")
        assert render("WAL_ARCHIVES", verdict, "human").startswith("Service")
