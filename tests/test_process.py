"""Tests for process module."""

import psutil
import pytest
from immuadmin_service import process
from immuadmin_service.errors import ProcessScanError


class FakeProc:
    def __init__(self, pid, name, exe=None):
        self.info = {"pid": pid, "name": name, "exe": exe}


@pytest.fixture
def process_table(monkeypatch):
    """Replace the psutil process table with a fixed list."""
    table = [
        FakeProc(1, "systemd", "/usr/lib/systemd/systemd"),
        FakeProc(100, "bash"),
        FakeProc(200, "immudb", "/usr/sbin/immudb"),
        FakeProc(300, "immudb.exe"),
        FakeProc(400, None),
    ]
    monkeypatch.setattr(process.psutil, "process_iter", lambda attrs: iter(table))
    return table


def test_find_by_name_returns_first_match(process_table):
    """Test that the first matching process is returned."""
    record = process.ProcessScanner(exclude_pids=()).find_by_name("immudb")

    assert record is not None
    assert record.pid == 200
    assert record.exe == "/usr/sbin/immudb"


def test_find_by_name_substring_match(process_table):
    """Test that matching tolerates platform suffixes."""
    scanner = process.ProcessScanner(exclude_pids=[200])

    record = scanner.find_by_name("immudb")

    assert record is not None
    assert record.name == "immudb.exe"


def test_find_by_name_no_match(process_table):
    """Test that a missing process is not an error."""
    assert process.ProcessScanner(exclude_pids=()).find_by_name("immugw") is None


def test_find_by_name_skips_own_pid(monkeypatch):
    """Test that the scanning process never matches itself."""
    own_pid = process.os.getpid()
    monkeypatch.setattr(
        process.psutil, "process_iter", lambda attrs: iter([FakeProc(own_pid, "immuadmin")])
    )

    assert process.ProcessScanner().find_by_name("immuadmin") is None


def test_processes_handles_missing_name(process_table):
    """Test that inaccessible names become empty strings."""
    records = list(process.ProcessScanner().processes())

    assert len(records) == 5
    assert records[-1].name == ""


def test_scan_failure_raises(monkeypatch):
    """Test that a failing process table query is surfaced."""

    def broken(attrs):
        raise psutil.AccessDenied()

    monkeypatch.setattr(process.psutil, "process_iter", broken)

    with pytest.raises(ProcessScanError):
        process.ProcessScanner().find_by_name("immudb")
