"""Tests for the immuadmin CLI."""

from pathlib import Path

import pytest
from click.testing import CliRunner
from immuadmin_service import controller, launcher, scheduler
from immuadmin_service.cli import cli
from immuadmin_service.config import Config
from immuadmin_service.files import ServiceFiles
from immuadmin_service.process import ProcessRecord, ProcessScanner
from immuadmin_service.service import ServiceInfo, ServiceStatus


class RecordingDaemon:
    calls = []

    def __init__(self, name, description, exec_path, log_dir=None):
        self.name = name

    def start(self):
        self.calls.append(("start", self.name))
        return ServiceInfo(status=ServiceStatus.RUNNING, message=f"Starting {self.name}:\t[  OK  ]")

    def stop(self):
        self.calls.append(("stop", self.name))
        return ServiceInfo(status=ServiceStatus.STOPPED, message=f"Stopping {self.name}:\t[  OK  ]")

    def status(self):
        self.calls.append(("status", self.name))
        return ServiceInfo(status=ServiceStatus.RUNNING, pid=99, message="active (running)")


class FakePopen:
    def __init__(self, cmd, **kwargs):
        FakePopen.commands.append(cmd)
        self.pid = 5150


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def obj(tmp_path):
    return {
        "argv": ["immuadmin"],
        "config": Config(
            install_dir=tmp_path / "bin",
            config_dir=tmp_path / "etc",
            data_root=tmp_path / "lib",
            log_root=tmp_path / "log",
            settle_seconds=0,
        ),
    }


@pytest.fixture
def admin(monkeypatch):
    monkeypatch.setattr(ServiceFiles, "is_admin", lambda self: True)


@pytest.fixture
def daemon(monkeypatch):
    RecordingDaemon.calls = []
    monkeypatch.setattr(controller, "get_daemon", RecordingDaemon)
    return RecordingDaemon


@pytest.fixture
def popen(monkeypatch):
    FakePopen.commands = []
    monkeypatch.setattr(scheduler.subprocess, "Popen", FakePopen)
    monkeypatch.setattr(launcher.subprocess, "Popen", FakePopen)
    return FakePopen


def test_help_lists_services(runner):
    """Test that the service help shows services and actions."""
    result = runner.invoke(cli, ["service", "--help"])

    assert result.exit_code == 0
    assert "immugw" in result.output
    assert "restart" in result.output
    assert "--remove-files" in result.output
    assert "--delayed" not in result.output


def test_requires_root(runner, obj, monkeypatch, daemon):
    """Test that non-root users are rejected."""
    monkeypatch.setattr(ServiceFiles, "is_admin", lambda self: False)

    result = runner.invoke(cli, ["service", "immudb", "start"], obj=obj)

    assert result.exit_code == 1
    assert "root user privileges" in result.output
    assert daemon.calls == []


def test_unknown_service(runner, obj, admin, daemon):
    """Test that an unknown service exits non-zero without daemon calls."""
    result = runner.invoke(cli, ["service", "bogus", "start"], obj=obj)

    assert result.exit_code == 1
    assert "invalid service argument specified: bogus" in result.output
    assert daemon.calls == []


def test_start(runner, obj, admin, daemon):
    """Test a plain start."""
    result = runner.invoke(cli, ["service", "immugw", "start"], obj=obj)

    assert result.exit_code == 0, result.output
    assert daemon.calls == [("start", "immugw")]
    assert "Starting immugw" in result.output


def test_status(runner, obj, admin, daemon):
    """Test the status report."""
    result = runner.invoke(cli, ["service", "immudb", "status"], obj=obj)

    assert result.exit_code == 0, result.output
    assert "immudb.service" in result.output
    assert "active (running)" in result.output


def test_restart_with_time_respawns(runner, obj, admin, daemon, popen):
    """Test that --time relaunches with the delayed marker and returns."""
    result = runner.invoke(cli, ["service", "immudb", "restart", "--time", "10"], obj=obj)

    assert result.exit_code == 0, result.output
    assert daemon.calls == []
    assert len(popen.commands) == 1
    assert popen.commands[0][-5:] == ["service", "immudb", "restart", "--delayed", "10"]
    assert "--time" not in popen.commands[0]


def test_delayed_restart_runs(runner, obj, admin, daemon, monkeypatch):
    """Test that the relaunched instance sleeps and then restarts."""
    slept = []
    monkeypatch.setattr(scheduler.time, "sleep", slept.append)

    result = runner.invoke(cli, ["service", "immudb", "restart", "--delayed", "10"], obj=obj)

    assert result.exit_code == 0, result.output
    assert slept == [10]
    assert daemon.calls == [("stop", "immudb"), ("start", "immudb")]
    assert "Stopping immudb" in result.output
    assert "Starting immudb" in result.output


def test_negative_time_rejected(runner, obj, admin, daemon):
    """Test that delays must be non-negative."""
    result = runner.invoke(cli, ["service", "immudb", "stop", "-t", "-5"], obj=obj)

    assert result.exit_code == 2
    assert daemon.calls == []


def test_detached_launch(runner, obj, popen, monkeypatch):
    """Test that --detached relaunches without the flag and prints the PID."""
    monkeypatch.setattr(ProcessScanner, "find_by_name", lambda self, name: None)
    obj["argv"] = ["immuadmin", "--detached", "service", "immudb", "status"]

    result = runner.invoke(cli, ["--detached", "service", "immudb", "status"], obj=obj)

    assert result.exit_code == 0, result.output
    assert "PID 5150" in result.output
    assert f"{Path(launcher.sys.executable).name} has been started" in result.output
    assert popen.commands[0][-3:] == ["service", "immudb", "status"]
    assert "--detached" not in popen.commands[0]


def test_detached_already_running(runner, obj, popen, monkeypatch):
    """Test that a running instance blocks a detached launch."""
    monkeypatch.setattr(
        ProcessScanner, "find_by_name", lambda self, name: ProcessRecord(pid=777, name="immuadmin")
    )
    obj["argv"] = ["immuadmin", "-d"]

    result = runner.invoke(cli, ["-d"], obj=obj)

    assert result.exit_code == 1
    assert "already running. Pid 777" in result.output
    assert popen.commands == []


def test_remove_files_missing_executable(runner, obj, admin, daemon):
    """Test that cleaning up an absent executable fails."""
    result = runner.invoke(cli, ["service", "immudbx", "--remove-files"], obj=obj)

    assert result.exit_code == 1
    assert "Program files removed" not in result.output


def test_remove_files_outside_install_dir(runner, obj, admin, daemon, tmp_path):
    """Test that --remove-files refuses a path as executable name."""
    victim = tmp_path / "outside" / "precious"
    victim.parent.mkdir()
    victim.write_text("keep me")

    result = runner.invoke(cli, ["service", str(victim), "--remove-files"], obj=obj)

    assert result.exit_code == 1
    assert victim.exists()


def test_verbose_forwarded_to_delayed_child(runner, obj, admin, daemon, popen):
    """Test that --verbose is passed on to the relaunched instance."""
    result = runner.invoke(cli, ["-v", "service", "immudb", "stop", "-t", "3"], obj=obj)

    assert result.exit_code == 0, result.output
    assert popen.commands[0][-6:] == ["--verbose", "service", "immudb", "stop", "--delayed", "3"]
