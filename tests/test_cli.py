"""
Tests for argument parsing and process exit codes.
"""

from unittest.mock import patch

import pytest

from portsync import cli
from portsync.errors import BootstrapError, LoginFailedError, TransportError


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("portsync.cli.setup_logging"):
        yield


def test_load_settings_from_flags():
    settings = cli.load_settings([
        "--qbituser", "user", "--qbitpass", "pass",
        "--qbithost", "localhost", "--qbitport", "8080",
        "--gluetunhost", "gluetun", "--gluetunport", "8000",
        "--interval", "60", "--timeout", "2.5",
    ])

    assert settings.qbit_username == "user"
    assert settings.qbit_password == "pass"
    assert settings.qbit_url == "http://localhost:8080"
    assert settings.gluetun_url == "http://gluetun:8000"
    assert settings.interval == 60
    assert settings.timeout == 2.5


def test_load_settings_port_file():
    settings = cli.load_settings([
        "--qbithost", "localhost", "--qbitport", "8080",
        "--gluetunport", "0", "--gluetunportfile", "/path/to/portfile",
        "--interval", "0",
    ])
    assert settings.gluetun_port_file == "/path/to/portfile"
    assert not settings.use_gluetun_api
    assert settings.single_shot


def test_invalid_config_exits(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.load_settings(["--gluetunport", "0", "--gluetunportfile", ""])
    assert excinfo.value.code == 2
    assert "Invalid config" in capsys.readouterr().err


def test_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.load_settings(["--version"])
    assert excinfo.value.code == 0
    assert "portsync" in capsys.readouterr().out


@pytest.fixture
def runner():
    with patch("portsync.cli.PortSyncRunner") as runner_class, patch("portsync.cli.signal.signal"):
        yield runner_class.return_value


def test_main_success(runner):
    assert cli.main(["--gluetunhost", "gluetun"]) == 0
    runner.run.assert_called_once()
    runner.close.assert_called_once()


def test_main_bootstrap_failure(runner):
    runner.run.side_effect = BootstrapError(LoginFailedError())
    assert cli.main([]) == 1
    runner.close.assert_called_once()


def test_main_single_shot_failure(runner):
    runner.run.side_effect = TransportError("gluetun down")
    assert cli.main(["--interval", "0"]) == 1


def test_main_installs_signal_handlers():
    with patch("portsync.cli.PortSyncRunner") as runner_class, patch("portsync.cli.signal.signal") as signal_mock:
        cli.main(["--interval", "60"])

    handlers = {call.args[0]: call.args[1] for call in signal_mock.call_args_list}
    assert set(handlers) == {cli.signal.SIGINT, cli.signal.SIGTERM}

    handlers[cli.signal.SIGTERM](cli.signal.SIGTERM, None)
    runner_class.return_value.stop.assert_called_once()
