import logging

import pytest

from fetch_url import cli
from fetch_url.config import Settings
from fetch_url.logging_setup import configure_logging


def test_settings_defaults():
    settings = Settings.from_env({})

    assert settings.download_limit == 40000
    assert settings.port == 3037
    assert settings.transport == "stdio"
    assert settings.request_timeout is None
    assert settings.log_dir is None


def test_settings_read_environment():
    settings = Settings.from_env(
        {
            "DEFAULT_LIMIT": "5000",
            "PORT": "8080",
            "MCP_TRANSPORT": "HTTP",
            "FETCH_TIMEOUT": "7.5",
            "LOG_LEVEL": "debug",
        }
    )

    assert settings.download_limit == 5000
    assert settings.port == 8080
    assert settings.transport == "http"
    assert settings.request_timeout == 7.5
    assert settings.log_level == "debug"


def test_invalid_numbers_fall_back_to_defaults():
    settings = Settings.from_env({"DEFAULT_LIMIT": "lots", "PORT": "", "FETCH_TIMEOUT": "soon"})

    assert settings.download_limit == 40000
    assert settings.port == 3037
    assert settings.request_timeout is None


def test_cli_flags_override_environment():
    args = cli.build_parser().parse_args(["--http", "--port", "9000", "--log-level", "WARNING"])

    settings = cli.resolve_settings(args, Settings(port=3037))

    assert settings.transport == "http"
    assert settings.port == 9000
    assert settings.log_level == "WARNING"


@pytest.fixture
def quiet_cli(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    monkeypatch.delenv("MCP_TRANSPORT", raising=False)


def test_main_runs_http_transport(quiet_cli, monkeypatch):
    captured = {}
    monkeypatch.setattr(cli, "run_http", lambda settings: captured.setdefault("settings", settings))

    assert cli.main(["--http", "--port", "4000"]) == 0
    assert captured["settings"].port == 4000


def test_main_defaults_to_stdio(quiet_cli, monkeypatch):
    calls = []

    async def fake_run_stdio(settings):
        calls.append(settings.transport)

    monkeypatch.setattr(cli, "run_stdio", fake_run_stdio)

    assert cli.main([]) == 0
    assert calls == ["stdio"]


def test_main_handles_interrupt_and_failure(quiet_cli, monkeypatch):
    def interrupted(settings):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "run_http", interrupted)
    assert cli.main(["--http"]) == 0

    def broken(settings):
        raise OSError("address already in use")

    monkeypatch.setattr(cli, "run_http", broken)
    assert cli.main(["--http"]) == 1


def test_configure_logging_writes_fresh_file(tmp_path):
    saved_handlers = logging.root.handlers[:]
    saved_level = logging.root.level
    try:
        path = configure_logging("debug", tmp_path / "logs")
        logging.getLogger("fetch_url.test").debug("hello from the test")

        assert path == tmp_path / "logs" / "latest-run.log"
        assert logging.root.level == logging.DEBUG
        for handler in logging.root.handlers:
            handler.flush()
        assert "hello from the test" in path.read_text(encoding="utf-8")
    finally:
        for handler in logging.root.handlers[:]:
            logging.root.removeHandler(handler)
            handler.close()
        for handler in saved_handlers:
            logging.root.addHandler(handler)
        logging.root.setLevel(saved_level)


def test_configure_logging_without_directory_returns_none():
    saved_handlers = logging.root.handlers[:]
    saved_level = logging.root.level
    try:
        assert configure_logging("WARNING") is None
        assert logging.root.level == logging.WARNING
    finally:
        for handler in logging.root.handlers[:]:
            logging.root.removeHandler(handler)
        for handler in saved_handlers:
            logging.root.addHandler(handler)
        logging.root.setLevel(saved_level)
