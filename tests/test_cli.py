"""Tests for the command-line entry point."""

from __future__ import annotations

import asyncio
import logging

import pytest

from cloudflare_ddns import cli
from cloudflare_ddns.config import dict_to_config
from cloudflare_ddns.providers.base import ProviderError
from cloudflare_ddns.providers.cloudflare import CloudFlareProvider
from cloudflare_ddns.public_ip import PublicIPSource
from cloudflare_ddns.updater import DNSRecordError, DNSUpdater, UpdaterState


@pytest.fixture
def config():
    return dict_to_config(
        {
            "cloudflare": {
                "api_token": "cf-token",
                "zone_id": "zone-123",
                "domain": "home.example.com",
                "proxied": "true",
            },
            "updater": {
                "max_retries": 4,
                "retry_delay": 2,
                "update_interval": 90,
                "ip_source_url": "https://ip.example.net/json",
            },
        },
    )


class FailingUpdater:
    """Updater stand-in whose initialization fails."""

    def __init__(self, error: Exception) -> None:
        self.error = error
        self.ran = False

    async def initialize(self) -> None:
        raise self.error

    async def run_forever(self) -> None:
        self.ran = True


class TestBuildUpdater:
    """Tests for build_updater."""

    def test_wiring(self, config):
        updater = cli.build_updater(config)

        assert isinstance(updater, DNSUpdater)
        assert updater.state is UpdaterState.UNINITIALIZED
        assert updater.domain == "home.example.com"
        assert updater.update_interval == 90
        assert updater.retry_handler.max_retries == 4
        assert updater.retry_handler.retry_delay == 2

        assert isinstance(updater.provider, CloudFlareProvider)
        assert updater.provider.zone_id == "zone-123"
        assert updater.provider.proxied is True

        assert isinstance(updater.ip_source, PublicIPSource)
        assert updater.ip_source.url == "https://ip.example.net/json"


class TestRun:
    """Tests for run."""

    @pytest.mark.parametrize(
        "error",
        [DNSRecordError("DNS record not found"), ProviderError("Forbidden", 403)],
    )
    def test_initialization_failure_exits(self, caplog, error):
        updater = FailingUpdater(error)

        with caplog.at_level(logging.CRITICAL, logger="cloudflare_ddns.cli"):
            with pytest.raises(SystemExit) as exc_info:
                asyncio.run(cli.run(updater))  # type: ignore[arg-type]

        assert exc_info.value.code == 1
        assert updater.ran is False
        assert caplog.messages[-1].startswith("Initialization failed: ")


class TestMain:
    """Tests for main."""

    def test_config_error_exits(self, monkeypatch, tmp_path, capsys):
        monkeypatch.chdir(tmp_path)
        for name in ("API_TOKEN", "ZONE_ID", "DOMAIN", "PROXIED"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setattr("sys.argv", ["cloudflare-ddns"])

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 1
        assert "cloudflare.api_token" in capsys.readouterr().err

    def test_api_token_is_hidden_from_logs(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        for name, value in {
            "API_TOKEN": "cf-token",
            "ZONE_ID": "zone-123",
            "DOMAIN": "home.example.com",
            "PROXIED": "false",
        }.items():
            monkeypatch.setenv(name, value)
        monkeypatch.setattr("sys.argv", ["cloudflare-ddns"])

        calls = []

        def fake_setup_logging(config, secrets=()):
            calls.append(list(secrets))

        def fake_asyncio_run(coro):
            coro.close()

        monkeypatch.setattr(cli, "setup_logging", fake_setup_logging)
        monkeypatch.setattr(cli.asyncio, "run", fake_asyncio_run)

        cli.main()

        assert calls == [["cf-token"]]
