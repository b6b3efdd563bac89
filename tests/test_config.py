"""Tests for configuration module."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from cloudflare_ddns.config import (
    CloudFlareConfig,
    ConfigValidationError,
    LoggingConfig,
    UpdaterConfig,
    dict_to_config,
    load_config,
    load_config_from_env,
    load_config_from_file,
    merge_config,
    parse_args,
    validate_config_dict,
)

REQUIRED_ENV = {
    "API_TOKEN": "env-token",
    "ZONE_ID": "env-zone",
    "DOMAIN": "env.example.com",
    "PROXIED": "false",
}


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run each test in an empty directory so no config.toml is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def write_toml(directory: Path, content: str, name: str = "config.toml") -> Path:
    path = directory / name
    path.write_text(content, encoding="utf-8")
    return path


class TestCloudFlareConfig:
    """Tests for CloudFlareConfig."""

    def test_values(self):
        config = CloudFlareConfig(
            api_token="t",
            zone_id="z",
            domain="home.example.com",
            proxied=True,
        )
        assert config.proxied is True

    @pytest.mark.parametrize(("value", "expected"), [("true", True), ("false", False)])
    def test_proxied_strings(self, value, expected):
        config = CloudFlareConfig(api_token="t", zone_id="z", domain="d", proxied=value)
        assert config.proxied is expected

    @pytest.mark.parametrize("value", ["yes", "1", "TRUE", "", 1])
    def test_proxied_rejects_other_values(self, value):
        data = {
            "cloudflare": {
                "api_token": "t",
                "zone_id": "z",
                "domain": "d",
                "proxied": value,
            },
        }
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_config_dict(data)
        error_msg = str(exc_info.value)
        assert "cloudflare.proxied" in error_msg
        assert "Must be either 'true' or 'false'" in error_msg

    def test_invalid_token_value_not_shown(self):
        data = {
            "cloudflare": {
                "api_token": 987654321012,
                "zone_id": "z",
                "domain": "d",
                "proxied": True,
            },
        }
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_config_dict(data)
        error_msg = str(exc_info.value)
        assert "cloudflare.api_token" in error_msg
        assert "Expected str, got int." in error_msg
        assert "987654321012" not in error_msg


class TestUpdaterConfig:
    """Tests for UpdaterConfig."""

    def test_default_values(self):
        config = UpdaterConfig()
        assert config.max_retries == 3
        assert config.retry_delay == 5
        assert config.update_interval == 60
        assert config.ip_source_url == "https://api.ipify.org?format=json"
        assert config.http_timeout == 30


class TestLoggingConfig:
    """Tests for LoggingConfig."""

    def test_default_values(self):
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.file_enabled is False
        assert config.file_path == "/var/log/cloudflare-ddns.log"


class TestMergeConfig:
    """Tests for merge_config function."""

    def test_simple_merge(self):
        base = {"a": 1, "b": 2}
        override = {"b": 3, "c": 4}
        result = merge_config(base, override)
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self):
        base = {"updater": {"max_retries": 3, "retry_delay": 5}}
        override = {"updater": {"retry_delay": 1}}
        result = merge_config(base, override)
        assert result == {"updater": {"max_retries": 3, "retry_delay": 1}}

    def test_base_not_modified(self):
        base = {"updater": {"max_retries": 3}}
        merge_config(base, {"updater": {"max_retries": 5}})
        assert base == {"updater": {"max_retries": 3}}


class TestDictToConfig:
    """Tests for dict_to_config function."""

    def test_full_dict(self):
        data = {
            "cloudflare": {
                "api_token": "t",
                "zone_id": "z",
                "domain": "home.example.com",
                "proxied": False,
            },
            "updater": {"max_retries": 5, "retry_delay": 1.5, "update_interval": 300},
            "logging": {"level": "DEBUG", "file_enabled": True, "file_path": "/tmp/test.log"},
        }
        config = dict_to_config(data)
        assert config.cloudflare.domain == "home.example.com"
        assert config.updater.max_retries == 5
        assert config.updater.retry_delay == 1.5
        assert config.updater.update_interval == 300
        assert config.logging.level == "DEBUG"

    def test_file_path_expanded(self):
        data = {
            "cloudflare": {"api_token": "t", "zone_id": "z", "domain": "d", "proxied": True},
            "logging": {"file_path": "~/ddns.log"},
        }
        config = dict_to_config(data)
        assert config.logging.file_path == str(Path("~/ddns.log").expanduser())


class TestLoadConfigFromFile:
    """Tests for load_config_from_file function."""

    def test_load_toml_file(self):
        toml_content = """
[cloudflare]
api_token = "file-token"
zone_id = "file-zone"
domain = "home.example.com"
proxied = true

[updater]
max_retries = 4
"""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
            f.write(toml_content)
            f.flush()
            config_path = Path(f.name)

        try:
            data = load_config_from_file(config_path)
            assert data["cloudflare"]["proxied"] is True
            assert data["updater"]["max_retries"] == 4
        finally:
            config_path.unlink()


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env function."""

    def test_maps_variables(self):
        data = load_config_from_env(
            {**REQUIRED_ENV, "MAX_RETRIES": "5", "LOG_LEVEL": "DEBUG", "OTHER": "x"},
        )
        assert data == {
            "cloudflare": {
                "api_token": "env-token",
                "zone_id": "env-zone",
                "domain": "env.example.com",
                "proxied": "false",
            },
            "updater": {"max_retries": "5"},
            "logging": {"level": "DEBUG"},
        }

    def test_empty_values_ignored(self):
        assert load_config_from_env({"API_TOKEN": "", "ZONE_ID": ""}) == {}


class TestParseArgs:
    """Tests for parse_args function."""

    def test_default_args(self):
        args = parse_args([])
        assert args.config is None
        assert args.zone_id is None
        assert args.domain is None
        assert args.proxied is None
        assert args.max_retries is None
        assert args.retry_delay is None
        assert args.update_interval is None
        assert args.ip_source_url is None
        assert args.log_level is None
        assert args.log_file_enabled is None
        assert args.log_file_path is None

    def test_custom_args(self):
        args = parse_args(
            ["--max-retries", "5", "--retry-delay", "2.5", "--log-level", "DEBUG"],
        )
        assert args.max_retries == 5
        assert args.retry_delay == 2.5
        assert args.log_level == "DEBUG"

    def test_config_path(self):
        args = parse_args(["--config", "/path/to/config.toml"])
        assert args.config == Path("/path/to/config.toml")

    def test_proxied_flags(self):
        assert parse_args(["--proxied"]).proxied is True
        assert parse_args(["--no-proxied"]).proxied is False

    def test_proxied_flags_exclusive(self):
        with pytest.raises(SystemExit):
            parse_args(["--proxied", "--no-proxied"])

    def test_log_file_enabled_disabled(self):
        assert parse_args(["--log-file-enabled"]).log_file_enabled is True
        assert parse_args(["--log-file-disabled"]).log_file_enabled is False


class TestLoadConfig:
    """Tests for load_config priority and errors."""

    def test_from_environment(self):
        config = load_config(parse_args([]), environ=REQUIRED_ENV)
        assert config.cloudflare.api_token == "env-token"
        assert config.cloudflare.zone_id == "env-zone"
        assert config.cloudflare.proxied is False
        assert config.updater.max_retries == 3

    def test_numeric_env_values_coerced(self):
        environ = {
            **REQUIRED_ENV,
            "MAX_RETRIES": "5",
            "RETRY_DELAY": "0.5",
            "UPDATE_INTERVAL": "120",
        }
        config = load_config(parse_args([]), environ=environ)
        assert config.updater.max_retries == 5
        assert config.updater.retry_delay == 0.5
        assert config.updater.update_interval == 120

    def test_priority(self, isolated_cwd):
        write_toml(
            isolated_cwd,
            """
[cloudflare]
api_token = "file-token"
zone_id = "file-zone"
domain = "file.example.com"
proxied = true

[updater]
max_retries = 7
update_interval = 30
""",
        )
        environ = {"ZONE_ID": "env-zone", "MAX_RETRIES": "2"}
        args = parse_args(["--max-retries", "9", "--no-proxied"])

        config = load_config(args, environ=environ)

        assert config.cloudflare.api_token == "file-token"
        assert config.cloudflare.zone_id == "env-zone"
        assert config.cloudflare.domain == "file.example.com"
        assert config.cloudflare.proxied is False
        assert config.updater.max_retries == 9
        assert config.updater.update_interval == 30

    def test_explicit_config_path(self, isolated_cwd):
        path = write_toml(
            isolated_cwd,
            """
[cloudflare]
api_token = "t"
zone_id = "z"
domain = "d.example.com"
proxied = false
""",
            name="custom.toml",
        )
        config = load_config(parse_args(["--config", str(path)]), environ={})
        assert config.cloudflare.domain == "d.example.com"

    def test_missing_required_values(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(parse_args([]), environ={"DOMAIN": "home.example.com"})
        error_msg = str(exc_info.value)
        assert "cloudflare.api_token" in error_msg
        assert "set API_TOKEN" in error_msg
        assert "cloudflare.zone_id" in error_msg
        assert "cloudflare.proxied" in error_msg
        assert "cloudflare.domain" not in error_msg

    def test_malformed_proxied(self):
        environ = {**REQUIRED_ENV, "PROXIED": "maybe"}
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(parse_args([]), environ=environ)
        error_msg = str(exc_info.value)
        assert "cloudflare.proxied" in error_msg
        assert '"maybe"' in error_msg

    def test_invalid_number(self):
        environ = {**REQUIRED_ENV, "MAX_RETRIES": "many"}
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(parse_args([]), environ=environ)
        error_msg = str(exc_info.value)
        assert "updater.max_retries" in error_msg
        assert "int" in error_msg
        assert "many" in error_msg

    def test_zero_retries_rejected(self):
        environ = {**REQUIRED_ENV, "MAX_RETRIES": "0"}
        with pytest.raises(ConfigValidationError, match="updater.max_retries"):
            load_config(parse_args([]), environ=environ)

    def test_config_file_not_found(self, isolated_cwd):
        args = parse_args(["--config", str(isolated_cwd / "missing.toml")])
        with pytest.raises(ConfigValidationError, match="not found"):
            load_config(args, environ=REQUIRED_ENV)

    def test_invalid_toml(self, isolated_cwd):
        write_toml(isolated_cwd, "[cloudflare\napi_token = ")
        with pytest.raises(ConfigValidationError, match="Failed to parse") as exc_info:
            load_config(parse_args([]), environ=REQUIRED_ENV)
        assert exc_info.value.config_path == Path("config.toml")

    def test_error_shows_config_path(self, isolated_cwd):
        write_toml(isolated_cwd, '[updater]\nmax_retries = "invalid"\n')
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(parse_args([]), environ=REQUIRED_ENV)
        assert 'Configuration error in "config.toml"' in str(exc_info.value)
