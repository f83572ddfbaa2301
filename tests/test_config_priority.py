from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from namestone_sync.config.config import Settings, load_settings, requireApiSettings
from namestone_sync.domain.exceptions import ConfigError
from namestone_sync.main import app

runner = CliRunner()

ENV_NAMES = (
    "NAMESTONE_DOMAIN",
    "NAMESTONE_API_KEY",
    "NAMESTONE_API_URL",
    "NAMESTONE_AUTH_SCHEME",
    "NAMESTONE_TIMEOUT_SECONDS",
    "NAMESTONE_BATCH_SIZE",
    "NAMESTONE_BATCH_DELAY_SECONDS",
    "NAMESTONE_LOG_LEVEL",
    "NAMESTONE_LOG_DIR",
    "NAMESTONE_REPORT_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ENV_NAMES:
        # setenv first so values loaded from .env are rolled back after the test
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults():
    loaded = load_settings(config_path=None, cli_overrides={})

    assert loaded.settings == Settings()
    assert loaded.settings.batch_size == 50
    assert loaded.settings.batch_delay_seconds == 1.0
    assert loaded.settings.auth_scheme == "raw"
    assert loaded.sources_used == []


def test_priority_cli_over_env_over_config(tmp_path: Path, monkeypatch):
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        "\n".join([
            'domain: "cfg.eth"',
            'api_key: "cfg_key"',
            "batch_size: 10",
            "timeout_seconds: 5",
        ]),
        encoding="utf-8",
    )

    # ENV overrides config
    monkeypatch.setenv("NAMESTONE_DOMAIN", "env.eth")
    monkeypatch.setenv("NAMESTONE_API_KEY", "env_key")
    monkeypatch.setenv("NAMESTONE_BATCH_SIZE", "20")

    # CLI overrides env
    loaded = load_settings(config_path=str(cfg), cli_overrides={"domain": "cli.eth", "api_key": None})

    assert loaded.settings.domain == "cli.eth"
    assert loaded.settings.api_key == "env_key"
    assert loaded.settings.batch_size == 20
    assert loaded.settings.timeout_seconds == 5.0
    assert loaded.sources_used == ["config", "env", "cli"]


def test_dotenv_file_is_loaded_without_overriding_env(tmp_path: Path, monkeypatch):
    (tmp_path / ".env").write_text(
        "NAMESTONE_DOMAIN=dotenv.eth\nNAMESTONE_API_KEY=dotenv_key\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("NAMESTONE_DOMAIN", "process.eth")

    loaded = load_settings(config_path=None, cli_overrides={})

    assert loaded.settings.domain == "process.eth"
    assert loaded.settings.api_key == "dotenv_key"


def test_null_yaml_values_fall_back_to_defaults(tmp_path: Path):
    cfg = tmp_path / "config.yml"
    cfg.write_text("batch_size:\nbatch_delay_seconds:\nlog_dir:\ndomain: cfg.eth\n", encoding="utf-8")

    loaded = load_settings(config_path=str(cfg), cli_overrides={})

    assert loaded.settings.batch_size == 50
    assert loaded.settings.batch_delay_seconds == 1.0
    assert loaded.settings.log_dir == "./logs"
    assert loaded.settings.domain == "cfg.eth"


def test_non_numeric_yaml_value_is_config_error(tmp_path: Path):
    cfg = tmp_path / "config.yml"
    cfg.write_text("batch_size: [1, 2]\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="batch_size"):
        load_settings(config_path=str(cfg), cli_overrides={})


def test_cli_null_yaml_value_does_not_crash(tmp_path: Path):
    cfg = tmp_path / "config.yml"
    cfg.write_text("batch_size:\n", encoding="utf-8")

    result = runner.invoke(app, ["--config", str(cfg), "validate"])

    assert result.exit_code == 1
    assert not isinstance(result.exception, TypeError)
    assert "Usage: namestone-sync validate" in result.output


def test_invalid_values_raise_config_error(monkeypatch):
    monkeypatch.setenv("NAMESTONE_BATCH_SIZE", "many")
    with pytest.raises(ConfigError):
        load_settings(config_path=None, cli_overrides={})


def test_invalid_auth_scheme_is_rejected():
    with pytest.raises(ConfigError, match="auth_scheme"):
        load_settings(config_path=None, cli_overrides={"auth_scheme": "basic"})


def test_zero_batch_size_is_rejected():
    with pytest.raises(ConfigError):
        load_settings(config_path=None, cli_overrides={"batch_size": 0})


def test_missing_config_file_is_an_error(tmp_path: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_settings(config_path=str(tmp_path / "absent.yml"), cli_overrides={})


def test_require_api_settings_lists_missing():
    with pytest.raises(ConfigError) as exc:
        requireApiSettings(Settings(domain=None, api_key=None))

    assert exc.value.missing == ["NAMESTONE_DOMAIN", "NAMESTONE_API_KEY"]
    requireApiSettings(Settings(domain="example.eth", api_key="k"))


def test_cli_bad_log_level_exits_1(tmp_path: Path):
    result = runner.invoke(app, ["--log-level", "LOUD", "validate", "x.csv"])

    assert result.exit_code == 1
    assert "Unsupported log level" in result.output


def test_run_header_masks_api_key(tmp_path: Path):
    csv_path = tmp_path / "p.csv"
    csv_path.write_text("username,ethereumAddress\nalice,0x1\n", encoding="utf-8")

    result = runner.invoke(
        app,
        [
            "--log-dir", str(tmp_path / "logs"),
            "--report-dir", str(tmp_path / "reports"),
            "--domain", "example.eth",
            "--api-key", "cli_secret_value_123456",
            "import", str(csv_path), "--dry-run",
        ],
    )

    assert result.exit_code == 0
    assert "domain=example.eth api_key=***" in result.output
    assert "cli_secret_value_123456" not in result.output
    assert "API key loaded: cli_secr..." in result.output
