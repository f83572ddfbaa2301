from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from dotenv import find_dotenv, load_dotenv

from namestone_sync.domain.exceptions import ConfigError

DEFAULT_API_URL = "https://namestone.com/api/public_v1/set-names"
AUTH_SCHEMES = ("raw", "bearer")


@dataclass(frozen=True)
class Settings:
    # API
    domain: str | None = None
    api_key: str | None = None
    api_url: str = DEFAULT_API_URL
    auth_scheme: str = "raw"
    timeout_seconds: float = 30.0

    # Batching
    batch_size: int = 50
    batch_delay_seconds: float = 1.0

    # Logging / paths
    log_level: str = "INFO"
    log_dir: str = "./logs"
    report_dir: str = "./reports"


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


ENV_VARS: dict[str, str] = {
    "domain": "NAMESTONE_DOMAIN",
    "api_key": "NAMESTONE_API_KEY",
    "api_url": "NAMESTONE_API_URL",
    "auth_scheme": "NAMESTONE_AUTH_SCHEME",
    "timeout_seconds": "NAMESTONE_TIMEOUT_SECONDS",
    "batch_size": "NAMESTONE_BATCH_SIZE",
    "batch_delay_seconds": "NAMESTONE_BATCH_DELAY_SECONDS",
    "log_level": "NAMESTONE_LOG_LEVEL",
    "log_dir": "NAMESTONE_LOG_DIR",
    "report_dir": "NAMESTONE_REPORT_DIR",
}

INT_FIELDS = {"batch_size"}
FLOAT_FIELDS = {"timeout_seconds", "batch_delay_seconds"}


def _read_yaml_config(path: Path) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    if not path.is_file():
        raise ConfigError(f"Config path is not a file: {path}")
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")
    return data


def _env_get(name: str) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def _coerce(key: str, value):
    if value is None:
        return None
    try:
        if key in INT_FIELDS:
            return int(value)
        if key in FLOAT_FIELDS:
            return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from exc
    return str(value)


def load_settings(
    config_path: str | None,
    cli_overrides: dict,
    dotenv_path: str | None = None,
) -> LoadedSettings:
    """
    Назначение:
        Собирает итоговые настройки запуска.

    Алгоритм:
        - Priority: CLI > ENV (.env подгружается без перезаписи уже заданных переменных) > config > defaults
        - Числовые значения приводятся к типам, auth_scheme проверяется по списку.

    Ошибки:
        ConfigError — некорректный config-файл или значение.
    """
    sources: list[str] = []
    defaults = Settings()

    # 1) config file
    cfg: dict = {}
    if config_path:
        cfg = _read_yaml_config(Path(config_path))
        if cfg:
            sources.append("config")

    # 2) env (+ .env)
    envFile = dotenv_path or find_dotenv(usecwd=True)
    if envFile:
        load_dotenv(dotenv_path=envFile, override=False)
    env = {key: _env_get(var) for key, var in ENV_VARS.items()}
    if any(v is not None for v in env.values()):
        sources.append("env")

    # пустой ключ в YAML (batch_size:) означает "не задано"
    merged = {key: getattr(defaults, key) for key in ENV_VARS}
    for key in ENV_VARS:
        if cfg.get(key) is not None:
            merged[key] = cfg[key]

    for key, value in env.items():
        if value is not None:
            merged[key] = value

    # 3) apply CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")

    for k, v in cli_overrides.items():
        if v is None:
            continue
        merged[k] = v

    merged = {k: _coerce(k, v) for k, v in merged.items()}

    authScheme = (merged["auth_scheme"] or "").strip().lower()
    if authScheme not in AUTH_SCHEMES:
        raise ConfigError(f"Unsupported auth_scheme: {merged['auth_scheme']} (expected one of {', '.join(AUTH_SCHEMES)})")
    merged["auth_scheme"] = authScheme

    if merged["batch_size"] < 1:
        raise ConfigError(f"batch_size must be >= 1, got {merged['batch_size']}")
    if merged["batch_delay_seconds"] < 0:
        raise ConfigError(f"batch_delay_seconds must be >= 0, got {merged['batch_delay_seconds']}")

    settings = Settings(**merged)
    return LoadedSettings(settings=settings, sources_used=sources)


def requireApiSettings(settings: Settings) -> None:
    """
    Назначение:
        Проверяет наличие домена и API key — без них импорт невозможен.

    Ошибки:
        ConfigError со списком отсутствующих настроек.
    """
    missing = []
    if not settings.domain:
        missing.append("NAMESTONE_DOMAIN")
    if not settings.api_key:
        missing.append("NAMESTONE_API_KEY")
    if missing:
        raise ConfigError(f"missing required settings: {', '.join(missing)}", missing=missing)
