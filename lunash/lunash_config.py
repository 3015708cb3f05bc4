from __future__ import annotations
import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from lunash.lunash_errors import SetupError

APP_NAME = "lunash"
SCRIPT_PATH_ENV = "LUA_SCRIPT_PATH"
DATA_DIR_ENV = "LUNASH_DATA_DIR"
CONFIG_ENV = "LUNASH_CONFIG"
LOG_LEVEL_ENV = "LUNASH_LOG_LEVEL"


def user_data_dir() -> Path:
    """Per-user application data directory for the current OS."""
    override = os.getenv(DATA_DIR_ENV)
    if override:
        return Path(override)
    match platform.system():
        case "Windows":
            appdata = os.getenv("LOCALAPPDATA")
            if appdata is not None:
                return Path(appdata) / APP_NAME
            return Path.home() / "AppData" / "Local" / APP_NAME
        case "Darwin":
            return Path.home() / "Library" / "Application Support" / APP_NAME
        case _:
            xdg = os.getenv("XDG_DATA_HOME")
            if xdg:
                return Path(xdg) / APP_NAME
            return Path.home() / ".local" / "share" / APP_NAME


def user_config_file() -> Path:
    override = os.getenv(CONFIG_ENV)
    if override:
        return Path(override)
    if platform.system() == "Windows":
        appdata = os.getenv("APPDATA")
        if appdata is not None:
            return Path(appdata) / APP_NAME / "settings.yaml"
    xdg = os.getenv("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / APP_NAME / "settings.yaml"


def split_search_path(value: Optional[str]) -> List[Path]:
    """Split a colon-separated directory list, dropping empty entries."""
    if not value:
        return []
    return [Path(p) for p in value.split(":") if p]


@dataclass
class Settings:
    log_level: str = "WARNING"
    data_dir: Path = field(default_factory=user_data_dir)
    # Directories from LUA_SCRIPT_PATH, then any listed in the settings file
    script_path: List[Path] = field(default_factory=list)
    http_timeout: Optional[float] = None
    http_headers: Dict[str, str] = field(default_factory=dict)

    @property
    def user_scripts_dir(self) -> Path:
        return self.data_dir / "scripts"


def _read_settings_file(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise SetupError(f"Cannot read settings file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SetupError(f"Settings file {path} must contain a mapping")
    return data


def load_settings(path: Optional[Path] = None) -> Settings:
    """Build settings from defaults, the YAML settings file and the environment."""
    cfg = _read_settings_file(path or user_config_file())
    settings = Settings()

    if cfg.get("log_level"):
        settings.log_level = str(cfg["log_level"]).upper()
    if os.getenv(LOG_LEVEL_ENV):
        settings.log_level = os.environ[LOG_LEVEL_ENV].upper()

    extra = cfg.get("script_path") or []
    if isinstance(extra, str):
        extra = [extra]
    if not isinstance(extra, list):
        raise SetupError("'script_path' must be a list of directories")
    settings.script_path = split_search_path(os.getenv(SCRIPT_PATH_ENV)) + [
        Path(os.path.expanduser(str(p))) for p in extra if p
    ]

    http_cfg = cfg.get("http") or {}
    if not isinstance(http_cfg, dict):
        raise SetupError("'http' must be a mapping")
    timeout = http_cfg.get("timeout")
    if timeout is not None:
        try:
            settings.http_timeout = float(timeout)
        except (TypeError, ValueError) as e:
            raise SetupError(f"Invalid http.timeout: {timeout!r}") from e
    headers = http_cfg.get("headers") or {}
    if not isinstance(headers, dict):
        raise SetupError("'http.headers' must be a mapping")
    settings.http_headers = {str(k): str(v) for k, v in headers.items()}
    return settings
