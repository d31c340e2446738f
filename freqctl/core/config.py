"""Configuration loading with layered overrides."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from freqctl.core.logging import default_log_dir
from freqctl.lib.attributes import DEFAULT_SYSFS_ROOT
from freqctl.lib.counters import DEFAULT_MSR_PATH


PROJECT_CONFIG = ".freqctl.yaml"


@dataclass
class Settings:
    """Resolved freqctl settings."""

    sysfs_root: str = DEFAULT_SYSFS_ROOT
    msr_path: str = DEFAULT_MSR_PATH
    interval: float = 1.0
    log_dir: Path = field(default_factory=default_log_dir)


def user_config_path() -> Path:
    return Path.home() / ".config" / "freqctl" / "config.yaml"


def load_config_file(path: Path) -> dict[str, Any]:
    """Load a YAML config file if it exists."""
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def get_config_value(key: str) -> Any | None:
    """Get config value with project -> user -> None precedence."""
    # Project config
    data = load_config_file(Path(PROJECT_CONFIG))
    if key in data:
        return data[key]

    # User config
    data = load_config_file(user_config_path())
    if key in data:
        return data[key]

    return None


def load_settings() -> Settings:
    """Resolve every setting, falling back to built-in defaults."""
    settings = Settings()

    sysfs_root = get_config_value("sysfs_root")
    if sysfs_root:
        settings.sysfs_root = str(sysfs_root)

    msr_path = get_config_value("msr_path")
    if msr_path:
        settings.msr_path = str(msr_path)

    interval = get_config_value("interval")
    if interval is not None:
        try:
            settings.interval = float(interval)
        except (TypeError, ValueError):
            pass

    log_dir = get_config_value("log_dir")
    if log_dir:
        settings.log_dir = Path(str(log_dir)).expanduser()

    return settings
