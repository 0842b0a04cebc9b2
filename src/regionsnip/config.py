"""Configuration management for RegionSnip.

Configuration priority (highest to lowest):
1. CLI overrides (passed to load_config)
2. Environment variables (REGIONSNIP_*)
3. Config file (~/.config/regionsnip/config.yaml)
4. Built-in defaults
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Any

import yaml
from platformdirs import user_config_dir, user_runtime_dir

from .errors import ConfigurationError

log = logging.getLogger(__name__)

ENV_PREFIX = "REGIONSNIP"
CONFIG_DIR = Path(user_config_dir("regionsnip"))
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.yaml"

DEFAULT_PROMPT = "Drag to select an area. Press Esc to cancel."
CAPTURE_BACKENDS = {"auto", "gdk", "wayland-capture"}


def _default_lock_file() -> Path:
    return Path(user_runtime_dir("regionsnip")) / "session.lock"


@dataclass
class Config:
    """RegionSnip configuration."""

    # Screen reading
    capture_backend: str = "auto"
    wayland_capture: str = "wayland-capture"

    # Encoding defaults
    default_quality: int = 80
    region_scale: float = 1.0
    full_scale: float = 0.75

    # Overlay
    prompt: str = DEFAULT_PROMPT
    overlay_opacity: float = 0.25
    overlay_hide_delay_ms: int = 150

    # Notifications
    enable_notification: bool = True
    notification_timeout_ms: int = 3000

    # Paths
    lock_file: Path = field(default_factory=_default_lock_file)

    def __post_init__(self):
        if isinstance(self.lock_file, str):
            self.lock_file = Path(self.lock_file)


PATH_KEYS = {"lock_file"}
INT_KEYS = {"default_quality", "overlay_hide_delay_ms", "notification_timeout_ms"}
FLOAT_KEYS = {"region_scale", "full_scale", "overlay_opacity"}
BOOL_KEYS = {"enable_notification"}


def _env(name: str) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}_{name}")


def _config_path_from_env() -> Optional[Path]:
    value = _env("CONFIG") or _env("CONFIG_PATH")
    if value:
        return Path(value).expanduser()
    return None


def _load_config_file(path: Path, strict: bool = False) -> dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as exc:
        if strict:
            raise ConfigurationError(f"Failed to parse config file {path}: {exc}")
        return {}

    if not isinstance(data, dict):
        if strict:
            raise ConfigurationError(f"Config file {path} must be a mapping")
        return {}

    return data


def _expand_path(value: Any) -> Any:
    if value is None:
        return value
    return str(Path(value).expanduser())


def config_defaults() -> dict:
    return {
        "capture_backend": "auto",
        "wayland_capture": "wayland-capture",
        "default_quality": 80,
        "region_scale": 1.0,
        "full_scale": 0.75,
        "prompt": DEFAULT_PROMPT,
        "overlay_opacity": 0.25,
        "overlay_hide_delay_ms": 150,
        "enable_notification": True,
        "notification_timeout_ms": 3000,
        "lock_file": str(_default_lock_file()),
    }


def _load_env_overrides() -> dict:
    config: dict[str, Any] = {}

    for key in config_defaults():
        value = _env(key.upper())
        if value is None:
            continue
        if key in PATH_KEYS:
            config[key] = _expand_path(value)
        elif key in INT_KEYS:
            try:
                config[key] = int(value)
            except ValueError:
                continue
        elif key in FLOAT_KEYS:
            try:
                config[key] = float(value)
            except ValueError:
                continue
        elif key in BOOL_KEYS:
            config[key] = value.lower() in ("true", "1", "yes", "on")
        else:
            config[key] = value

    return config


def _usable_file_values(file_config: dict) -> dict:
    """Keep the file values that pass validation; the rest fall back to defaults.

    Unknown keys are reported by --validate-config, not here.
    """
    usable = {}
    for key, value in file_config.items():
        if key not in Config.__dataclass_fields__:
            continue
        errors = validate_config_dict({key: value})
        if errors:
            log.warning("Ignoring config value: %s", "; ".join(errors))
            continue
        usable[key] = value
    return usable


def resolve_config_path(config_path: Optional[Path] = None) -> Path:
    return config_path or _config_path_from_env() or DEFAULT_CONFIG_PATH


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[dict] = None,
    strict: bool = False,
) -> Config:
    """Load configuration from all sources."""
    resolved_path = resolve_config_path(config_path)

    config_dict = config_defaults()
    file_config = _load_config_file(resolved_path, strict=strict)
    config_dict.update(_usable_file_values(file_config))
    config_dict.update(_load_env_overrides())

    if overrides:
        for key, value in overrides.items():
            if value is not None:
                config_dict[key] = value

    for key in PATH_KEYS:
        if key in config_dict and config_dict[key] is not None:
            config_dict[key] = _expand_path(config_dict[key])

    return Config(**config_dict)


# Global config instance (lazy loaded)
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def config_schema() -> dict:
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": {
            "capture_backend": {"type": "string", "enum": sorted(CAPTURE_BACKENDS)},
            "wayland_capture": {"type": "string"},
            "default_quality": {"type": "integer", "minimum": 1, "maximum": 100},
            "region_scale": {"type": "number", "minimum": 0.1, "maximum": 1.0},
            "full_scale": {"type": "number", "minimum": 0.1, "maximum": 1.0},
            "prompt": {"type": "string"},
            "overlay_opacity": {"type": "number", "minimum": 0.0, "maximum": 1.0},
            "overlay_hide_delay_ms": {"type": "integer", "minimum": 0},
            "enable_notification": {"type": "boolean"},
            "notification_timeout_ms": {"type": "integer", "minimum": 0},
            "lock_file": {"type": "string"},
        },
        "additionalProperties": False,
    }


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config_dict(data: Any) -> list[str]:
    errors: list[str] = []
    if not isinstance(data, dict):
        return ["Config must be a mapping/object"]

    props = config_schema()["properties"]

    for key in data.keys():
        if key not in props:
            errors.append(f"Unknown config key: {key}")

    for key, value in data.items():
        if key not in props:
            continue
        rule = props[key]
        expected = rule["type"]
        if expected == "string" and not isinstance(value, str):
            errors.append(f"{key} must be a string")
            continue
        if expected == "integer" and not _is_int(value):
            errors.append(f"{key} must be an integer")
            continue
        if expected == "number" and not _is_number(value):
            errors.append(f"{key} must be a number")
            continue
        if expected == "boolean" and not isinstance(value, bool):
            errors.append(f"{key} must be a boolean")
            continue

        if "enum" in rule and value not in rule["enum"]:
            errors.append(f"{key} must be one of: {', '.join(rule['enum'])}")
        if "minimum" in rule and value < rule["minimum"]:
            errors.append(f"{key} must be >= {rule['minimum']}")
        if "maximum" in rule and value > rule["maximum"]:
            errors.append(f"{key} must be <= {rule['maximum']}")

    return errors


def validate_config_file(config_path: Optional[Path] = None) -> list[str]:
    path = resolve_config_path(config_path)
    if not path.exists():
        return []
    try:
        data = _load_config_file(path, strict=True)
    except ConfigurationError as exc:
        return [str(exc)]
    return validate_config_dict(data)


def config_to_dict(config: Config) -> dict:
    return {
        "capture_backend": config.capture_backend,
        "wayland_capture": config.wayland_capture,
        "default_quality": config.default_quality,
        "region_scale": config.region_scale,
        "full_scale": config.full_scale,
        "prompt": config.prompt,
        "overlay_opacity": config.overlay_opacity,
        "overlay_hide_delay_ms": config.overlay_hide_delay_ms,
        "enable_notification": config.enable_notification,
        "notification_timeout_ms": config.notification_timeout_ms,
        "lock_file": str(config.lock_file),
    }
