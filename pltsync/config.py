"""Global configuration management for pltsync."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from .text import Messages

DEFAULT_CONFIG_DIR = Path(os.path.expanduser("~")) / ".pltsync"
CONFIG_DIR = DEFAULT_CONFIG_DIR
CONFIG_FILE = CONFIG_DIR / "config.json"
_CONFIG_DIR_OVERRIDE: ContextVar[Path | None] = ContextVar(
    "pltsync_config_dir_override",
    default=None,
)
DEFAULT_DIALYZER = "dialyzer"
DEFAULT_ERL = "erl"
DEFAULT_PLT_NAME = "project.plt"
ENV_DIALYZER = "PLTSYNC_DIALYZER"
ENV_OTP_LIB_DIR = "PLTSYNC_OTP_LIB_DIR"


@dataclass
class Config:
    dialyzer: str = DEFAULT_DIALYZER
    erl: str = DEFAULT_ERL
    otp_lib_dir: str | None = None
    output_plt: str | None = None
    base_plts: list[str] = field(default_factory=list)
    ebin_dirs: list[str] = field(default_factory=list)
    strict_prefix: bool = False
    timeout: float | None = None


def _resolve_config_dir() -> Path:
    override = _CONFIG_DIR_OVERRIDE.get()
    return override if override is not None else CONFIG_DIR


def _resolve_config_file() -> Path:
    override = _CONFIG_DIR_OVERRIDE.get()
    if override is not None:
        return override / "config.json"
    return CONFIG_FILE


@contextmanager
def config_dir_context(path: Path | str | None):
    """Temporarily override the config directory for the current context."""

    if path is None:
        yield
        return
    dir_path = Path(path).expanduser().resolve()
    if dir_path.exists() and not dir_path.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {dir_path}")
    token = _CONFIG_DIR_OVERRIDE.set(dir_path)
    try:
        yield
    finally:
        _CONFIG_DIR_OVERRIDE.reset(token)


def default_plt_path() -> Path:
    return _resolve_config_dir() / DEFAULT_PLT_NAME


def load_config() -> Config:
    config_file = _resolve_config_file()
    if not config_file.exists():
        return Config()
    raw = json.loads(config_file.read_text(encoding="utf-8"))
    if not isinstance(raw, Mapping):
        raise ValueError(Messages.ERROR_CONFIG_JSON_INVALID)
    config = Config()
    _apply_config_payload(config, raw)
    return config


def save_config(config: Config) -> None:
    config_dir = _resolve_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    data: Dict[str, Any] = {
        "dialyzer": config.dialyzer,
        "erl": config.erl,
        "strict_prefix": bool(config.strict_prefix),
    }
    if config.otp_lib_dir:
        data["otp_lib_dir"] = config.otp_lib_dir
    if config.output_plt:
        data["output_plt"] = config.output_plt
    if config.base_plts:
        data["base_plts"] = list(config.base_plts)
    if config.ebin_dirs:
        data["ebin_dirs"] = list(config.ebin_dirs)
    if config.timeout is not None:
        data["timeout"] = config.timeout
    config_file = _resolve_config_file()
    config_file.write_text(
        json.dumps(data, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )


def config_from_json(
    payload: str | Mapping[str, object], *, base: Config | None = None
) -> Config:
    """Return a Config from a JSON string or mapping without saving it."""
    data = _coerce_config_payload(payload)
    config = Config() if base is None else _clone_config(base)
    _apply_config_payload(config, data)
    return config


def update_config(**changes: object) -> Config:
    """Apply ``changes`` on top of the stored config and persist the result."""
    config = config_from_json(dict(changes), base=load_config())
    save_config(config)
    return config


def resolve_dialyzer(configured: str | None) -> str:
    """Return the dialyzer executable from the environment or config."""
    env_value = (os.getenv(ENV_DIALYZER) or "").strip()
    if env_value:
        return env_value
    return (configured or "").strip() or DEFAULT_DIALYZER


def resolve_otp_lib_dir(configured: str | None) -> str | None:
    env_value = (os.getenv(ENV_OTP_LIB_DIR) or "").strip()
    if env_value:
        return env_value
    return configured or None


def resolve_output_plt(configured: str | None) -> Path:
    if configured:
        return Path(configured).expanduser()
    return default_plt_path()


def _coerce_config_payload(payload: str | Mapping[str, object]) -> Mapping[str, object]:
    if isinstance(payload, str):
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ValueError(Messages.ERROR_CONFIG_JSON_INVALID) from exc
    elif isinstance(payload, Mapping):
        data = dict(payload)
    else:
        raise ValueError(Messages.ERROR_CONFIG_JSON_INVALID)
    if not isinstance(data, Mapping):
        raise ValueError(Messages.ERROR_CONFIG_JSON_INVALID)
    return data


def _clone_config(config: Config) -> Config:
    return Config(
        dialyzer=config.dialyzer,
        erl=config.erl,
        otp_lib_dir=config.otp_lib_dir,
        output_plt=config.output_plt,
        base_plts=list(config.base_plts),
        ebin_dirs=list(config.ebin_dirs),
        strict_prefix=config.strict_prefix,
        timeout=config.timeout,
    )


def _apply_config_payload(config: Config, payload: Mapping[str, object]) -> None:
    if "dialyzer" in payload:
        config.dialyzer = _coerce_required_str(
            payload["dialyzer"], "dialyzer", DEFAULT_DIALYZER
        )
    if "erl" in payload:
        config.erl = _coerce_required_str(payload["erl"], "erl", DEFAULT_ERL)
    if "otp_lib_dir" in payload:
        config.otp_lib_dir = _coerce_optional_str(payload["otp_lib_dir"], "otp_lib_dir")
    if "output_plt" in payload:
        config.output_plt = _coerce_optional_str(payload["output_plt"], "output_plt")
    if "base_plts" in payload:
        config.base_plts = _coerce_str_list(payload["base_plts"], "base_plts")
    if "ebin_dirs" in payload:
        config.ebin_dirs = _coerce_str_list(payload["ebin_dirs"], "ebin_dirs")
    if "strict_prefix" in payload:
        config.strict_prefix = _coerce_bool(payload["strict_prefix"], "strict_prefix")
    if "timeout" in payload:
        config.timeout = _coerce_timeout(payload["timeout"], "timeout")


def _coerce_optional_str(value: object, field: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        cleaned = value.strip()
        return cleaned or None
    raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field))


def _coerce_required_str(value: object, field: str, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, str):
        cleaned = value.strip()
        return cleaned or default
    raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field))


def _coerce_str_list(value: object, field: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field))
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field))
        cleaned = item.strip()
        if cleaned and cleaned not in items:
            items.append(cleaned)
    return items


def _coerce_bool(value: object, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        cleaned = value.strip().lower()
        if cleaned in {"true", "1", "yes", "on"}:
            return True
        if cleaned in {"false", "0", "no", "off"}:
            return False
    raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field))


def _coerce_timeout(value: object, field: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field))
    if isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return None
        try:
            value = float(cleaned)
        except ValueError as exc:
            raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field)) from exc
    if isinstance(value, (int, float)):
        if value <= 0:
            return None
        return float(value)
    raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field))
