"""Settings loaded from YAML with environment overrides.

Example ``resume_builder.yaml``::

    service:
      base_url: https://api.example.com
      timeout: 30
    limits:
      max_payload_mb: 45
      photo_max_dimension: 400
    export:
      scale: 2
    persistence:
      drop_blank_entries: false
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigError

ENV_CONFIG = "RESUME_BUILDER_CONFIG"
ENV_API_URL = "RESUME_BUILDER_API_URL"
ENV_TOKEN = "RESUME_BUILDER_TOKEN"


@dataclass(frozen=True)
class ServiceSettings:
    base_url: str = "http://localhost:3000"
    timeout: float = 30.0
    auth_token: str = ""


@dataclass(frozen=True)
class LimitSettings:
    max_payload_mb: float = 45.0
    photo_max_upload_bytes: int = 5 * 1024 * 1024
    photo_max_dimension: int = 400
    photo_quality: float = 0.6
    photo_max_encoded_kb: float = 500.0


@dataclass(frozen=True)
class ExportSettings:
    page_format: str = "A4"
    scale: float = 2.0
    margin_mm: float = 0.0
    image_quality: float = 0.98


@dataclass(frozen=True)
class PersistenceSettings:
    drop_blank_entries: bool = False


@dataclass(frozen=True)
class Settings:
    service: ServiceSettings = field(default_factory=ServiceSettings)
    limits: LimitSettings = field(default_factory=LimitSettings)
    export: ExportSettings = field(default_factory=ExportSettings)
    persistence: PersistenceSettings = field(default_factory=PersistenceSettings)


def _require_yaml():
    try:
        import yaml  # type: ignore

        return yaml
    except Exception as exc:  # pragma: no cover - runtime guard
        raise RuntimeError("PyYAML not installed. Run: pip install pyyaml") from exc


def load_yaml(path: Optional[str]) -> Dict[str, Any]:
    """Load a YAML mapping; returns {} if the path is unset, missing or empty."""
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    yaml = _require_yaml()
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return data


def _section(cls, raw: Any, name: str):
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    known = {f.name: f for f in fields(cls)}
    unknown = set(raw) - set(known)
    if unknown:
        raise ConfigError(f"Unknown key(s) in '{name}': {', '.join(sorted(unknown))}")
    values = {}
    for key, val in raw.items():
        default = getattr(cls(), key)
        if isinstance(default, bool):
            if not isinstance(val, bool):
                raise ConfigError(f"Invalid value for {name}.{key}: {val!r} (expected true or false)")
            values[key] = val
            continue
        try:
            values[key] = type(default)(val)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value for {name}.{key}: {val!r}") from exc
    return cls(**values)


def settings_from_dict(data: Dict[str, Any]) -> Settings:
    return Settings(
        service=_section(ServiceSettings, data.get("service"), "service"),
        limits=_section(LimitSettings, data.get("limits"), "limits"),
        export=_section(ExportSettings, data.get("export"), "export"),
        persistence=_section(PersistenceSettings, data.get("persistence"), "persistence"),
    )


def load_settings(path: Optional[str] = None) -> Settings:
    """Load settings from ``path`` (or ``$RESUME_BUILDER_CONFIG``), then apply env overrides."""
    settings = settings_from_dict(load_yaml(path or os.environ.get(ENV_CONFIG)))
    service = settings.service
    if os.environ.get(ENV_API_URL):
        service = replace(service, base_url=os.environ[ENV_API_URL])
    if os.environ.get(ENV_TOKEN):
        service = replace(service, auth_token=os.environ[ENV_TOKEN])
    return replace(settings, service=service)
