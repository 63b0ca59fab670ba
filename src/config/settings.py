"""Unified config: session, scheduler, reconnect and recipe catalog sections.

Defaults: loaded from config/config.yaml.example (single source of truth, no code-level defaults
beyond the documented fallbacks below).
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from src.core.errors import ConfigurationInvalid

CONFIG_ENV_VAR = "TRADING_AGENT_CONFIG"

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_EXAMPLE_PATH = _PROJECT_ROOT / "config" / "config.yaml.example"

# Lazy-loaded example config (single source of truth for defaults)
_EXAMPLE_CONFIG: Optional[Dict[str, Any]] = None


def _load_example_config() -> Dict[str, Any]:
    """Load config.yaml.example as defaults. Empty when the example file is absent."""
    global _EXAMPLE_CONFIG
    if _EXAMPLE_CONFIG is None:
        if _EXAMPLE_PATH.exists():
            with open(_EXAMPLE_PATH, encoding="utf-8") as f:
                _EXAMPLE_CONFIG = yaml.safe_load(f) or {}
        else:
            _EXAMPLE_CONFIG = {}
    return _EXAMPLE_CONFIG


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into base. Override values take precedence."""
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _merged_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Merge config with example so missing keys come from config file."""
    return _deep_merge(_load_example_config(), cfg)


def _section(cfg: Dict[str, Any], section: str) -> Dict[str, Any]:
    s = cfg.get(section)
    return s if isinstance(s, dict) else {}


def read_config(config_path: Optional[str] = None) -> tuple[dict, str]:
    """Load YAML config (path, env var, or config/config.yaml). Returns (config, resolved_path)."""
    config_path = config_path or os.environ.get(CONFIG_ENV_VAR, "config/config.yaml")
    if not Path(config_path).exists():
        config_path = str(_EXAMPLE_PATH)
    config_path = str(Path(config_path).resolve())
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationInvalid(f"Could not read config {config_path}: {e}") from e
    if not isinstance(config, dict):
        raise ConfigurationInvalid(f"Config root must be a mapping: {config_path}")
    return config, config_path


def _blank(value: Any) -> bool:
    return value is None or not str(value).strip()


@dataclass(frozen=True)
class Configuration:
    """Session inputs. api_key, team and host are required; species blank -> None."""

    api_key: str
    team: str
    host: str
    species: Optional[str] = None
    snapshots_dir: str = "snapshots"

    def __post_init__(self):
        for name in ("api_key", "team", "host"):
            if _blank(getattr(self, name)):
                raise ConfigurationInvalid(f"{name} must not be blank")
        species = None if _blank(self.species) else str(self.species).strip()
        object.__setattr__(self, "species", species)
        if _blank(self.snapshots_dir):
            object.__setattr__(self, "snapshots_dir", "snapshots")

    @classmethod
    def from_dict(cls, session: Dict[str, Any]) -> "Configuration":
        return cls(
            api_key=session.get("api_key") or "",
            team=session.get("team") or "",
            host=session.get("host") or "",
            species=session.get("species"),
            snapshots_dir=session.get("snapshots_dir") or "snapshots",
        )


def get_session_config(config: Optional[Dict[str, Any]] = None) -> Configuration:
    """Return Configuration from the session section."""
    merged = _merged_config(config or {})
    return Configuration.from_dict(_section(merged, "session"))


def get_scheduler_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return scheduler config (interval_seconds, default 10)."""
    s = _section(_merged_config(config or {}), "scheduler")
    return {"interval_seconds": float(s.get("interval_seconds") or 10)}


def get_reconnect_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return reconnect config (delay_sec, default 3.0)."""
    s = _section(_merged_config(config or {}), "reconnect")
    delay = s.get("delay_sec")
    return {"delay_sec": float(delay) if delay is not None else 3.0}


def get_catalog_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return recipe catalog config: path (resolved against project root), team_aliases, species_aliases."""
    s = _section(_merged_config(config or {}), "catalog")
    path = s.get("path")
    if path and not Path(path).is_absolute():
        path = str(_PROJECT_ROOT / path)
    return {
        "path": path,
        "team_aliases": list(s.get("team_aliases") or []),
        "species_aliases": list(s.get("species_aliases") or []),
    }
