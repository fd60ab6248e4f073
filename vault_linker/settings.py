"""Linker settings loaded from YAML, the environment and command-line overrides."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

ENV_PREFIX = "VAULT_LINKER_"

# environment variable suffix -> settings field
ENV_FIELDS = {
    "EXCLUDED_FOLDERS": "excluded_folders",
    "MAX_CANDIDATES": "max_candidates_before_skip",
    "IMPLICIT_ALIASES": "generate_implicit_aliases",
    "AUTO_LINKING": "auto_linking_enabled",
    "NOTE_EXTENSION": "note_extension",
    "DEBOUNCE_SECONDS": "debounce_seconds",
}


class ConfigurationError(ValueError):
    """Raised when linker settings are invalid."""


def parse_excluded_folders(value: Any) -> List[str]:
    """
    Accept ``"templates, archive"`` or ``["templates", "archive"]``.

    Surrounding slashes and blank entries are dropped.
    """

    if value is None:
        return []
    if isinstance(value, str):
        parts = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        parts = [str(part) for part in value]
    else:
        raise ValueError(f"Unsupported excluded folder value: {value!r}")
    cleaned = [part.strip().strip("/") for part in parts]
    return [part for part in cleaned if part]


class LinkerSettings(BaseModel):
    auto_linking_enabled: bool = True
    generate_implicit_aliases: bool = True
    max_candidates_before_skip: int = Field(3, gt=0)
    excluded_folders: List[str] = Field(default_factory=lambda: ["templates", "archive"])
    note_extension: str = ".md"
    debounce_seconds: float = Field(0.5, ge=0)

    @field_validator("excluded_folders", mode="before")
    @classmethod
    def _split_folders(cls, value: Any) -> List[str]:
        return parse_excluded_folders(value)

    @field_validator("note_extension")
    @classmethod
    def _dotted_extension(cls, value: str) -> str:
        value = value.strip()
        if value and not value.startswith("."):
            value = "." + value
        return value


def _read_yaml_config(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except OSError as exc:
        raise ConfigurationError(f"Cannot read settings file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Malformed settings file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping.")
    return data


def _environment_values(environ: Mapping[str, str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for suffix, field_name in ENV_FIELDS.items():
        raw = environ.get(ENV_PREFIX + suffix)
        if raw is not None and raw.strip() != "":
            values[field_name] = raw.strip()
    return values


def load_settings(
    config_path: Optional[Path] = None,
    env_file: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> LinkerSettings:
    """
    Build :class:`LinkerSettings` from, in increasing precedence, the YAML file at
    ``config_path``, ``VAULT_LINKER_*`` environment variables (after loading
    ``env_file`` or a local ``.env``) and ``overrides``. ``None`` overrides are ignored.
    """

    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv()

    values: Dict[str, Any] = {}
    if config_path is not None:
        values.update(_read_yaml_config(Path(config_path)))
    values.update(_environment_values(os.environ))
    if overrides:
        values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return LinkerSettings(**values)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


__all__ = [
    "ConfigurationError",
    "LinkerSettings",
    "load_settings",
    "parse_excluded_folders",
]
