from __future__ import annotations

import json
import sys
import tomllib
from pathlib import Path

import yaml


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            print(f"Invalid TOML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        return data
    if suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            print(f"Invalid YAML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        if data is None:
            return {}
        if not isinstance(data, dict):
            print(f"YAML config must be a mapping: {path}", file=sys.stderr)
            sys.exit(1)
        return data
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        print(f"Invalid JSON in config file {path}: {exc}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(data, dict):
        print(f"JSON config must be a mapping: {path}", file=sys.stderr)
        sys.exit(1)
    return data


def resolve_static_paths(value: object) -> dict[str, str | None]:
    """Static mappings from config: a table ``from -> to`` or a list of paths."""
    if not value:
        return {}
    if isinstance(value, dict):
        return {str(key): (str(dest) if dest else None) for key, dest in value.items()}
    if isinstance(value, (list, tuple)):
        return {str(item): None for item in value}
    return {str(value): None}


def resolve_list(value: object) -> list[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if str(item).strip()]
    return [item.strip() for item in str(value).split(",") if item.strip()]


def resolve_scoped_data(value: object, config_path: Path) -> dict[str, dict]:
    if not value:
        return {}
    if not isinstance(value, dict) or not all(isinstance(v, dict) for v in value.values()):
        print(f"scoped_data must map paths to tables: {config_path}", file=sys.stderr)
        sys.exit(1)
    return value
