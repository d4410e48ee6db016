#!/usr/bin/env python3
"""Credential, view id and run-config discovery for the UA exporter."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import yaml

DEFAULT_CONF_DIR = "conf"
VIEW_ID_FILENAME = "view_id.txt"
CREDENTIALS_HELP_URL = (
    "https://developers.google.com/analytics/devguides/reporting/core/v4/quickstart/service-py"
)


class ConfigurationMissing(RuntimeError):
    pass


def find_credentials_file(conf_dir: Path) -> Path:
    candidates: List[Path] = sorted(path for path in conf_dir.glob("*.json") if path.is_file())
    if len(candidates) == 1:
        return candidates[0]
    if not candidates:
        problem = f"No credentials file found in {conf_dir}/."
    else:
        names = ", ".join(path.name for path in candidates)
        problem = f"Expected exactly one credentials file in {conf_dir}/, found {len(candidates)}: {names}."
    raise ConfigurationMissing(
        f"{problem}\n"
        f"Put your service account key in {conf_dir}/<id>.json.\n"
        f"To create one, follow: {CREDENTIALS_HELP_URL}"
    )


def read_view_id(conf_dir: Path) -> str:
    path = conf_dir / VIEW_ID_FILENAME
    if not path.is_file():
        raise ConfigurationMissing(f"Please put your view id in {path}")
    view_id = path.read_text(encoding="utf-8").strip()
    if not view_id:
        raise ConfigurationMissing(f"View id file is empty: {path}")
    return view_id


def load_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationMissing(f"Config file not found: {path}")
    suffix = path.suffix.lower()
    raw = path.read_text(encoding="utf-8")
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(raw)
    elif suffix == ".json":
        data = json.loads(raw)
    else:
        raise ConfigurationMissing("Unsupported config file extension. Use .yaml/.yml or .json.")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationMissing("Config root must be a mapping/object.")
    return data


def flatten_config(data: Dict[str, Any]) -> Dict[str, Any]:
    flattened: Dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            for nested_key, nested_value in value.items():
                flattened[f"{key}_{nested_key}"] = nested_value
        else:
            flattened[key] = value
    return flattened


def config_to_parser_defaults(config_data: Dict[str, Any]) -> Dict[str, Any]:
    cfg = flatten_config(config_data)
    scalar_map = {
        "conf_dir": "conf_dir",
        "paths_conf_dir": "conf_dir",
        "data_dir": "data_dir",
        "paths_data_dir": "data_dir",
        "output_data_dir": "data_dir",
        "logs_dir": "logs_dir",
        "paths_logs_dir": "logs_dir",
        "header_delimiter": "header_delimiter",
        "output_header_delimiter": "header_delimiter",
    }
    defaults: Dict[str, Any] = {}
    for key, dest in scalar_map.items():
        if key in cfg and cfg[key] is not None:
            defaults[dest] = str(cfg[key])
    return defaults
