"""Load snapshots and settings from YAML or JSON files."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml

from fleet_costing.config.settings import AnalysisSettings
from fleet_costing.config.snapshot import FleetSnapshot

logger = logging.getLogger(__name__)


def _read_mapping(path: str | Path) -> dict:
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level, got {type(data).__name__}")
    logger.debug("Loaded %s (%d top-level keys)", path, len(data))
    return data


def load_snapshot(path: str | Path) -> FleetSnapshot:
    """Read a ``FleetSnapshot`` from a YAML or JSON file.

    An optional ``settings`` key is ignored here; use ``load_settings``.
    """
    data = _read_mapping(path)
    data.pop("settings", None)
    return FleetSnapshot.model_validate(data)


def load_settings(path: str | Path) -> AnalysisSettings:
    """Read ``AnalysisSettings`` from a file.

    The file may hold the settings mapping directly or nest it under a
    ``settings`` key next to snapshot data.
    """
    data = _read_mapping(path)
    if "settings" in data and isinstance(data["settings"], dict):
        data = data["settings"]
    return AnalysisSettings.model_validate(data)
