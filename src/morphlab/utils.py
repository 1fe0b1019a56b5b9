"""
Utility functions for the morphology tool: settings and kernel parsing.
"""
from __future__ import annotations

import copy
import os
from typing import Any, Dict, Optional

import yaml

from morphlab.errors import InvalidArgument
from morphlab.kernel import StructuringElement


# ============================================================================
# Settings
# ============================================================================

DEFAULT_SETTINGS: Dict[str, Any] = {
    "threshold": 128,
    "workers": 1,
    "kernel": {"dimension": 3, "rows": None},
    "pipeline": {"operations": []},
    "output": None,
    "display": {"cell_size": 24, "window_width": 480, "window_height": 360},
    "logging": {"level": "WARNING"},
}


def merge_settings(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlay ``override`` on a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_settings(path: str) -> Dict[str, Any]:
    """Load a YAML configuration file and merge it over the defaults."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Settings file must define a dictionary at the top level")

    return merge_settings(DEFAULT_SETTINGS, data)


# ============================================================================
# Kernel helpers
# ============================================================================

def parse_kernel_rows(text: str) -> StructuringElement:
    """
    Parse a compact kernel description such as ``"x1x/111/x1x"``.

    Rows are separated by ``/`` (or ``;``); cells are ``1`` (foreground),
    ``0`` (background) or ``x`` (don't care).
    """
    rows = [row.strip() for row in text.replace(";", "/").split("/") if row.strip()]
    if not rows:
        raise InvalidArgument("Kernel description is empty")
    return StructuringElement.from_rows(rows)


def kernel_from_settings(settings: Dict[str, Any]) -> StructuringElement:
    """Build the structuring element described by the ``kernel`` settings section."""
    kernel_cfg: Dict[str, Any] = settings.get("kernel") or {}
    rows: Optional[Any] = kernel_cfg.get("rows")

    if rows:
        if isinstance(rows, str):
            return parse_kernel_rows(rows)
        return StructuringElement.from_rows([str(row) for row in rows])

    kernel = StructuringElement()
    kernel.resize(int(kernel_cfg.get("dimension", 1)))
    return kernel
