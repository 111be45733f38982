"""
YAML config with built-in defaults. The app and scripts read this;
library functions take explicit arguments instead.
"""
from __future__ import annotations

import copy
import os
from pathlib import Path

import yaml

CONFIG_PATH = Path("config/config.yaml")

DEFAULTS: dict = {
    "defaults": {
        "formula": "mpg ~ qsec",
        "group_by": "cyl",
        "conf_level": 0.95,
        "on_group_error": "raise",
    },
    "thresholds": {
        "std_resid_warn": 2.0,
    },
    "quality": {
        "allowed_cyl": [4, 6, 8],
        "allowed_gear": [3, 4, 5],
    },
    "plots": {
        "width": 640,
        "height": 360,
    },
}


def _merge(base: dict, override: dict) -> dict:
    out = copy.deepcopy(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_cfg(path: str | Path | None = None) -> dict:
    """Read the YAML file (TIDYREG_CONFIG or config/config.yaml) over DEFAULTS; a missing file means defaults."""
    path = Path(path or os.environ.get("TIDYREG_CONFIG", CONFIG_PATH))
    if not path.exists():
        return copy.deepcopy(DEFAULTS)
    with open(path, "r") as f:
        return _merge(DEFAULTS, yaml.safe_load(f) or {})
