"""
Utilities for loading column-synonym, header-keyword and rate-card configuration.
"""
from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

CONFIG_PATH = Path(__file__).resolve().parent / "column_mappings.yaml"


def _slugify(value: Optional[str]) -> str:
    if not value:
        return ""
    return re.sub(r"[^a-z0-9]+", "", value.lower())


@lru_cache()
def load_mapping_config() -> Dict[str, Any]:
    if not CONFIG_PATH.exists():
        return {}
    with open(CONFIG_PATH, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def get_field_synonyms() -> Dict[str, List[str]]:
    """Canonical field name -> known raw-header variations."""
    fields = load_mapping_config().get("canonical_fields", {}) or {}
    return {name: [str(v) for v in (variants or [])] for name, variants in fields.items()}


def get_header_keywords() -> List[str]:
    return [str(kw).lower() for kw in load_mapping_config().get("header_keywords", []) or []]


def get_contract_presets() -> Dict[str, Dict[str, Any]]:
    return dict(load_mapping_config().get("contract_presets", {}) or {})


def get_contract_preset(provider_name: str) -> Optional[Dict[str, Any]]:
    """Look up a preset rate card, ignoring case and punctuation in the provider name."""
    presets = get_contract_presets()
    wanted = _slugify(provider_name)
    if not wanted:
        return None
    for name, values in presets.items():
        if _slugify(name) == wanted:
            return {"provider_name": name, **values}
    return None
