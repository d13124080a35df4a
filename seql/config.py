"""Configuration loader for identity generation and resolution."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

DEFAULTS: Dict[str, Any] = {
    "max_path_depth": 10,
    "confidence_threshold": 0.1,
    "fallback_to_root": True,
    "enable_svg_fingerprint": True,
    "include_utility_classes": False,
    "max_candidates": 20,
    "strict_mode": False,
    "enable_fallback": True,
    "match_urls_by_path_only": True,
    "narrowing_cache_size": 1000,
    "max_classes": 6,
    "max_attributes": 6,
    "max_text_length": 100,
    "source_tag": "seql",
}

ENV_PREFIX = "SEQL_"


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


@dataclass(slots=True)
class SeqlConfig:
    max_path_depth: int = DEFAULTS["max_path_depth"]
    confidence_threshold: float = DEFAULTS["confidence_threshold"]
    fallback_to_root: bool = DEFAULTS["fallback_to_root"]
    enable_svg_fingerprint: bool = DEFAULTS["enable_svg_fingerprint"]
    include_utility_classes: bool = DEFAULTS["include_utility_classes"]
    max_candidates: int = DEFAULTS["max_candidates"]
    strict_mode: bool = DEFAULTS["strict_mode"]
    enable_fallback: bool = DEFAULTS["enable_fallback"]
    match_urls_by_path_only: bool = DEFAULTS["match_urls_by_path_only"]
    narrowing_cache_size: int = DEFAULTS["narrowing_cache_size"]
    max_classes: int = DEFAULTS["max_classes"]
    max_attributes: int = DEFAULTS["max_attributes"]
    max_text_length: int = DEFAULTS["max_text_length"]
    source_tag: str = DEFAULTS["source_tag"]

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "SeqlConfig":
        data = dict(DEFAULTS)
        data.update({key: value for key, value in mapping.items() if key in DEFAULTS})
        return cls(
            max_path_depth=int(data["max_path_depth"]),
            confidence_threshold=float(data["confidence_threshold"]),
            fallback_to_root=_flag(data["fallback_to_root"]),
            enable_svg_fingerprint=_flag(data["enable_svg_fingerprint"]),
            include_utility_classes=_flag(data["include_utility_classes"]),
            max_candidates=int(data["max_candidates"]),
            strict_mode=_flag(data["strict_mode"]),
            enable_fallback=_flag(data["enable_fallback"]),
            match_urls_by_path_only=_flag(data["match_urls_by_path_only"]),
            narrowing_cache_size=int(data["narrowing_cache_size"]),
            max_classes=int(data["max_classes"]),
            max_attributes=int(data["max_attributes"]),
            max_text_length=int(data["max_text_length"]),
            source_tag=str(data["source_tag"]),
        )


def _load_toml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("rb") as fh:
        return tomllib.load(fh)


def load_config(config_path: Path | None = None) -> SeqlConfig:
    """Load configuration from environment, optional TOML file, and defaults."""

    env_map: Dict[str, Any] = {}
    for key, value in os.environ.items():
        if key.startswith(ENV_PREFIX):
            env_map[key[len(ENV_PREFIX):].lower()] = value

    path = config_path or Path("seql.toml")
    file_map: Dict[str, Any] = _load_toml(path).get("seql", {})

    merged = {**file_map, **env_map}
    return SeqlConfig.from_mapping(merged)
