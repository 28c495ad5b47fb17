"""Configuration helpers for the backlink engine."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml


@dataclass(frozen=True)
class EngineConfig:
    """Typed wrapper around the engine configuration dictionary."""

    raw: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.raw.get(key, default)

    def int_value(self, key: str) -> int:
        return int(self.raw.get(key, DEFAULTS[key]))

    def float_value(self, key: str) -> float:
        return float(self.raw.get(key, DEFAULTS[key]))

    def phrases(self, key: str) -> List[str]:
        return [str(item).lower() for item in self.raw.get(key, []) if str(item).strip()]

    @property
    def immediate_link_check(self) -> bool:
        return str(self.raw.get("link_check_mode", "deferred")).lower() == "immediate"


DEFAULTS: Dict[str, Any] = {
    "max_candidates": 15,
    "per_keyword_limit": 50,
    "min_sentence_words": 8,
    "max_capitalized_ratio": 0.4,
    "boilerplate_phrases": ["skip to content"],
    "site_name_fragments": [],
    "skip_url_patterns": [
        "/sitemap",
        "/category/",
        "/tag/",
        "/author/",
        "/page/",
        "/contributors/",
        "/privacy-policy",
        "/terms-and-conditions",
    ],
    "link_check_mode": "deferred",
    "link_check_batch_size": 3,
    "index_batch_size": 3,
    "fetch_timeout": 15,
    "politeness_delay": 1.5,
    "summary_chars": 500,
    "content_chars": 15000,
    "user_agent": "Mozilla/5.0 (compatible; BacklinkerBot/1.0)",
    "temperatures": {
        "keywords": 0.2,
        "confirm": 0.4,
    },
}


def load_config(path: str | Path | None = None) -> EngineConfig:
    """Load configuration from YAML, merging with defaults."""

    data: Dict[str, Any] = copy.deepcopy(DEFAULTS)

    if path is not None and Path(path).exists():
        with Path(path).open("r", encoding="utf-8") as stream:
            user = yaml.safe_load(stream) or {}
        merge_into(data, user)

    return EngineConfig(data)


def merge_into(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Recursively merge override into base dict."""

    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merge_into(base[key], value)
        else:
            base[key] = value
