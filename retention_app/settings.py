from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_INPUTS: Dict[str, float] = {
    "customer_base": 1000,
    "multi_purchase_rate": 20,
    "inactive_customers_count": 300,
    "aov": 100,
    "purchase_frequency": 2,
    "ltv": 200,
    "multi_purchase_improvement": 5,
    "churn_reduction": 5,
    "purchase_freq_improvement": 0.5,
}


def _project_root_from_this_file(this_file: Path) -> Path:
    # retention_app/settings.py -> project root is parent of "retention_app"
    return this_file.resolve().parents[1]


def default_settings_path() -> Path:
    return _project_root_from_this_file(Path(__file__)) / "config" / "settings.yaml"


def _load_yaml(cfg_path: Path) -> dict:
    if not cfg_path.exists():
        logger.info("No config file at %s, using built-in defaults", cfg_path)
        return {}
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@dataclass(frozen=True)
class Settings:
    defaults: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_INPUTS))
    status_clear_seconds: float = 2.0
    timeout_seconds: Optional[float] = None
    filename_prefix: str = "retention-analysis"
    solution_cost_rate: float = 0.02
    log_level: str = "INFO"

    @staticmethod
    def from_config(cfg: dict) -> "Settings":
        save = cfg.get("save", {}) or {}
        export = cfg.get("export", {}) or {}
        roi = cfg.get("roi", {}) or {}
        log = cfg.get("logging", {}) or {}

        defaults = dict(DEFAULT_INPUTS)
        unknown = set((cfg.get("defaults") or {})) - set(DEFAULT_INPUTS)
        if unknown:
            raise ValueError(f"Unknown input defaults in config: {sorted(unknown)}")
        defaults.update(cfg.get("defaults") or {})

        timeout = save.get("timeout_seconds")
        return Settings(
            defaults=defaults,
            status_clear_seconds=float(save.get("status_clear_seconds", 2)),
            timeout_seconds=None if timeout is None else float(timeout),
            filename_prefix=str(export.get("filename_prefix", "retention-analysis")),
            solution_cost_rate=float(roi.get("solution_cost_rate", 0.02)),
            log_level=str(log.get("level", "INFO")).upper(),
        )


def load_settings(cfg_path: Optional[Path] = None) -> Settings:
    return Settings.from_config(_load_yaml(cfg_path or default_settings_path()))
