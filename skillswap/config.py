"""
skillswap.config — YAML Configuration Loader
=============================================

Reads ``config.yaml`` for infrastructure and product settings (display
name, port, registration defaults, search paging, token lifetime).
Secrets such as ``DATABASE_URL`` and ``JWT_SECRET`` come from the
environment instead, loaded via ``.env``.

Usage::

    from skillswap.config import load_config

    cfg = load_config()            # reads ./config.yaml by default
    print(cfg.app_name)            # "SkillSwap"
    print(cfg.search_page_size)    # 20
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class SkillSwapConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    app_name: str

    # API
    api_port: int

    # Registration defaults
    default_trust_score: int = 100

    # Search
    search_page_size: int = 20

    # Auth
    token_ttl_hours: int = 12

    # Seed a demo account on startup (development only)
    seed_demo_user: bool = False


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> SkillSwapConfig:
    """Read *path* and return a :class:`SkillSwapConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    ValueError
        If ``default_trust_score`` is outside 0–100.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    default_trust = int(raw.get("default_trust_score", 100))
    if not 0 <= default_trust <= 100:
        raise ValueError(
            f"default_trust_score must be between 0 and 100, got {default_trust}"
        )

    return SkillSwapConfig(
        app_name=raw["app_name"],
        api_port=int(raw["api_port"]),
        default_trust_score=default_trust,
        search_page_size=int(raw.get("search_page_size", 20)),
        token_ttl_hours=int(raw.get("token_ttl_hours", 12)),
        seed_demo_user=bool(raw.get("seed_demo_user", False)),
    )
