"""
skillswap.services.seed — Startup Seeding
===========================================

Two idempotent seeds run from the API lifespan:

* the bootstrap admin, from ``ADMIN_EMAIL`` / ``ADMIN_PASSWORD``;
* demo members from ``seeds/demo_users.yaml`` when the config enables it.

Existing accounts are never overwritten.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from skillswap.database.models import UserRole
from skillswap.services import admin_service, user_service

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from skillswap.config import SkillSwapConfig
    from skillswap.database.models import User

logger = logging.getLogger(__name__)

# Resolve the seeds directory relative to the project root
_SEEDS_DIR = Path(__file__).resolve().parent.parent.parent / "seeds"


def _load_yaml(path: Path) -> Any:
    if not path.exists():
        logger.warning("Seed file not found: %s", path)
        return []
    with open(path, encoding="utf-8") as fh:
        return yaml.safe_load(fh) or []


def seed_admin(engine: Engine, *, email: str, password: str, name: str = "Administrator") -> User:
    """Ensure an admin account exists for *email*.

    An existing member with that email is promoted rather than recreated.
    """
    existing = user_service.get_user_by_email(engine, email)
    if existing is not None:
        if existing.role != UserRole.ADMIN:
            existing = admin_service.set_role(engine, existing.id, UserRole.ADMIN)
            logger.info("Promoted existing user %s to admin.", existing.id)
        return existing

    admin = user_service.register_user(
        engine, name=name, email=email, password=password, role=UserRole.ADMIN,
    )
    logger.info("Seeded bootstrap admin %s.", admin.id)
    return admin


def seed_demo_users(engine: Engine, path: str | Path | None = None, *, trust_score: int = 100) -> int:
    """Create every demo member listed in the YAML file that is not there yet."""
    entries = _load_yaml(Path(path) if path else _SEEDS_DIR / "demo_users.yaml")
    created = 0
    for entry in entries:
        if user_service.get_user_by_email(engine, entry["email"]) is not None:
            continue
        user = user_service.register_user(
            engine,
            name=entry["name"],
            email=entry["email"],
            password=entry["password"],
            trust_score=trust_score,
        )
        profile = {
            key: entry[key]
            for key in ("skills_offered", "skills_wanted", "availability", "location")
            if key in entry
        }
        if profile:
            user_service.update_profile(engine, user.id, **profile)
        created += 1

    if created:
        logger.info("Seeded %d demo user(s).", created)
    return created


def run_startup_seed(engine: Engine, cfg: SkillSwapConfig) -> None:
    email = os.getenv("ADMIN_EMAIL", "").strip()
    password = os.getenv("ADMIN_PASSWORD", "")
    if email and password:
        seed_admin(engine, email=email, password=password)
    else:
        logger.info("ADMIN_EMAIL / ADMIN_PASSWORD not set; skipping admin seed.")

    if cfg.seed_demo_user:
        seed_demo_users(engine, trust_score=cfg.default_trust_score)
