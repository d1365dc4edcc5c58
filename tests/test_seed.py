"""
tests/test_seed.py — Startup Seeding
======================================
"""

from __future__ import annotations

from skillswap.config import SkillSwapConfig
from skillswap.services import seed, user_service


class TestSeedAdmin:
    def test_creates_admin(self, db_engine):
        admin = seed.seed_admin(db_engine, email="root@example.com", password="rootpass")
        assert admin.role == "admin"
        assert user_service.authenticate(
            db_engine, email="root@example.com", password="rootpass",
        ).id == admin.id

    def test_promotes_existing_user(self, db_engine, make_user):
        alice = make_user(email="alice@example.com", password="original")
        admin = seed.seed_admin(db_engine, email="alice@example.com", password="ignored")

        assert admin.id == alice.id
        assert admin.role == "admin"
        # Password is left alone
        user_service.authenticate(db_engine, email="alice@example.com", password="original")

    def test_idempotent(self, db_engine):
        seed.seed_admin(db_engine, email="root@example.com", password="rootpass")
        seed.seed_admin(db_engine, email="root@example.com", password="rootpass")
        assert user_service.count_users(db_engine) == 1


class TestSeedDemoUsers:
    def test_bundled_fixture(self, db_engine):
        assert seed.seed_demo_users(db_engine) == 1

        demo = user_service.authenticate(db_engine, email="demo@example.com", password="demo123")
        assert demo.name == "Demo User"
        assert [s["name"] for s in demo.skills_offered] == ["JavaScript", "React"]
        assert [s["name"] for s in demo.skills_wanted] == ["Python", "UI/UX Design"]
        assert demo.availability["weekends"] is True

    def test_skips_existing(self, db_engine):
        seed.seed_demo_users(db_engine)
        assert seed.seed_demo_users(db_engine) == 0
        assert user_service.count_users(db_engine) == 1

    def test_custom_file_and_trust(self, db_engine, tmp_path):
        path = tmp_path / "people.yaml"
        path.write_text(
            "- name: Zed\n  email: zed@example.com\n  password: zedpass\n  location: Oslo\n",
            encoding="utf-8",
        )
        assert seed.seed_demo_users(db_engine, path, trust_score=70) == 1
        zed = user_service.get_user_by_email(db_engine, "zed@example.com")
        assert zed.trust_score == 70
        assert zed.location == "Oslo"

    def test_missing_file(self, db_engine, tmp_path):
        assert seed.seed_demo_users(db_engine, tmp_path / "nope.yaml") == 0


class TestRunStartupSeed:
    def test_admin_from_env(self, db_engine, monkeypatch):
        monkeypatch.setenv("ADMIN_EMAIL", "boss@example.com")
        monkeypatch.setenv("ADMIN_PASSWORD", "bosspass")
        cfg = SkillSwapConfig(app_name="t", api_port=1)

        seed.run_startup_seed(db_engine, cfg)
        assert user_service.get_user_by_email(db_engine, "boss@example.com").role == "admin"

    def test_nothing_without_env(self, db_engine, monkeypatch):
        monkeypatch.delenv("ADMIN_EMAIL", raising=False)
        monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
        seed.run_startup_seed(db_engine, SkillSwapConfig(app_name="t", api_port=1))
        assert user_service.count_users(db_engine) == 0

    def test_demo_user_when_enabled(self, db_engine, monkeypatch):
        monkeypatch.delenv("ADMIN_EMAIL", raising=False)
        cfg = SkillSwapConfig(app_name="t", api_port=1, seed_demo_user=True, default_trust_score=90)
        seed.run_startup_seed(db_engine, cfg)
        assert user_service.get_user_by_email(db_engine, "demo@example.com").trust_score == 90
