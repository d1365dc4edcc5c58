"""
tests/test_records.py — Typed Records at the Storage Boundary
===============================================================
"""

from __future__ import annotations

import pytest

from skillswap.engine.records import (
    Availability,
    Proficiency,
    RecordDecodeError,
    Skill,
    UserSnapshot,
    decode,
    decode_skills,
    dump_skills,
    profile_view,
    snapshot_of,
)


class TestSkill:
    def test_generates_id(self):
        a = Skill(name="Chess", category="Games", level="expert")
        b = Skill(name="Chess", category="Games", level="expert")
        assert a.id and b.id and a.id != b.id

    def test_proficiency_order(self):
        ranks = [p.rank for p in (
            Proficiency.BEGINNER, Proficiency.INTERMEDIATE,
            Proficiency.ADVANCED, Proficiency.EXPERT,
        )]
        assert ranks == [0, 1, 2, 3]

    def test_dump_is_json_ready(self):
        (raw,) = dump_skills([Skill(id="s1", name="Chess", category="Games", level="expert")])
        assert raw == {
            "id": "s1", "name": "Chess", "category": "Games",
            "description": None, "level": "expert",
            "description_status": None, "rejection_reason": None,
        }


class TestDecode:
    def test_valid_list(self):
        skills = decode_skills([{"name": "Chess", "category": "Games", "level": "beginner"}])
        assert skills[0].level is Proficiency.BEGINNER

    def test_bad_level(self):
        with pytest.raises(RecordDecodeError) as exc_info:
            decode_skills([{"name": "Chess", "category": "Games", "level": "godlike"}], source="user u1")
        assert exc_info.value.source == "user u1"
        assert exc_info.value.errors

    def test_not_a_list(self):
        with pytest.raises(RecordDecodeError):
            decode_skills({"name": "Chess"})

    def test_snapshot_range_checked(self):
        with pytest.raises(RecordDecodeError):
            decode(UserSnapshot, {
                "id": "u", "name": "n", "email": "e@x.io", "trust_score": 101, "points": 0,
            }, source="snapshot")

    def test_extra_keys_ignored(self):
        avail = decode(Availability, {"weekends": True, "holidays": True}, source="availability")
        assert avail == Availability(weekends=True)


class TestUserViews:
    def test_snapshot_of(self, make_user):
        user = make_user("Ana", offered=["Chess"], location="Lisbon")
        snap = snapshot_of(user)

        assert snap["id"] == user.id
        assert snap["name"] == "Ana"
        assert snap["location"] == "Lisbon"
        assert snap["trust_score"] == 100
        assert [s["name"] for s in snap["skills_offered"]] == ["Chess"]
        assert snap["availability"] == {"weekends": False, "evenings": False, "custom": None}
        assert "password_hash" not in snap

    def test_profile_view(self, make_user):
        user = make_user("Ana", wanted=["Chess"])
        view = profile_view(user)
        assert view.name == "Ana"
        assert view.skills_wanted[0].name == "Chess"
        assert view.badges == []
        assert view.is_banned is False
        assert view.created_at is not None
