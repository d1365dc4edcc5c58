"""
skillswap.services.user_service — Accounts, Profiles, Search & Matching
=========================================================================

Registration and login, the self-service profile update, and the two read
paths members use to find each other:

* :func:`search_users` — filter public members by term / category /
  location / minimum proficiency, best trust score first.
* :func:`suggest_matches` — members whose offered skills cover what the
  viewer wants (and the other way round), ranked by overlap.

Skill lists are JSONB, so filtering happens in Python after a coarse SQL
query.  Fine at marketplace scale; a search index is the next step if the
member count grows.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from skillswap.database.models import User, UserRole
from skillswap.engine.live import notify_changed
from skillswap.engine.records import (
    Availability,
    DescriptionStatus,
    Proficiency,
    Skill,
    decode_skills,
    dump_skills,
)
from skillswap.services.passwords import (
    WeakPasswordError,
    hash_password,
    validate_password,
    verify_password,
)

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from skillswap.engine.live import LiveQueryHub

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Authentication errors (fixed user-facing copy)
# ---------------------------------------------------------------------------
AUTH_MESSAGES: dict[str, tuple[int, str]] = {
    "user_not_found": (401, "No account found with this email. Please register first."),
    "wrong_password": (401, "Incorrect password. Please try again."),
    "invalid_email": (422, "Invalid email address."),
    "account_disabled": (403, "This account has been disabled."),
    "email_in_use": (409, "An account with this email already exists. Please sign in instead."),
    "weak_password": (422, "Password is too weak. Please choose a stronger password."),
}


class AuthError(Exception):
    """Authentication failure carrying the message shown to the member."""

    def __init__(self, code: str) -> None:
        self.code = code
        self.status_code, message = AUTH_MESSAGES[code]
        super().__init__(message)


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Fields a member may change on their own profile
PROFILE_FIELDS: frozenset[str] = frozenset({
    "name",
    "photo_url",
    "location",
    "skills_offered",
    "skills_wanted",
    "availability",
    "is_public",
})


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _detach(session: Session, user: User) -> User:
    session.refresh(user)
    _ = user.badges
    session.expunge(user)
    return user


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------
def register_user(
    engine: Engine,
    *,
    name: str,
    email: str,
    password: str,
    trust_score: int = 100,
    role: UserRole | str = UserRole.USER,
    hub: LiveQueryHub | None = None,
) -> User:
    """Create a member with default reputation and empty skill lists.

    Raises :class:`AuthError` for a malformed email, a weak password or an
    email that is already registered.
    """
    email = normalize_email(email)
    if not _EMAIL_RE.match(email):
        raise AuthError("invalid_email")
    try:
        validate_password(password)
    except WeakPasswordError as exc:
        raise AuthError("weak_password") from exc

    with Session(engine, expire_on_commit=False) as session:
        if session.scalar(select(User.id).where(User.email == email)) is not None:
            raise AuthError("email_in_use")
        user = User(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            skills_offered=[],
            skills_wanted=[],
            availability=Availability().model_dump(exclude_none=True),
            is_public=True,
            trust_score=trust_score,
            points=0,
            role=UserRole(role).value,
        )
        session.add(user)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise AuthError("email_in_use") from exc
        user = _detach(session, user)

    notify_changed(hub, "users")
    logger.info("Registered user %s (%s)", user.id, user.role)
    return user


def authenticate(engine: Engine, *, email: str, password: str) -> User:
    """Return the member for valid credentials; banned members are refused."""
    email = normalize_email(email)
    if not _EMAIL_RE.match(email):
        raise AuthError("invalid_email")

    with Session(engine) as session:
        user = session.scalar(select(User).where(User.email == email))
        if user is None:
            raise AuthError("user_not_found")
        if not verify_password(password, user.password_hash):
            logger.info("Failed login for user %s", user.id)
            raise AuthError("wrong_password")
        if user.is_banned:
            logger.info("Refused login for banned user %s", user.id)
            raise AuthError("account_disabled")
        _ = user.badges
        session.expunge(user)
        return user


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_user(engine: Engine, user_id: str) -> User | None:
    with Session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        _ = user.badges
        session.expunge(user)
        return user


def get_user_by_email(engine: Engine, email: str) -> User | None:
    with Session(engine) as session:
        user = session.scalar(select(User).where(User.email == normalize_email(email)))
        if user is None:
            return None
        _ = user.badges
        session.expunge(user)
        return user


def count_users(engine: Engine) -> int:
    with Session(engine) as session:
        return session.scalar(select(func.count(User.id))) or 0


# ---------------------------------------------------------------------------
# Profile update
# ---------------------------------------------------------------------------
def _coerce_skills(value: Any) -> list[Skill]:
    return [s if isinstance(s, Skill) else Skill.model_validate(s) for s in value]


def _carry_review_state(skills: list[Skill], stored: list[Skill]) -> list[Skill]:
    """Keep an admin's verdict on unchanged descriptions; anything new is pending.

    Review fields sent by the member are ignored.
    """
    previous = {s.id: s for s in stored}
    carried = []
    for skill in skills:
        old = previous.get(skill.id)
        if not skill.description:
            status, reason = None, None
        elif old is not None and old.description == skill.description:
            status, reason = old.description_status, old.rejection_reason
        else:
            status, reason = DescriptionStatus.PENDING, None
        carried.append(skill.model_copy(
            update={"description_status": status, "rejection_reason": reason},
        ))
    return carried


def update_profile(
    engine: Engine,
    user_id: str,
    *,
    hub: LiveQueryHub | None = None,
    **fields: Any,
) -> User | None:
    """Apply allow-listed profile changes.

    Reputation, role and moderation fields are never writable here; naming
    one raises :class:`ValueError`.  Swap snapshots taken earlier keep the
    old values.  Returns ``None`` if the user does not exist.
    """
    unknown = set(fields) - PROFILE_FIELDS
    if unknown:
        raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")

    with Session(engine, expire_on_commit=False) as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        for key, value in fields.items():
            if key == "skills_offered":
                stored = decode_skills(user.skills_offered or [], source=f"user {user_id} skills_offered")
                value = dump_skills(_carry_review_state(_coerce_skills(value), stored))
            elif key == "skills_wanted":
                value = dump_skills([
                    s.model_copy(update={"description_status": None, "rejection_reason": None})
                    for s in _coerce_skills(value)
                ])
            elif key == "availability":
                avail = value if isinstance(value, Availability) else Availability.model_validate(value)
                value = avail.model_dump(exclude_none=True)
            elif key == "name":
                value = value.strip()
            # JSON columns are reassigned whole so the change is tracked.
            setattr(user, key, value)
        session.commit()
        user = _detach(session, user)

    notify_changed(hub, "users")
    logger.info("Profile updated for user %s (%s)", user_id, ", ".join(sorted(fields)))
    return user


# ---------------------------------------------------------------------------
# Search & matching
# ---------------------------------------------------------------------------
def _visible_candidates(session: Session, viewer_id: str | None) -> list[User]:
    query = (
        select(User)
        .where(User.is_public.is_(True), User.is_banned.is_(False))
        .order_by(User.trust_score.desc(), User.created_at.asc())
    )
    if viewer_id is not None:
        query = query.where(User.id != viewer_id)
    return list(session.scalars(query).all())


def _matches_filters(
    user: User,
    *,
    term: str | None,
    category: str | None,
    location: str | None,
    min_level: Proficiency | None,
) -> bool:
    offered = decode_skills(user.skills_offered, source=f"user {user.id} skills_offered")
    wanted = decode_skills(user.skills_wanted, source=f"user {user.id} skills_wanted")

    if term:
        needle = term.casefold()
        names = [user.name] + [s.name for s in offered] + [s.name for s in wanted]
        if not any(needle in n.casefold() for n in names):
            return False
    if category:
        if not any(s.category.casefold() == category.casefold() for s in offered):
            return False
    if location:
        if not user.location or location.casefold() not in user.location.casefold():
            return False
    if min_level is not None:
        if not any(s.level.rank >= min_level.rank for s in offered):
            return False
    return True


def search_users(
    engine: Engine,
    viewer_id: str | None,
    *,
    term: str | None = None,
    category: str | None = None,
    location: str | None = None,
    min_level: Proficiency | str | None = None,
    limit: int = 20,
) -> list[User]:
    """Public, non-banned members other than the viewer, best trust first."""
    level = Proficiency(min_level) if min_level else None
    with Session(engine) as session:
        results: list[User] = []
        for user in _visible_candidates(session, viewer_id):
            if _matches_filters(user, term=term, category=category, location=location, min_level=level):
                _ = user.badges
                results.append(user)
                if len(results) >= limit:
                    break
        for user in results:
            session.expunge(user)
        return results


def _skill_names(raw: list, source: str) -> set[str]:
    return {s.name.casefold() for s in decode_skills(raw, source=source)}


def suggest_matches(engine: Engine, viewer_id: str, *, limit: int = 3) -> list[User]:
    """Members whose skills overlap the viewer's, by overlap then trust."""
    with Session(engine) as session:
        viewer = session.get(User, viewer_id)
        if viewer is None:
            return []
        wants = _skill_names(viewer.skills_wanted, f"user {viewer.id} skills_wanted")
        offers = _skill_names(viewer.skills_offered, f"user {viewer.id} skills_offered")
        if not wants and not offers:
            return []

        scored: list[tuple[int, int, User]] = []
        for user in _visible_candidates(session, viewer_id):
            they_offer = _skill_names(user.skills_offered, f"user {user.id} skills_offered")
            they_want = _skill_names(user.skills_wanted, f"user {user.id} skills_wanted")
            overlap = len(wants & they_offer) + len(offers & they_want)
            if overlap:
                scored.append((overlap, user.trust_score, user))

        scored.sort(key=lambda t: (t[0], t[1]), reverse=True)
        matches = [user for _, _, user in scored[:limit]]
        for user in matches:
            _ = user.badges
            session.expunge(user)
        return matches
