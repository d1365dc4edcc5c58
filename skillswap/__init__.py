"""
SkillSwap — A Skill-Bartering Marketplace Backend
==================================================
Members list the skills they offer and the skills they want, find each
other, trade swap requests, rate completed swaps, and earn reputation.
Admins moderate users, reports, and platform messages.

Package layout::

    skillswap/
    ├── config.py          # YAML → typed Python config
    ├── client.py          # Async HTTP client with optimistic local state
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # ORM models (users, swaps, feedback, ...)
    ├── engine/
    │   ├── reputation.py  # Trust score + points formulas
    │   ├── badges.py      # Threshold badge rules
    │   ├── lifecycle.py   # Swap request state machine
    │   ├── records.py     # Typed decode of stored JSON payloads
    │   ├── live.py        # Live query subscriptions
    │   └── state.py       # Client-side state reducers
    ├── services/
    │   ├── swap_service.py          # Swap lifecycle mutations
    │   ├── feedback_service.py      # Ratings, trust score, badges
    │   ├── notification_service.py  # Per-user notifications
    │   ├── user_service.py          # Profiles, search, matches
    │   ├── admin_service.py         # Moderation + platform stats
    │   ├── export_service.py        # CSV exports
    │   └── log_buffer.py            # Live log tail for admins
    └── api/
        ├── main.py        # FastAPI app
        ├── auth.py        # Email/password → JWT
        └── routes/        # REST + WebSocket endpoints
"""

__version__ = "0.1.0"
