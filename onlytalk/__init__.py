"""
OnlyTalk — Community Discussion Forum Backend
==============================================
Users register, post, comment, like, favorite and follow each other.
Activity earns points and levels through a single balance ledger; points
are spent in the shop or sent to other members as rewards.

Package layout::

    onlytalk/
    ├── __main__.py        # python -m onlytalk → uvicorn
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Level formula + divisors per call site
    ├── errors.py          # Domain error taxonomy
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + session helper
    │   ├── models.py      # All ORM models
    │   └── seed.py        # Default categories + shop catalogue
    ├── engine/
    │   ├── policy.py      # Points-per-action table
    │   └── streak.py      # Check-in streak + tier calculation
    ├── services/
    │   ├── ledger.py      # BalanceLedger — every points mutation
    │   ├── checkin_service.py
    │   ├── reward_service.py
    │   ├── like_service.py
    │   ├── content_service.py
    │   ├── social_service.py
    │   ├── shop_service.py
    │   ├── user_service.py
    │   └── notification_service.py
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Engine, config and bearer-token dependencies
        ├── auth.py        # Register / login → JWT
        ├── serializers.py # ORM rows → JSON dicts
        └── routes/        # posts, comments, social, notifications, gamification
"""

__version__ = "0.1.0"
