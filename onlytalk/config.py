"""
onlytalk.config — YAML Configuration Loader
============================================

Reads ``config.yaml`` for site identity and API tuning.  Secrets
(``JWT_SECRET``) and the connection string (``DATABASE_URL``) stay in the
environment; gameplay policy (points per action, level divisors, streak
tiers) lives in :mod:`onlytalk.constants` and :mod:`onlytalk.engine.policy`.

Usage::

    from onlytalk.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.site_name)         # "OnlyTalk"
    print(cfg.token_ttl_hours)   # 168
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class OnlyTalkConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    site_name: str
    site_motto: str

    # API
    api_port: int
    token_ttl_hours: int = 168  # 7 days

    # Feeds
    hot_posts_window_days: int = 7


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> OnlyTalkConfig:
    """Read *path* and return an :class:`OnlyTalkConfig` instance.

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
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh)

    return OnlyTalkConfig(
        site_name=raw["site_name"],
        site_motto=raw["site_motto"],
        api_port=int(raw["api_port"]),
        token_ttl_hours=int(raw.get("token_ttl_hours", 168)),
        hot_posts_window_days=int(raw.get("hot_posts_window_days", 7)),
    )
