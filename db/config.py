"""
Environment-driven configuration shared by the store and the application settings.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_DATABASE_URL = "sqlite:///herd_growth.db"
ENV_FILENAMES = (".env", ".env.local")
PROJECT_ROOT = Path(__file__).resolve().parents[1]


def parse_env_line(raw_line: str) -> tuple[str, str] | None:
    """
    Split one ``KEY=VALUE`` line. Blank lines, comments and lines without
    ``=`` yield ``None``; one pair of surrounding quotes is removed.
    """

    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = (part.strip() for part in line.split("=", 1))
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        value = value[1:-1]
    return (key, value) if key else None


def load_env_files(root: Path | None = None) -> None:
    """
    Load ``.env`` then ``.env.local`` from ``root`` (the project root by default).
    Variables already present in the process environment win.
    """

    base = root or PROJECT_ROOT
    for filename in ENV_FILENAMES:
        env_path = base / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            pair = parse_env_line(raw_line)
            if pair is not None:
                os.environ.setdefault(*pair)


def normalize_database_url(url: str) -> str:
    """
    Rewrite the legacy ``postgres://`` scheme, which SQLAlchemy rejects.
    """

    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def resolve_database_url() -> str:
    """
    Resolve the key-value store database URL.

    Priority:
    1) HERD_DATABASE_URL
    2) DATABASE_URL
    3) a SQLite file in the working directory
    """

    load_env_files()

    for name in ("HERD_DATABASE_URL", "DATABASE_URL"):
        value = (os.getenv(name) or "").strip()
        if value:
            return normalize_database_url(value)
    return DEFAULT_DATABASE_URL
