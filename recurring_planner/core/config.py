"""Core configuration for Recurring Planner."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# 日本語: ルート直下の .env を起動時に読み込む / English: Load root-level .env on startup
load_dotenv(".env")

# 日本語: プロジェクトルート基準パス / English: Project root directory
BASE_DIR = Path(__file__).resolve().parents[2]

# 日本語: 既定は SQLite ファイル / English: Default to a local SQLite file
DEFAULT_DATABASE_URL = "sqlite:///planner.db"
DATABASE_URL = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

# 日本語: 逆プロキシ配下向けプレフィックス / English: Prefix for reverse-proxy deployments
PROXY_PREFIX = os.getenv("PROXY_PREFIX", "")

# 日本語: 日付境界を決めるタイムゾーン / English: Time zone that decides where day boundaries fall
DEFAULT_TIMEZONE = "UTC"
APP_TIMEZONE = os.getenv("PLANNER_TIMEZONE") or os.getenv("TZ") or DEFAULT_TIMEZONE


def get_timezone_name() -> str:
    """Configured zone identifier, preferring runtime environment overrides."""
    return os.getenv("PLANNER_TIMEZONE") or os.getenv("TZ") or APP_TIMEZONE


def get_max_expand_days() -> int:
    """Largest window (in days) the API will expand for a single template."""
    # 日本語: 過大値や不正値を防ぐため 1〜3660 にクランプ / English: Clamp to 1-3660 to avoid unsafe values
    raw_value = os.getenv("PLANNER_MAX_EXPAND_DAYS", "366")
    try:
        parsed = int(raw_value)
    except (TypeError, ValueError):
        parsed = 366
    return max(1, min(parsed, 3660))
