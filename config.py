"""
Centralized configuration for the PlotTwist API.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _parse_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_float(env_var: str, default: float) -> float:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _parse_bool(env_var: str, default: bool) -> bool:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _parse_int_list(env_var: str, default: list[int]) -> list[int]:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return [int(x.strip()) for x in raw.split(",") if x.strip()]
    except ValueError:
        return default


def _parse_str_list(env_var: str, default: list[str]) -> list[str]:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    return [x.strip() for x in raw.split(",") if x.strip()]


DB_PATH = os.getenv("DB_PATH", "plottwist.db")
ADMIN_USER_IDS = _parse_int_list("ADMIN_USER_IDS", [])

# HTTP server
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = _parse_int("API_PORT", 3001)
CLIENT_URLS = _parse_str_list("CLIENT_URL", ["http://localhost:5173"])
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = _parse_bool("DEBUG", False)

# Economy
SIGNUP_BONUS = _parse_int("SIGNUP_BONUS", 1000)
DAILY_BONUS = _parse_int("DAILY_BONUS", 50)
DAILY_BONUS_COOLDOWN_SECONDS = _parse_int("DAILY_BONUS_COOLDOWN_SECONDS", 86400)  # 24 hours
CREATOR_BET_LIMIT = _parse_int("CREATOR_BET_LIMIT", 200)
MIN_PREDICTION_WINDOW_SECONDS = _parse_int("MIN_PREDICTION_WINDOW_SECONDS", 60)

# Disputes only apply to creator-resolved markets
DISPUTE_WINDOW_SECONDS = _parse_int("DISPUTE_WINDOW_SECONDS", 86400)  # 24 hours

# Reputation only ever goes up
REPUTATION_PER_WIN = _parse_int("REPUTATION_PER_WIN", 10)
REPUTATION_PER_CHALLENGE_WIN = _parse_int("REPUTATION_PER_CHALLENGE_WIN", 5)

# Clans
CLAN_XP_PER_BET = _parse_int("CLAN_XP_PER_BET", 5)
CLAN_XP_PER_WIN = _parse_int("CLAN_XP_PER_WIN", 20)
CLAN_LEVEL_THRESHOLDS = _parse_int_list("CLAN_LEVEL_THRESHOLDS", [0, 500, 2000, 5000, 15000])
CLAN_MAX_MEMBERS = _parse_int("CLAN_MAX_MEMBERS", 50)

LEADERBOARD_LIMIT = _parse_int("LEADERBOARD_LIMIT", 50)

# API client
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:3001")
REQUEST_TIMEOUT_SECONDS = _parse_float("REQUEST_TIMEOUT_SECONDS", 10.0)
