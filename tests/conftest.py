"""
Pytest fixtures for tests.

Performance optimization: uses a session-scoped schema template so migrations
run once. Each test copies the resulting database file instead of
re-initializing it.
"""

import shutil
import time

import pytest

from database import Database
from domain.services.clan_progression import ClanProgression
from domain.services.payout_service import PayoutService
from repositories.challenge_repository import ChallengeRepository
from repositories.clan_repository import ClanRepository
from repositories.dispute_repository import DisputeRepository
from repositories.ledger_repository import LedgerRepository
from repositories.prediction_repository import PredictionRepository
from repositories.profile_repository import ProfileRepository
from services.challenge_service import ChallengeService
from services.clan_service import ClanService
from services.dispute_service import DisputeService
from services.event_feed import ChangeFeed
from services.ledger_service import LedgerService
from services.prediction_service import PredictionService
from services.profile_service import ProfileService

SIGNUP_BONUS = 1000


@pytest.fixture(scope="session")
def _schema_template_path(tmp_path_factory):
    """
    Create a schema template database once per test session.

    All migrations run ONCE here. Tests copy from this template.
    """
    template_dir = tmp_path_factory.mktemp("schema_template")
    template_path = str(template_dir / "template.db")
    Database(template_path)
    yield template_path


@pytest.fixture
def temp_db_path(tmp_path):
    """Create a temporary database path (no schema)."""
    yield str(tmp_path / "temp.db")


@pytest.fixture
def repo_db_path(_schema_template_path, tmp_path):
    """
    Create a temporary database with initialized schema for repository tests.

    Fast: file copy instead of schema initialization.
    """
    test_db_path = str(tmp_path / "test.db")
    shutil.copy2(_schema_template_path, test_db_path)
    yield test_db_path


# =============================================================================
# REPOSITORIES
# =============================================================================


@pytest.fixture
def profile_repo(repo_db_path):
    return ProfileRepository(repo_db_path)


@pytest.fixture
def ledger_repo(repo_db_path):
    return LedgerRepository(repo_db_path)


@pytest.fixture
def prediction_repo(repo_db_path):
    return PredictionRepository(repo_db_path, payout_service=PayoutService())


@pytest.fixture
def challenge_repo(repo_db_path):
    return ChallengeRepository(repo_db_path)


@pytest.fixture
def dispute_repo(repo_db_path):
    return DisputeRepository(repo_db_path)


@pytest.fixture
def clan_repo(repo_db_path):
    return ClanRepository(repo_db_path)


# =============================================================================
# SERVICES
# =============================================================================


@pytest.fixture
def change_feed():
    return ChangeFeed()


@pytest.fixture
def ledger_service(ledger_repo):
    return LedgerService(ledger_repo)


@pytest.fixture
def profile_service(profile_repo, prediction_repo):
    return ProfileService(
        profile_repo=profile_repo,
        prediction_repo=prediction_repo,
        admin_user_ids=[],
        signup_bonus=SIGNUP_BONUS,
        daily_bonus=50,
        daily_bonus_cooldown_seconds=86400,
    )


@pytest.fixture
def clan_service(clan_repo):
    return ClanService(
        clan_repo=clan_repo,
        progression=ClanProgression([0, 500, 2000, 5000, 15000]),
        max_members=3,
        xp_per_bet=5,
        xp_per_win=20,
    )


@pytest.fixture
def prediction_service(prediction_repo, profile_repo, clan_service, change_feed):
    return PredictionService(
        prediction_repo=prediction_repo,
        profile_repo=profile_repo,
        admin_user_ids=[],
        clan_service=clan_service,
        change_feed=change_feed,
        creator_bet_limit=200,
        reputation_per_win=10,
        reputation_per_challenge_win=5,
    )


@pytest.fixture
def challenge_service(challenge_repo, change_feed):
    return ChallengeService(challenge_repo, change_feed=change_feed)


@pytest.fixture
def dispute_service(dispute_repo):
    return DisputeService(dispute_repo, window_seconds=86400)


# =============================================================================
# DATA HELPERS
# =============================================================================


@pytest.fixture
def make_user(profile_repo):
    """Factory creating a profile with the signup bonus through the ledger."""
    counter = {"n": 0}

    def _make(username=None, coins=SIGNUP_BONUS, is_admin=False, country=None):
        counter["n"] += 1
        return profile_repo.create_with_signup_bonus(
            username=username or f"user{counter['n']}",
            signup_bonus=coins,
            country=country,
            is_admin=is_admin,
        )

    return _make


@pytest.fixture
def make_prediction(prediction_repo):
    """Factory creating a prediction directly in the repository (no deadline checks)."""

    def _make(creator_id, deadline=None, mode="unofficial", visibility="public", title="Will it happen?", **kwargs):
        return prediction_repo.create_prediction(
            creator_id=creator_id,
            title=title,
            deadline=deadline if deadline is not None else int(time.time()) + 3600,
            mode=mode,
            visibility=visibility,
            creator_bet_limit=kwargs.pop("creator_bet_limit", 200),
            **kwargs,
        )

    return _make


@pytest.fixture
def creator(make_user):
    return make_user("creator")


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")
