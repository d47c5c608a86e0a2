"""
Service container for dependency injection and initialization.

This module centralizes service creation and wiring for the API.

Usage:
    container = ServiceContainer(config)
    await container.initialize()

    prediction_service = container.prediction_service
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import config as app_config
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

logger = logging.getLogger("plottwist.infrastructure.container")


@dataclass
class RepositoryContainer:
    """Container for all repositories."""

    profile: ProfileRepository | None = None
    ledger: LedgerRepository | None = None
    prediction: PredictionRepository | None = None
    challenge: ChallengeRepository | None = None
    dispute: DisputeRepository | None = None
    clan: ClanRepository | None = None


@dataclass
class ServiceConfig:
    """Configuration for service initialization."""

    # Database
    db_path: str = "plottwist.db"

    admin_user_ids: list[int] = field(default_factory=list)

    # Economy settings
    signup_bonus: int = 1000
    daily_bonus: int = 50
    daily_bonus_cooldown_seconds: int = 86400  # 24 hours
    creator_bet_limit: int = 200
    dispute_window_seconds: int = 86400  # 24 hours

    # Reputation
    reputation_per_win: int = 10
    reputation_per_challenge_win: int = 5

    # Clans
    clan_xp_per_bet: int = 5
    clan_xp_per_win: int = 20
    clan_level_thresholds: list[int] = field(default_factory=lambda: [0, 500, 2000, 5000, 15000])
    clan_max_members: int = 50

    @classmethod
    def from_env(cls) -> "ServiceConfig":
        """Build a config from the values loaded in config.py."""
        return cls(
            db_path=app_config.DB_PATH,
            admin_user_ids=list(app_config.ADMIN_USER_IDS),
            signup_bonus=app_config.SIGNUP_BONUS,
            daily_bonus=app_config.DAILY_BONUS,
            daily_bonus_cooldown_seconds=app_config.DAILY_BONUS_COOLDOWN_SECONDS,
            creator_bet_limit=app_config.CREATOR_BET_LIMIT,
            dispute_window_seconds=app_config.DISPUTE_WINDOW_SECONDS,
            reputation_per_win=app_config.REPUTATION_PER_WIN,
            reputation_per_challenge_win=app_config.REPUTATION_PER_CHALLENGE_WIN,
            clan_xp_per_bet=app_config.CLAN_XP_PER_BET,
            clan_xp_per_win=app_config.CLAN_XP_PER_WIN,
            clan_level_thresholds=list(app_config.CLAN_LEVEL_THRESHOLDS),
            clan_max_members=app_config.CLAN_MAX_MEMBERS,
        )


class ServiceContainer:
    """
    Central container for all application services.

    Handles proper initialization order and dependency injection.

    Example:
        container = ServiceContainer(config)
        await container.initialize()
        profile_service = container.profile_service
    """

    def __init__(self, config: ServiceConfig | None = None):
        """
        Initialize the container with configuration.

        Args:
            config: Service configuration (uses defaults if None)
        """
        self.config = config or ServiceConfig()
        self._initialized = False
        self._repos = RepositoryContainer()
        self._database: Database | None = None
        self._services: dict[str, Any] = {}
        self.change_feed = ChangeFeed()

    @property
    def is_initialized(self) -> bool:
        """Check if container has been initialized."""
        return self._initialized

    async def initialize(self) -> None:
        """
        Initialize all services in correct order.

        This method is idempotent - calling it multiple times has no effect.
        """
        if self._initialized:
            logger.debug("ServiceContainer already initialized, skipping")
            return

        logger.info("Initializing ServiceContainer...")

        self._init_database()
        self._init_repositories()
        self._init_core_services()
        self._init_market_services()

        self._initialized = True
        logger.info("ServiceContainer initialization complete")

    def _init_database(self) -> None:
        """Initialize database and run migrations."""
        logger.debug(f"Initializing database at {self.config.db_path}")
        self._database = Database(self.config.db_path)

    def _init_repositories(self) -> None:
        logger.debug("Initializing repositories")

        db_path = self.config.db_path
        self._repos.profile = ProfileRepository(db_path)
        self._repos.ledger = LedgerRepository(db_path)
        self._repos.prediction = PredictionRepository(db_path, payout_service=PayoutService())
        self._repos.challenge = ChallengeRepository(db_path)
        self._repos.dispute = DisputeRepository(db_path)
        self._repos.clan = ClanRepository(db_path)

    def _init_core_services(self) -> None:
        """Initialize services with no service dependencies."""
        logger.debug("Initializing core services")

        self._services["ledger"] = LedgerService(self._repos.ledger)

        self._services["profile"] = ProfileService(
            profile_repo=self._repos.profile,
            prediction_repo=self._repos.prediction,
            admin_user_ids=self.config.admin_user_ids,
            signup_bonus=self.config.signup_bonus,
            daily_bonus=self.config.daily_bonus,
            daily_bonus_cooldown_seconds=self.config.daily_bonus_cooldown_seconds,
        )

        self._services["clan"] = ClanService(
            clan_repo=self._repos.clan,
            progression=ClanProgression(self.config.clan_level_thresholds),
            max_members=self.config.clan_max_members,
            xp_per_bet=self.config.clan_xp_per_bet,
            xp_per_win=self.config.clan_xp_per_win,
        )

    def _init_market_services(self) -> None:
        """Initialize prediction, challenge and dispute services."""
        logger.debug("Initializing market services")

        self._services["prediction"] = PredictionService(
            prediction_repo=self._repos.prediction,
            profile_repo=self._repos.profile,
            admin_user_ids=self.config.admin_user_ids,
            clan_service=self._services["clan"],
            change_feed=self.change_feed,
            creator_bet_limit=self.config.creator_bet_limit,
            reputation_per_win=self.config.reputation_per_win,
            reputation_per_challenge_win=self.config.reputation_per_challenge_win,
        )

        self._services["challenge"] = ChallengeService(
            challenge_repo=self._repos.challenge,
            change_feed=self.change_feed,
        )

        self._services["dispute"] = DisputeService(
            dispute_repo=self._repos.dispute,
            window_seconds=self.config.dispute_window_seconds,
        )

    def _get_service(self, name: str) -> Any:
        if not self._initialized:
            raise RuntimeError("ServiceContainer not initialized. Call initialize() first.")
        return self._services[name]

    # --- Accessors ---

    @property
    def database(self) -> Database:
        if self._database is None:
            raise RuntimeError("ServiceContainer not initialized. Call initialize() first.")
        return self._database

    @property
    def repositories(self) -> RepositoryContainer:
        return self._repos

    @property
    def ledger_service(self) -> LedgerService:
        return self._get_service("ledger")

    @property
    def profile_service(self) -> ProfileService:
        return self._get_service("profile")

    @property
    def clan_service(self) -> ClanService:
        return self._get_service("clan")

    @property
    def prediction_service(self) -> PredictionService:
        return self._get_service("prediction")

    @property
    def challenge_service(self) -> ChallengeService:
        return self._get_service("challenge")

    @property
    def dispute_service(self) -> DisputeService:
        return self._get_service("dispute")
