"""
Schema and migration management for SQLite database.
"""

import logging
import sqlite3

logger = logging.getLogger("plottwist.schema")


class SchemaManager:
    """
    Owns schema creation and migrations.

    Call initialize() to ensure schema is present and migrations are applied.
    """

    def __init__(self, db_path: str, use_uri: bool = False):
        self.db_path = db_path
        self.use_uri = use_uri

    def initialize(self) -> None:
        """Create base schema and apply migrations."""
        logger.info(f"Initializing database schema: {self.db_path}")
        conn = self._connect()
        try:
            cursor = conn.cursor()
            self._create_base_schema(cursor)
            self._create_schema_migrations_table(cursor)
            self._run_migrations(cursor)
            conn.commit()
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, uri=self.use_uri)
        conn.row_factory = sqlite3.Row
        if not self.use_uri:  # Skip WAL for in-memory databases
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA busy_timeout=5000")
        return conn

    def _create_base_schema(self, cursor) -> None:
        # Profiles: a user's economic identity
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS profiles (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT NOT NULL UNIQUE COLLATE NOCASE,
                display_name TEXT,
                avatar_url TEXT,
                coins INTEGER NOT NULL DEFAULT 0 CHECK (coins >= 0),
                reputation INTEGER NOT NULL DEFAULT 0,
                country TEXT,
                is_admin INTEGER NOT NULL DEFAULT 0,
                last_daily_bonus INTEGER,
                created_at INTEGER NOT NULL
            )
            """
        )

        # Bearer tokens, stored as sha256 digests
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS auth_tokens (
                token_hash TEXT PRIMARY KEY,
                user_id INTEGER NOT NULL,
                created_at INTEGER NOT NULL,
                FOREIGN KEY (user_id) REFERENCES profiles(id)
            )
            """
        )

        # Append-only ledger
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS transactions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                type TEXT NOT NULL,
                amount INTEGER NOT NULL,
                reference_id INTEGER,
                description TEXT,
                created_at INTEGER NOT NULL,
                FOREIGN KEY (user_id) REFERENCES profiles(id)
            )
            """
        )

    # --- Migration helpers ---

    def _add_column_if_not_exists(self, cursor, table: str, column: str, column_type: str) -> None:
        try:
            cursor.execute(f"ALTER TABLE {table} ADD COLUMN {column} {column_type}")
        except sqlite3.OperationalError:
            pass

    def _create_schema_migrations_table(self, cursor) -> None:
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                name TEXT PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )

    def _run_migrations(self, cursor) -> None:
        applied = {row["name"] for row in cursor.execute("SELECT name FROM schema_migrations")}
        for name, action in self._get_migrations():
            if name in applied:
                continue
            logger.info(f"Applying migration: {name}")
            action(cursor)
            cursor.execute(
                "INSERT INTO schema_migrations (name) VALUES (?)",
                (name,),
            )

    def _get_migrations(self):
        return [
            ("create_predictions_system", self._migration_create_predictions_system),
            ("create_challenges_table", self._migration_create_challenges_table),
            ("create_prediction_disputes_table", self._migration_create_prediction_disputes_table),
            ("create_clans_system", self._migration_create_clans_system),
            ("add_ledger_indexes", self._migration_add_ledger_indexes),
            ("add_payout_uniqueness_index", self._migration_add_payout_uniqueness_index),
        ]

    # --- Migrations ---

    def _migration_create_predictions_system(self, cursor) -> None:
        """Create tables for the pari-mutuel prediction markets."""
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS predictions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                description TEXT,
                show_id TEXT,
                creator_id INTEGER NOT NULL,
                mode TEXT NOT NULL DEFAULT 'unofficial',
                visibility TEXT NOT NULL DEFAULT 'public',
                status TEXT NOT NULL DEFAULT 'active',
                deadline INTEGER NOT NULL,
                creator_bet_limit INTEGER NOT NULL DEFAULT 200,
                total_yes INTEGER NOT NULL DEFAULT 0,
                total_no INTEGER NOT NULL DEFAULT 0,
                total_pool INTEGER NOT NULL DEFAULT 0,
                disputed INTEGER NOT NULL DEFAULT 0,
                created_at INTEGER NOT NULL,
                resolved_at INTEGER,
                resolved_by INTEGER,
                CHECK (total_pool = total_yes + total_no),
                FOREIGN KEY (creator_id) REFERENCES profiles(id)
            )
            """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS bets (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                prediction_id INTEGER NOT NULL,
                position TEXT NOT NULL,
                amount INTEGER NOT NULL CHECK (amount > 0),
                payout INTEGER,
                created_at INTEGER NOT NULL,
                FOREIGN KEY (user_id) REFERENCES profiles(id),
                FOREIGN KEY (prediction_id) REFERENCES predictions(id)
            )
            """
        )

        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_predictions_status_deadline "
            "ON predictions(status, deadline)"
        )
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_bets_prediction ON bets(prediction_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_bets_user ON bets(user_id)")

    def _migration_create_challenges_table(self, cursor) -> None:
        """Create the head-to-head challenge escrow table."""
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS challenges (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                challenger_id INTEGER NOT NULL,
                challenged_id INTEGER NOT NULL,
                prediction_id INTEGER NOT NULL,
                challenger_position TEXT NOT NULL,
                challenged_position TEXT NOT NULL,
                amount INTEGER NOT NULL CHECK (amount > 0),
                status TEXT NOT NULL DEFAULT 'pending',
                winner_id INTEGER,
                created_at INTEGER NOT NULL,
                responded_at INTEGER,
                resolved_at INTEGER,
                CHECK (challenger_position != challenged_position),
                FOREIGN KEY (challenger_id) REFERENCES profiles(id),
                FOREIGN KEY (challenged_id) REFERENCES profiles(id),
                FOREIGN KEY (prediction_id) REFERENCES predictions(id)
            )
            """
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_challenges_prediction_status "
            "ON challenges(prediction_id, status)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_challenges_challenged ON challenges(challenged_id)"
        )

    def _migration_create_prediction_disputes_table(self, cursor) -> None:
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS prediction_disputes (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                prediction_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                vote TEXT NOT NULL,
                reason TEXT,
                created_at INTEGER NOT NULL,
                UNIQUE (prediction_id, user_id),
                FOREIGN KEY (prediction_id) REFERENCES predictions(id),
                FOREIGN KEY (user_id) REFERENCES profiles(id)
            )
            """
        )

    def _migration_create_clans_system(self, cursor) -> None:
        """Create clan and membership tables."""
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS clans (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE COLLATE NOCASE,
                description TEXT,
                creator_id INTEGER NOT NULL,
                invite_code TEXT NOT NULL UNIQUE,
                xp INTEGER NOT NULL DEFAULT 0,
                level INTEGER NOT NULL DEFAULT 1,
                created_at INTEGER NOT NULL,
                FOREIGN KEY (creator_id) REFERENCES profiles(id)
            )
            """
        )
        # user_id is the primary key: one clan per user
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS clan_members (
                user_id INTEGER PRIMARY KEY,
                clan_id INTEGER NOT NULL,
                role TEXT NOT NULL DEFAULT 'member',
                joined_at INTEGER NOT NULL,
                FOREIGN KEY (clan_id) REFERENCES clans(id),
                FOREIGN KEY (user_id) REFERENCES profiles(id)
            )
            """
        )
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_clan_members_clan ON clan_members(clan_id)")

    def _migration_add_ledger_indexes(self, cursor) -> None:
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_transactions_user_created "
            "ON transactions(user_id, created_at)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_transactions_user_type "
            "ON transactions(user_id, type, created_at)"
        )
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_profiles_reputation ON profiles(reputation)")

    def _migration_add_payout_uniqueness_index(self, cursor) -> None:
        """A bet or challenge can be paid out or refunded at most once."""
        cursor.execute(
            """
            CREATE UNIQUE INDEX IF NOT EXISTS idx_transactions_single_payout
            ON transactions(type, reference_id)
            WHERE type IN ('bet_won', 'bet_refund', 'challenge_won')
            """
        )
