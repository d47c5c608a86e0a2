import sqlite3

from infrastructure.schema_manager import SchemaManager


def _tables(db_path):
    with sqlite3.connect(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
        return {row[0] for row in cursor.fetchall()}


def test_schema_manager_initializes_tables(tmp_path):
    """Test that SchemaManager creates all required tables."""
    db_path = str(tmp_path / "test.db")
    SchemaManager(db_path).initialize()

    required = {
        "profiles",
        "auth_tokens",
        "transactions",
        "predictions",
        "bets",
        "challenges",
        "prediction_disputes",
        "clans",
        "clan_members",
        "schema_migrations",
    }
    assert required.issubset(_tables(db_path))


def test_migrations_are_idempotent(tmp_path):
    db_path = str(tmp_path / "test.db")
    mgr = SchemaManager(db_path)
    mgr.initialize()
    mgr.initialize()

    with sqlite3.connect(db_path) as conn:
        names = [row[0] for row in conn.execute("SELECT name FROM schema_migrations")]
    assert len(names) == len(set(names)) == len(mgr._get_migrations())


def test_pool_check_constraint(tmp_path):
    db_path = str(tmp_path / "test.db")
    SchemaManager(db_path).initialize()

    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "INSERT INTO profiles (username, coins, created_at) VALUES ('maker', 0, 0)"
        )
        try:
            conn.execute(
                """
                INSERT INTO predictions (title, creator_id, deadline, total_yes, total_no, total_pool, created_at)
                VALUES ('Bad pool', 1, 100, 5, 5, 11, 0)
                """
            )
        except sqlite3.IntegrityError:
            pass
        else:
            raise AssertionError("total_pool must equal total_yes + total_no")
