"""
Database entry point.

Creating a Database runs schema creation and pending migrations for the
given path. Repositories open their own connections and own all queries.
"""

from infrastructure.schema_manager import SchemaManager


class Database:
    """A SQLite file with the PlotTwist schema applied."""

    def __init__(self, db_path: str = "plottwist.db"):
        self.db_path = db_path
        self.schema_manager = SchemaManager(db_path)
        self.schema_manager.initialize()
