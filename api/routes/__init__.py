"""API route modules."""

from api.routes import auth, challenges, clans, predictions, users

__all__ = ["auth", "challenges", "clans", "predictions", "users"]
