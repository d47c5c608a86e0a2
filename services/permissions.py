"""
Permission checking utilities.
"""

from domain.models.market import MODE_OFFICIAL


def is_admin(profile: dict | None, admin_user_ids=()) -> bool:
    """
    Check if a profile has admin rights.

    Either the profile's is_admin flag is set or its id is allowlisted via
    ADMIN_USER_IDS.
    """
    if not profile:
        return False
    return bool(profile.get("is_admin")) or profile["id"] in set(admin_user_ids or ())


def can_settle(prediction: dict, profile: dict | None, admin_user_ids=()) -> bool:
    """
    Check if a user may resolve or cancel a prediction.

    Official predictions are settled by admins only; unofficial ones by
    their creator only.
    """
    if not profile:
        return False
    if prediction["mode"] == MODE_OFFICIAL:
        return is_admin(profile, admin_user_ids)
    return prediction["creator_id"] == profile["id"]
