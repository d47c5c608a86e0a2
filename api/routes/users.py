"""User, leaderboard and ledger routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_container, get_current_user
from api.schemas import (
    DailyBonusResponse,
    DailyBonusStatusResponse,
    LeaderboardEntry,
    ProfileResponse,
    ReconcileResponse,
    TransactionResponse,
    UserStatsResponse,
)
from infrastructure.service_container import ServiceContainer

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
def leaderboard(
    country: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    container: ServiceContainer = Depends(get_container),
):
    """Profiles ranked by reputation, optionally within one country."""
    return container.profile_service.get_leaderboard(country=country, limit=limit)


@router.get("/me/transactions", response_model=list[TransactionResponse])
def my_transactions(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return container.ledger_service.get_transactions(user["id"], limit=limit, offset=offset)


@router.get("/me/reconcile", response_model=ReconcileResponse)
def reconcile_me(
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    """Compare the stored balance with the sum of the user's ledger."""
    result = container.ledger_service.reconcile(user["id"])
    return {
        "user_id": result.user_id,
        "balance": result.balance,
        "ledger_total": result.ledger_total,
        "transaction_count": result.transaction_count,
        "consistent": result.consistent,
    }


@router.get("/daily-bonus", response_model=DailyBonusStatusResponse)
def daily_bonus_status(
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    """Whether the daily bonus can be claimed now, and when it next can be if not."""
    check = container.profile_service.check_daily_bonus(user["id"])
    if check:
        return {"can_claim": True, "amount": check.value.amount}
    return {
        "can_claim": False,
        "amount": container.profile_service.daily_bonus,
        "next_claim_at": (check.details or {}).get("next_claim_at"),
        "error": check.error,
        "code": check.error_code,
    }


@router.post("/daily-bonus", response_model=DailyBonusResponse)
def claim_daily_bonus(
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return container.profile_service.claim_daily_bonus(user["id"])


@router.get("/{user_id}", response_model=ProfileResponse)
def get_user(user_id: int, container: ServiceContainer = Depends(get_container)):
    return container.profile_service.get_profile(user_id)


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
def get_user_stats(user_id: int, container: ServiceContainer = Depends(get_container)):
    return container.profile_service.get_stats(user_id)
