"""Clan routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_container, get_current_user, get_optional_user
from api.schemas import ClanResponse, CreateClanRequest
from infrastructure.service_container import ServiceContainer

router = APIRouter(prefix="/api/clans", tags=["Clans"])


@router.get("/my", response_model=Optional[ClanResponse])
def my_clan(
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return container.clan_service.get_user_clan(user["id"])


@router.get("/leaderboard", response_model=list[ClanResponse])
def clan_leaderboard(
    limit: int = Query(50, ge=1, le=200),
    container: ServiceContainer = Depends(get_container),
):
    clans = container.clan_service.get_leaderboard(limit)
    return [{**clan, "invite_code": None} for clan in clans]


@router.post("", response_model=ClanResponse, status_code=201)
def create_clan(
    body: CreateClanRequest,
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return container.clan_service.create_clan(user["id"], body.name, body.description)


@router.post("/join/{invite_code}", response_model=ClanResponse)
def join_clan(
    invite_code: str,
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return container.clan_service.join_clan(user["id"], invite_code)


@router.get("/{clan_id}", response_model=ClanResponse)
def get_clan(
    clan_id: int,
    user: Optional[dict] = Depends(get_optional_user),
    container: ServiceContainer = Depends(get_container),
):
    """Clan detail. The invite code is only shown to members."""
    clan = container.clan_service.get_clan(clan_id)
    member_ids = {m["user_id"] for m in clan["members"]}
    if not user or user["id"] not in member_ids:
        clan = {**clan, "invite_code": None}
    return clan
