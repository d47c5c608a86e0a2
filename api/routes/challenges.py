"""Head-to-head challenge routes."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_container, get_current_user
from api.schemas import ChallengeActionResponse, ChallengeResponse, CreateChallengeRequest
from infrastructure.service_container import ServiceContainer

router = APIRouter(prefix="/api/challenges", tags=["Challenges"])


@router.get("/my", response_model=list[ChallengeResponse])
def my_challenges(
    status: Optional[Literal["pending", "accepted", "declined", "resolved", "cancelled"]] = None,
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    """Challenges the current user sent or received."""
    return container.challenge_service.get_user_challenges(user["id"], status=status)


@router.post("", response_model=ChallengeActionResponse, status_code=201)
def create_challenge(
    body: CreateChallengeRequest,
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return container.challenge_service.create_challenge(
        challenger_id=user["id"],
        challenged_id=body.challenged_id,
        prediction_id=body.prediction_id,
        position=body.position,
        amount=body.amount,
    )


@router.post("/{challenge_id}/accept", response_model=ChallengeActionResponse)
def accept_challenge(
    challenge_id: int,
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return container.challenge_service.accept_challenge(challenge_id, user["id"])


@router.post("/{challenge_id}/decline", response_model=ChallengeActionResponse)
def decline_challenge(
    challenge_id: int,
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return container.challenge_service.decline_challenge(challenge_id, user["id"])
