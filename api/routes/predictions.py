"""Prediction market routes: listing, betting, resolution, disputes."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_container, get_current_user, get_optional_user
from api.schemas import (
    BetPreviewResponse,
    CancelResponse,
    CreatePredictionRequest,
    DisputeListResponse,
    DisputeRequest,
    DisputeResponse,
    PlaceBetRequest,
    PlaceBetResponse,
    PredictionDetailResponse,
    PredictionResponse,
    ResolveRequest,
    ResolveResponse,
)
from infrastructure.service_container import ServiceContainer
from services.balance_validation import MAX_AMOUNT

router = APIRouter(prefix="/api/predictions", tags=["Predictions"])


@router.get("", response_model=list[PredictionResponse])
def list_predictions(
    status: Optional[Literal["active", "resolved_yes", "resolved_no", "cancelled"]] = None,
    show_id: Optional[str] = None,
    sort: Literal["newest", "trending", "ending_soon"] = "newest",
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: Optional[dict] = Depends(get_optional_user),
    container: ServiceContainer = Depends(get_container),
):
    """List predictions. Private ones are only listed for their creator."""
    return container.prediction_service.list_predictions(
        viewer_id=user["id"] if user else None,
        status=status,
        show_id=show_id,
        sort=sort,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=PredictionResponse, status_code=201)
def create_prediction(
    body: CreatePredictionRequest,
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return container.prediction_service.create_prediction(
        creator_id=user["id"],
        title=body.title,
        deadline=body.deadline,
        mode=body.mode,
        visibility=body.visibility,
        description=body.description,
        show_id=body.show_id,
    )


@router.get("/{prediction_id}", response_model=PredictionDetailResponse)
def get_prediction(prediction_id: int, container: ServiceContainer = Depends(get_container)):
    return container.prediction_service.get_prediction(prediction_id)


@router.get("/{prediction_id}/preview", response_model=BetPreviewResponse)
def preview_bet(
    prediction_id: int,
    position: Literal["yes", "no"],
    amount: int = Query(gt=0, le=MAX_AMOUNT),
    user: Optional[dict] = Depends(get_optional_user),
    container: ServiceContainer = Depends(get_container),
):
    """Payout a bet would earn if it won now. Signed-in callers also learn if they can afford it."""
    return container.prediction_service.preview_payout(
        prediction_id=prediction_id,
        position=position,
        amount=amount,
        user_id=user["id"] if user else None,
    )


@router.post("/{prediction_id}/bet", response_model=PlaceBetResponse, status_code=201)
def place_bet(
    prediction_id: int,
    body: PlaceBetRequest,
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return container.prediction_service.place_bet(
        prediction_id=prediction_id,
        user_id=user["id"],
        position=body.position,
        amount=body.amount,
    )


@router.post("/{prediction_id}/resolve", response_model=ResolveResponse)
def resolve_prediction(
    prediction_id: int,
    body: ResolveRequest,
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return container.prediction_service.resolve(
        prediction_id=prediction_id,
        outcome=body.outcome,
        resolved_by=user["id"],
    )


@router.post("/{prediction_id}/cancel", response_model=CancelResponse)
def cancel_prediction(
    prediction_id: int,
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return container.prediction_service.cancel(prediction_id, user["id"])


@router.post("/{prediction_id}/dispute", response_model=DisputeResponse, status_code=201)
def dispute_prediction(
    prediction_id: int,
    body: DisputeRequest,
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return container.dispute_service.dispute(
        prediction_id=prediction_id,
        user_id=user["id"],
        vote=body.vote,
        reason=body.reason,
    )


@router.get("/{prediction_id}/disputes", response_model=DisputeListResponse)
def list_disputes(prediction_id: int, container: ServiceContainer = Depends(get_container)):
    container.prediction_service.get_prediction(prediction_id, include_bets=False)
    return container.dispute_service.get_disputes(prediction_id)
