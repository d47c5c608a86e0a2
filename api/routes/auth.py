"""Registration and current-profile routes."""

from fastapi import APIRouter, Depends

from api.dependencies import get_container, get_current_user
from api.schemas import ProfileResponse, RegisterRequest, RegisterResponse, UpdateProfileRequest
from infrastructure.service_container import ServiceContainer

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(body: RegisterRequest, container: ServiceContainer = Depends(get_container)):
    """Create a profile with the signup bonus and return its bearer token."""
    return container.profile_service.register(
        username=body.username,
        country=body.country,
        display_name=body.display_name,
    )


@router.get("/me", response_model=ProfileResponse)
def get_me(user: dict = Depends(get_current_user)):
    return user


@router.patch("/me", response_model=ProfileResponse)
def update_me(
    body: UpdateProfileRequest,
    user: dict = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return container.profile_service.update_profile(
        user["id"],
        username=body.username,
        display_name=body.display_name,
        avatar_url=body.avatar_url,
        country=body.country,
    )
