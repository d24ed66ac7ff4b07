from fastapi import APIRouter, Depends

from app.api.deps import get_auth_service, get_bearer_token, get_current_expert
from app.models.expert import Expert
from app.schemas.auth import LoginRequest, ProfileUpdateRequest, RegisterRequest
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
def register(body: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    return service.register(body).public()


@router.post("/login")
def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)):
    return service.login(body)


@router.post("/logout")
def logout(
    token: str = Depends(get_bearer_token),
    expert: Expert = Depends(get_current_expert),
    service: AuthService = Depends(get_auth_service),
):
    return service.logout(token)


@router.get("/me")
def get_me(expert: Expert = Depends(get_current_expert)):
    return expert.public()


@router.put("/me")
def update_me(
    body: ProfileUpdateRequest,
    expert: Expert = Depends(get_current_expert),
    service: AuthService = Depends(get_auth_service),
):
    return service.update_profile(expert, body).public()
