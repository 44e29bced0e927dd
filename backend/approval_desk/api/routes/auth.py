"""Auth API - Signup, login and logout"""
from fastapi import APIRouter, Depends, status

from ..deps import get_current_user_dep, get_correlation_id_dep
from ...domain.models import ActorContext, UserSummary
from ...services.auth_service import AuthService
from ...services.onboarding_service import OnboardingService
from ...utils.logger import get_logger
from .schemas import SignupRequest, SignupResponse, LoginRequest, LoginResponse, ActionResponse

logger = get_logger(__name__)

router = APIRouter()


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Request an account.

    The account stays pending until an administrator approves it.
    """
    pending = OnboardingService().signup(
        name=request.name,
        email=request.email,
        password=request.password,
        role=request.role
    )
    return SignupResponse(
        pending_user_id=pending.id,
        message="Signup received. You can log in once an administrator approves your account."
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Exchange credentials for a session token"""
    user, token = AuthService().login(request.email, request.password)
    return LoginResponse(access_token=token, user=user.to_summary())


@router.post("/logout", response_model=ActionResponse)
async def logout(
    actor: ActorContext = Depends(get_current_user_dep)
):
    """End the current session; its token stops working immediately"""
    AuthService().logout(actor.session_id)
    return ActionResponse(success=True, message="Logged out")


@router.get("/me", response_model=UserSummary)
async def me(
    actor: ActorContext = Depends(get_current_user_dep)
):
    """Current user profile"""
    return AuthService().user_repo.get_user(actor.id).to_summary()
