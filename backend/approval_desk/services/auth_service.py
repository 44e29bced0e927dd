"""Auth Service - Login and logout"""
from typing import Optional, Tuple

from ..domain.models import User, ActorContext
from ..domain.errors import AuthenticationError
from ..repositories.record_store import RecordStore
from ..repositories.user_repo import UserRepository
from ..utils.jwt import JWTValidator, get_jwt_validator
from ..utils.logger import get_logger
from ..utils.passwords import verify_password
from .session_service import SessionManager, get_session_manager

logger = get_logger(__name__)


class AuthService:
    """Credential checks, session tokens and token resolution"""

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        sessions: Optional[SessionManager] = None,
        jwt_validator: Optional[JWTValidator] = None
    ):
        self.user_repo = UserRepository(store)
        self.sessions = sessions or get_session_manager()
        self.jwt = jwt_validator or get_jwt_validator()

    def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Authenticate and open a session

        Returns:
            The user and a signed session token

        Raises:
            AuthenticationError: unknown email, wrong password, or an account
                still awaiting approval
        """
        email = (email or "").strip()
        password = password or ""

        user = self.user_repo.find_user_by_email(email)
        if user is None:
            pending = self.user_repo.find_pending_by_email(email)
            if pending is not None and verify_password(password, pending.password_hash):
                raise AuthenticationError(
                    "Your account is awaiting administrator approval",
                    error_code="ACCOUNT_PENDING"
                )
            logger.info("Login failed: unknown email", extra={"action": "login"})
            raise AuthenticationError("Invalid email or password")

        if not verify_password(password, user.password_hash):
            logger.info("Login failed: wrong password", extra={"user_id": user.id, "action": "login"})
            raise AuthenticationError("Invalid email or password")

        session = self.sessions.open(user)
        token = self.jwt.issue_token(user.id, session.id, user.role.value)
        return user, token

    def logout(self, session_id: str) -> None:
        self.sessions.close(session_id)

    def authenticate(self, token: str) -> ActorContext:
        """Resolve a bearer token to the current actor"""
        claims = self.jwt.validate_token(token)
        actor = self.sessions.resolve_actor(claims["sid"])
        if actor.id != claims["sub"]:
            raise AuthenticationError("Invalid session token")
        return actor
