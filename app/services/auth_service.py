import logging
from threading import Lock
from typing import Any

from app.core.cache import SessionTokenCache
from app.core.errors import AuthenticationError, DuplicateError, NotFoundError, ValidationError
from app.core.security import hash_password, verify_password
from app.models.base import utcnow
from app.models.expert import Expert
from app.repositories.base import new_id
from app.repositories.expert_repository import ExpertRepository
from app.schemas.auth import LoginRequest, ProfileUpdateRequest, RegisterRequest

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
# bcrypt ignores everything past 72 bytes
MAX_PASSWORD_BYTES = 72


def check_password(password: str | None, message: str) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(message)
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return password


class AuthService:
    """Expert accounts with bcrypt hashes and opaque bearer tokens."""

    _register_lock = Lock()

    def __init__(self, store, tokens: SessionTokenCache, bcrypt_rounds: int = 10):
        self.experts = ExpertRepository(store)
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds

    def register(self, request: RegisterRequest) -> Expert:
        if len(request.username) < MIN_USERNAME_LENGTH:
            raise ValidationError("Username is required and must be at least 3 characters.")
        password = check_password(request.password, "Password is required and must be at least 6 characters.")
        if not request.name:
            raise ValidationError("Name is required.")

        password_hash = hash_password(password, self.bcrypt_rounds)
        with self._register_lock:
            if self.experts.get_by_username(request.username) is not None:
                raise DuplicateError("Username already exists.")
            expert = Expert(
                id=new_id(length=13),
                username=request.username,
                password_hash=password_hash,
                name=request.name,
                job_title=request.job_title or None,
                department=request.department or None,
                bio=request.bio or None,
            )
            self.experts.save(expert)
        logger.info("Registered expert %s (%s)", expert.id, expert.username)
        return expert

    def login(self, request: LoginRequest) -> dict[str, Any]:
        if not request.username or not request.password:
            raise ValidationError("Username and password are required.")
        expert = self.experts.get_by_username(request.username)
        if expert is None or not verify_password(request.password, expert.password_hash):
            logger.info("Failed login for %s", request.username)
            raise AuthenticationError("Invalid credentials.")

        token, expires_at = self.tokens.issue(expert.id)
        return {
            "message": "Login successful",
            "token": token,
            "expiresAt": expires_at.isoformat(),
            "expert": expert.public(),
        }

    def logout(self, token: str) -> dict[str, str]:
        self.tokens.revoke(token)
        return {"message": "Logout successful"}

    def authenticate(self, token: str | None) -> Expert:
        if not token:
            raise AuthenticationError("Authentication required.")
        expert_id = self.tokens.resolve(token)
        if expert_id is None:
            raise AuthenticationError("Invalid or expired token.")
        expert = self.experts.get(expert_id)
        if expert is None:
            # account removed while the token was live
            self.tokens.revoke(token)
            raise AuthenticationError("Invalid or expired token.")
        return expert

    def get(self, expert_id: str) -> Expert:
        expert = self.experts.get(expert_id)
        if expert is None:
            raise NotFoundError("Expert not found.")
        return expert

    def update_profile(self, expert: Expert, request: ProfileUpdateRequest) -> Expert:
        changes = request.model_dump(exclude_unset=True, exclude={"password"})
        if "name" in changes and not changes["name"]:
            raise ValidationError("Name is required.")
        for field, value in changes.items():
            setattr(expert, field, value)
        if request.password:
            expert.password_hash = hash_password(
                check_password(request.password, "Password must be at least 6 characters."),
                self.bcrypt_rounds,
            )
        expert.updated_at = utcnow()
        self.experts.save(expert)
        return expert
