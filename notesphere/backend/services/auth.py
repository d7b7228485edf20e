"""
Auth Service.

Registration and login. Tokens are short-lived bearer JWTs whose `sub`
claim is the user id every note operation is scoped to.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from notesphere.backend.core.config import get_app_config
from notesphere.backend.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from notesphere.backend.core.security import (
    MAX_PASSWORD_BYTES,
    create_access_token,
    hash_password,
    verify_password,
)
from notesphere.backend.models.user import User
from notesphere.backend.repositories.user import UserRepository
from notesphere.backend.services.base import BaseService


@dataclass
class IssuedToken:
    """Access token and the user it was issued for."""

    access_token: str
    expires_in: int
    user: User


class AuthService(BaseService):
    """Service for user registration and login."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.users = UserRepository(session)

    def _issue(self, user: User) -> IssuedToken:
        minutes = get_app_config().security.jwt.access_token_expire_minutes
        token = create_access_token(user.id, email=user.email)
        return IssuedToken(access_token=token, expires_in=minutes * 60, user=user)

    async def register(
        self,
        email: str,
        password: str,
        display_name: str | None = None,
    ) -> IssuedToken:
        """
        Create an account and issue a token for it.

        Raises:
            ValidationError: Registration disabled, malformed e-mail or weak password
            ConflictError: If the e-mail is already registered
        """
        config = get_app_config()
        if not config.features.auth_registration_enabled:
            raise ValidationError("Registration is disabled")

        email = (email or "").strip().lower()
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise ValidationError("Invalid e-mail address", details={"email": "Invalid format"})
        self._validate_string_length(
            password or "",
            "password",
            min_length=config.security.passwords.min_length,
        )
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(
                "password too long",
                details={"password": f"Maximum length is {MAX_PASSWORD_BYTES} bytes"},
            )

        if await self._execute_db_operation("check_email", self.users.email_exists(email)):
            raise ConflictError("E-mail already registered")

        name = (display_name or "").strip() or email.split("@", 1)[0]
        user = await self._execute_db_operation(
            "register_user",
            self.users.create(
                email=email,
                password_hash=hash_password(password),
                display_name=name[:100],
            ),
        )

        self._log_operation("User registered", user_id=user.id)
        return self._issue(user)

    async def login(self, email: str, password: str) -> IssuedToken:
        """
        Verify credentials and issue a token.

        Raises:
            AuthenticationError: On unknown e-mail or wrong password
        """
        user = await self._execute_db_operation(
            "find_user", self.users.get_by_email(email or "")
        )
        if user is None or not verify_password(password or "", user.password_hash):
            self._logger.warning("Login failed", extra={"reason": "invalid_credentials"})
            raise AuthenticationError("Invalid e-mail or password")

        self._log_operation("User logged in", user_id=user.id)
        return self._issue(user)

    async def get_profile(self, user_id: str) -> User:
        """
        Raises:
            AuthenticationError: If the token's user no longer exists
        """
        try:
            return await self._execute_db_operation("get_user", self.users.get_by_id(user_id))
        except NotFoundError as e:
            raise AuthenticationError("User no longer exists") from e
