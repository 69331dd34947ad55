"""
Finsolvz Backend — Auth Service
================================

What:  Login, forgot-password and reset-password flows.

Forgot-password flow:
    1. Look the user up by email (USER_NOT_FOUND when absent)
    2. Generate a 12-hex-char temporary password and store its hash
    3. Issue a reset token valid for RESET_TOKEN_TTL_MINUTES
    4. Email both to the user

Reset-password consumes a live token, sets the new password and clears
the token and its expiry.
"""

import logging
from datetime import timedelta
from typing import Optional

from finsolvz.config import Settings, settings
from finsolvz.exceptions import AuthenticationError
from finsolvz.models.base import utcnow
from finsolvz.repositories.user_repository import UserRepository
from finsolvz.security import (
    create_access_token,
    generate_reset_token,
    generate_temporary_password,
    hash_password,
    verify_password,
)
from finsolvz.services.email_service import EmailService

logger = logging.getLogger(__name__)


def invalid_credentials() -> AuthenticationError:
    # Same error for unknown email and wrong password
    return AuthenticationError(message="Invalid email or password", code="INVALID_CREDENTIALS")


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        email: EmailService,
        config: Optional[Settings] = None,
    ):
        self.users = users
        self.email = email
        self.config = config or settings

    async def login(self, email: str, password: str) -> str:
        """Return an access token for valid credentials."""
        user = await self.users.find_by_email(email)
        if user is None or not verify_password(password, user.password):
            logger.info("Failed login attempt for %s", email)
            raise invalid_credentials()
        return create_access_token(str(user.id), user.role.value)

    async def forgot_password(self, email: str) -> None:
        user = await self.users.get_by_email(email)

        temporary_password = generate_temporary_password()
        await self.users.update_password(user.id, hash_password(temporary_password))

        token = generate_reset_token()
        expires = utcnow() + timedelta(minutes=self.config.reset_token_ttl_minutes)
        await self.users.set_reset_token(user.id, token, expires)

        await self.email.send_password_reset(user.email, user.name, temporary_password, token)
        logger.info("Password reset issued for user %s", user.id)

    async def reset_password(self, token: str, new_password: str) -> None:
        user = await self.users.get_by_reset_token(token)
        await self.users.reset_password(user.id, hash_password(new_password))
        logger.info("Password reset completed for user %s", user.id)
