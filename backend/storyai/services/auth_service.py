"""
Auth Service - registration, login and token lifecycle.

Registration is where an author's data encryption key is minted. The key is
stored on the user row and never leaves the service layer.
"""

import re
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storyai.core.config import settings
from storyai.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    UserNotFoundError,
    ValidationError,
)
from storyai.core.logging_config import logger, set_user_id
from storyai.core.result import ServiceResult, service_operation
from storyai.core.security import (
    create_access_token,
    generate_opaque_token,
    get_password_hash,
    hash_token,
    verify_password,
)
from storyai.models.user import User, UserRole
from storyai.repositories.user_repository import UserRepository
from storyai.schemas.auth import TokenPair, UserProfile
from storyai.services.key_provider import generate_data_encryption_key

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100
MIN_PASSWORD_LENGTH = 6


def _validate_password(password: Optional[str], field: str = "password") -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field=field)


class AuthService:
    def __init__(self, db: AsyncSession, users: Optional[UserRepository] = None):
        self.db = db
        self.users = users or UserRepository(db)

    async def _issue_tokens(self, user: User) -> TokenPair:
        access_token = create_access_token({
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value,
        })
        refresh_token = generate_opaque_token()
        user.refresh_token_hash = hash_token(refresh_token)
        user.refresh_token_expires = datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        await self.users.touch(user)

        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=UserProfile.model_validate(user),
        )

    @service_operation
    async def register(
        self,
        full_name: str,
        email: str,
        password: str,
        avatar_url: Optional[str] = None,
    ) -> ServiceResult[UserProfile]:
        full_name = (full_name or "").strip()
        email = (email or "").strip().lower()

        if len(full_name) < MIN_NAME_LENGTH:
            raise ValidationError(f"Full name must be at least {MIN_NAME_LENGTH} characters", field="full_name")
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Email address is not valid", field="email")
        _validate_password(password)

        if await self.users.email_exists(email):
            logger.log_auth_event(event="register", success=False, user_email=email,
                                  reason="Email already registered")
            raise ConflictError("Email already registered")

        try:
            user = await self.users.create(User(
                email=email,
                full_name=full_name,
                hashed_password=get_password_hash(password),
                avatar_url=avatar_url.strip() if avatar_url else None,
                role=UserRole.AUTHOR,
                is_active=True,
                data_encryption_key=generate_data_encryption_key(),
            ))
            await self.db.commit()
        except IntegrityError:
            # Registered concurrently with the same email
            await self.db.rollback()
            raise ConflictError("Email already registered")

        logger.log_auth_event(event="register", success=True, user_email=email, user_role=user.role.value)
        return ServiceResult.ok("Registration successful", UserProfile.model_validate(user), created=True)

    @service_operation
    async def login(self, email: str, password: str) -> ServiceResult[TokenPair]:
        email = (email or "").strip().lower()
        user = await self.users.get_by_email(email)

        if not user or not verify_password(password or "", user.hashed_password):
            logger.log_auth_event(event="login", success=False, user_email=email, reason="Invalid credentials")
            raise AuthenticationError("Incorrect email or password")

        if not user.is_active:
            logger.log_auth_event(event="login", success=False, user_email=email, reason="Account inactive")
            raise ForbiddenError("Account is inactive")

        user.last_login = datetime.utcnow()
        tokens = await self._issue_tokens(user)
        await self.db.commit()

        set_user_id(str(user.id))
        logger.log_auth_event(event="login", success=True, user_email=user.email, user_role=user.role.value)
        return ServiceResult.ok("Login successful", tokens)

    @service_operation
    async def refresh(self, refresh_token: str) -> ServiceResult[TokenPair]:
        if not refresh_token:
            raise AuthenticationError("Invalid refresh token")

        user = await self.users.get_by_refresh_token_hash(hash_token(refresh_token))
        if user is None:
            logger.log_auth_event(event="refresh", success=False, reason="Unknown refresh token")
            raise AuthenticationError("Invalid refresh token")
        if user.refresh_token_expires is None or user.refresh_token_expires < datetime.utcnow():
            logger.log_auth_event(event="refresh", success=False, user_email=user.email,
                                  reason="Refresh token expired")
            raise AuthenticationError("Refresh token has expired")

        # Rotation: the presented token stops working once a new pair is issued
        tokens = await self._issue_tokens(user)
        await self.db.commit()

        logger.log_auth_event(event="refresh", success=True, user_email=user.email)
        return ServiceResult.ok("Token refreshed", tokens)

    @service_operation
    async def forgot_password(self, email: str) -> ServiceResult[Optional[str]]:
        """
        Start a password reset. The message is the same whether or not the
        account exists. There is no mailer, so the reset token is returned in
        ``data`` for the caller to deliver.
        """
        message = "If an account with that email exists, you will receive password reset instructions."
        user = await self.users.get_by_email(email or "")
        if user is None or not user.is_active:
            return ServiceResult.ok(message)

        reset_token = generate_opaque_token()
        user.reset_token_hash = hash_token(reset_token)
        user.reset_token_expires = datetime.utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        await self.users.touch(user)
        await self.db.commit()

        logger.log_auth_event(event="forgot_password", success=True, user_email=user.email)
        return ServiceResult.ok(message, reset_token)

    @service_operation
    async def reset_password(self, token: str, new_password: str) -> ServiceResult[None]:
        user = await self.users.get_by_reset_token_hash(hash_token(token or ""))
        if user is None:
            raise ValidationError("Invalid reset token", field="token")
        if user.reset_token_expires is None or user.reset_token_expires < datetime.utcnow():
            raise ValidationError("Reset token has expired", field="token")
        _validate_password(new_password, field="new_password")

        user.hashed_password = get_password_hash(new_password)
        user.reset_token_hash = None
        user.reset_token_expires = None
        # Existing sessions end with the old password
        user.refresh_token_hash = None
        user.refresh_token_expires = None
        await self.users.touch(user)
        await self.db.commit()

        logger.log_auth_event(event="reset_password", success=True, user_email=user.email)
        return ServiceResult.ok("Password has been reset successfully")

    @service_operation
    async def get_profile(self, user_id: str) -> ServiceResult[UserProfile]:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return ServiceResult.ok("Profile retrieved successfully", UserProfile.model_validate(user))

    @service_operation
    async def update_profile(
        self,
        user_id: str,
        full_name: str,
        avatar_url: Optional[str] = None,
    ) -> ServiceResult[UserProfile]:
        full_name = (full_name or "").strip()
        if len(full_name) < MIN_NAME_LENGTH:
            raise ValidationError(f"Full name must be at least {MIN_NAME_LENGTH} characters", field="full_name")
        if len(full_name) > MAX_NAME_LENGTH:
            raise ValidationError(f"Full name must not exceed {MAX_NAME_LENGTH} characters", field="full_name")

        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        user.full_name = full_name
        user.avatar_url = avatar_url.strip() if avatar_url and avatar_url.strip() else None
        await self.users.touch(user)
        await self.db.commit()

        logger.info(f"Profile updated for user {user_id}")
        return ServiceResult.ok("Profile updated successfully", UserProfile.model_validate(user))
