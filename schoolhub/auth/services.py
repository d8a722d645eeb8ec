import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.auth.models import User
from schoolhub.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    ProfileUpdate,
    RegisterRequest,
    UserInfo,
)
from schoolhub.auth.security import create_access_token, hash_password, verify_password
from schoolhub.core.enums import UserRole
from schoolhub.core.exceptions import NotFoundError, ServiceError
from schoolhub.core.service import BaseService
from schoolhub.db.session import get_db

logger = logging.getLogger(__name__)


class AuthService(BaseService):
    async def _get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    async def register(self, payload: RegisterRequest) -> UserInfo:
        """Public sign-up always creates a student account."""
        if await self._get_by_email(payload.email):
            raise ServiceError("User already exists with this email", status.HTTP_409_CONFLICT)
        user = User(
            first_name=payload.first_name.strip(),
            last_name=payload.last_name.strip(),
            email=payload.email.lower(),
            phone=payload.phone,
            password_hash=hash_password(payload.password),
            role=UserRole.STUDENT.value,
            is_active=True,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ServiceError("User already exists with this email", status.HTTP_409_CONFLICT) from e
        await self.db.refresh(user)
        logger.info("Registered student %s", user.id)
        return UserInfo.model_validate(user)

    async def login(self, payload: LoginRequest) -> LoginResponse:
        # 1. Find user by email (case-insensitive)
        user = await self._get_by_email(payload.email)
        if not user:
            raise ServiceError("Invalid credentials", status.HTTP_401_UNAUTHORIZED)

        # 2. Verify password hash
        if not verify_password(payload.password, user.password_hash):
            raise ServiceError("Invalid credentials", status.HTTP_401_UNAUTHORIZED)

        # 3. Check user status
        if not user.is_active:
            raise ServiceError("Account is deactivated", status.HTTP_403_FORBIDDEN)

        issued_at = self.now()
        user.last_login_at = issued_at
        await self.db.commit()
        await self.db.refresh(user)

        access_token = create_access_token(user.id, user.role, issued_at=issued_at)
        return LoginResponse(
            access_token=access_token,
            user=UserInfo.model_validate(user),
            issued_at=issued_at,
        )

    async def get_me(self, user_id: UUID) -> UserInfo:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return UserInfo.model_validate(user)

    async def update_profile(self, user_id: UUID, payload: ProfileUpdate) -> UserInfo:
        """Only names and phone; role, email and status are admin-managed."""
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        if payload.first_name is not None:
            user.first_name = payload.first_name.strip()
        if payload.last_name is not None:
            user.last_name = payload.last_name.strip()
        if payload.phone is not None:
            user.phone = payload.phone
        await self.db.commit()
        await self.db.refresh(user)
        return UserInfo.model_validate(user)

    async def change_password(self, user_id: UUID, payload: ChangePasswordRequest) -> None:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        if not verify_password(payload.current_password, user.password_hash):
            raise ServiceError("Current password is incorrect", status.HTTP_400_BAD_REQUEST)
        user.password_hash = hash_password(payload.new_password)
        await self.db.commit()


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)
