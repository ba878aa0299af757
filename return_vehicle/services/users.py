"""User sync and profile updates (identity provider side is out of process)."""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from return_vehicle.domain.enums import AuthProvider, UserRole
from return_vehicle.domain.errors import MissingFieldsError, NotFoundError
from return_vehicle.infrastructure.models import UserModel
from return_vehicle.infrastructure.repositories import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, session: AsyncSession):
        self.users = UserRepository(session)

    async def sync_user(
        self,
        external_uid: Optional[str],
        email: Optional[str],
        name: Optional[str],
        phone: Optional[str] = None,
        role: Optional[UserRole] = None,
        auth_provider: Optional[AuthProvider] = None,
    ) -> tuple[UserModel, bool]:
        """Create the user on first sight; returns ``(user, created)``."""
        required = {"external_uid": external_uid, "email": email, "name": name}
        missing = [k for k, v in required.items() if not v]
        if missing:
            raise MissingFieldsError(missing, list(required))

        user = await self.users.get_by_external_uid(external_uid)
        if user is not None:
            # later syncs only fill in a phone number the record lacks
            if phone and not user.phone:
                await self.users.update(user, {"phone": phone, "profile_complete": True})
            return user, False

        user = UserModel(
            external_uid=external_uid,
            email=email.strip().lower(),
            name=name.strip(),
            phone=phone or "",
            role=role or UserRole.PASSENGER,
            auth_provider=auth_provider
            or (AuthProvider.EMAIL if phone else AuthProvider.GOOGLE),
            profile_complete=bool(phone),
        )
        await self.users.create(user)
        logger.info("User %s synced from provider uid %s", user.id, external_uid)
        return user, True

    async def get_user(self, user_id: int) -> UserModel:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def get_by_external_uid(self, external_uid: str) -> UserModel:
        user = await self.users.get_by_external_uid(external_uid)
        if user is None:
            raise NotFoundError("User", external_uid)
        return user

    async def list_users(self) -> list[UserModel]:
        return await self.users.find_all()

    async def select_role(self, user_id: int, role: UserRole) -> UserModel:
        user = await self.get_user(user_id)
        return await self.users.update(user, {"role": role})

    async def update_profile(
        self,
        user_id: int,
        phone: Optional[str] = None,
        driver_details: Optional[dict[str, Any]] = None,
    ) -> UserModel:
        user = await self.get_user(user_id)
        patch: dict[str, Any] = {}
        if phone:
            patch["phone"] = phone
            patch["profile_complete"] = True
        if driver_details is not None:
            patch["driver_details"] = {**(user.driver_details or {}), **driver_details}
        return await self.users.update(user, patch)
