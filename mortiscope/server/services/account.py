"""
Account service: profile and password management.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from mortiscope.core.database.entities.users import User
from mortiscope.core.database.repositories import UserRepository
from mortiscope.core.errors import InvalidInputError, NotFoundError
from mortiscope.core.logging_config import get_logger
from mortiscope.core.models.io.account import ChangePasswordRequest, ProfileUpdate
from mortiscope.core.models.io.auth import validate_person_name
from mortiscope.core.security import hash_password, verify_password

logger = get_logger(__name__)


class AccountService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.users = UserRepository(session)

    async def get_profile(self, user_id: str) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return user

    async def update_profile(self, user_id: str, payload: ProfileUpdate) -> User:
        """
        Apply a partial profile update.

        Omitted fields are left alone; an empty ``professional_title`` or
        ``institution`` clears it. A location must name all four levels.
        """
        fields = payload.model_fields_set
        values: dict = {}

        if "name" in fields and payload.name is not None:
            try:
                values["name"] = validate_person_name(payload.name)
            except ValueError as e:
                raise InvalidInputError("Invalid name provided.") from e
        for name in ("professional_title", "institution"):
            if name in fields:
                value = (getattr(payload, name) or "").strip()
                values[name] = value or None
        if "location" in fields and payload.location is not None:
            if not payload.location.is_complete():
                raise InvalidInputError("Please provide a complete location (region, province, city, and barangay).")
            values.update(
                location_region=payload.location.region,
                location_province=payload.location.province,
                location_city=payload.location.city,
                location_barangay=payload.location.barangay,
            )

        user = await self.get_profile(user_id)
        for key, value in values.items():
            setattr(user, key, value)
        user = await self.users.update(user)
        logger.info(f"Profile updated for user {user_id}: {sorted(values)}")
        return user

    async def change_password(self, user_id: str, payload: ChangePasswordRequest) -> None:
        user = await self.get_profile(user_id)
        if not user.password_hash:
            raise InvalidInputError("Password cannot be changed for accounts signed in with a provider.")
        if not verify_password(payload.current_password, user.password_hash):
            raise InvalidInputError("Incorrect current password.")
        user.password_hash = hash_password(payload.new_password)
        await self.users.update(user)
        logger.info(f"Password changed for user {user_id}")

    async def verify_current_password(self, user_id: str, password: str) -> bool:
        user = await self.users.get_by_id(user_id)
        if user is None:
            return False
        return verify_password(password, user.password_hash)
