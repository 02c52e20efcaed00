"""
Organization and user repositories.

This module provides data access operations for tenant organizations and
their users, including lookup by login email.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.organizations import Organization, User
from .base import SQLModelRepository


class OrganizationRepository(SQLModelRepository[Organization]):
    """Repository for organization data access operations."""

    default_order = (Organization.name,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Organization)


class UserRepository(SQLModelRepository[User]):
    """Repository for user data access operations."""

    default_order = (User.email,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by login email (case-insensitive).

        Args:
            email: Login email

        Returns:
            User instance or None
        """
        stmt = select(User).where(User.email == email.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_organization(self, organization_id: str) -> List[User]:
        return await self.list(filters={"organization_id": organization_id})
