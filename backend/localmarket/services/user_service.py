"""
LocalMarket Backend: User Service
==================================

What:  Registration, directory search and role management.
Who:   Called by the /users routes; the stored role it manages is what the
       authorization interceptor reads for role-restricted routes.

Registration is idempotent per email: signing in again with the identity
provider re-posts the same user, which refreshes `last_login_at` instead of
inserting a duplicate. New users always start with the `user` role.
"""

import logging
from typing import List, Optional, Tuple

from localmarket.database import utcnow
from localmarket.models.enums import Role
from localmarket.models.user import User
from localmarket.repositories import UnitOfWork
from localmarket.schemas.user import UserCreate
from localmarket.services.common import fetch_or_404

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def register(self, body: UserCreate) -> Tuple[User, bool]:
        """
        Returns:
            (user, created): `created` is False when the email already existed.
        """
        now = utcnow()
        existing = await self.uow.users.get_by_email(body.email)
        if existing is not None:
            await self.uow.users.update(existing, {"last_login_at": now})
            await self.uow.commit()
            return existing, False

        fields = body.declared_fields()
        fields.update(role=Role.USER.value, last_login_at=now)
        loose = body.loose_fields()
        loose.pop("role", None)

        user = await self.uow.users.add(self.uow.users.build(fields, loose))
        await self.uow.commit()
        logger.info("Registered user %s", user.email)
        return user, True

    async def list_users(self, search: Optional[str] = None) -> List[User]:
        return await self.uow.users.search(search)

    async def get_role(self, email: str) -> Role:
        return await self.uow.users.role_of(email.strip().lower())

    async def set_role(self, user_id: str, role: Role) -> User:
        user = await fetch_or_404(self.uow.users, user_id, "user")
        await self.uow.users.update(user, {"role": Role(role).value})
        await self.uow.commit()
        logger.info("Role of %s set to %s", user.email, user.role)
        return user
