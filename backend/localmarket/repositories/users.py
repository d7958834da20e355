from typing import List, Optional

from sqlalchemy import or_

from localmarket.models.enums import Role
from localmarket.models.user import User
from localmarket.repositories.base import Repository


class UserRepository(Repository[User]):
    model = User

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self.find_one(User.email == email.lower())

    async def search(self, term: Optional[str] = None, limit: int = 100) -> List[User]:
        criteria = []
        if term:
            criteria.append(
                or_(
                    User.email.icontains(term, autoescape=True),
                    User.name.icontains(term, autoescape=True),
                )
            )
        return await self.find(*criteria, order_by=[User.created_at.desc()], limit=limit)

    async def role_of(self, email: str) -> Role:
        """Stored role for an email; unknown users and unknown values read as `user`."""
        user = await self.get_by_email(email)
        if user is None:
            return Role.USER
        try:
            return Role(user.role)
        except ValueError:
            return Role.USER
