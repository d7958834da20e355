from typing import List, Optional

from sqlalchemy import or_

from localmarket.models.rider import Rider
from localmarket.repositories.base import Repository


class RiderRepository(Repository[Rider]):
    model = Rider

    async def list_filtered(
        self,
        status: Optional[str] = None,
        work_status: Optional[str] = None,
        district: Optional[str] = None,
        search: Optional[str] = None,
        oldest_first: bool = False,
    ) -> List[Rider]:
        criteria = []
        if status:
            criteria.append(Rider.status == status)
        if work_status:
            criteria.append(Rider.work_status == work_status)
        if district:
            criteria.append(Rider.district == district)
        if search:
            criteria.append(
                or_(
                    Rider.name.icontains(search, autoescape=True),
                    Rider.email.icontains(search, autoescape=True),
                )
            )
        order = Rider.created_at.asc() if oldest_first else Rider.created_at.desc()
        return await self.find(*criteria, order_by=[order])

    async def get_by_email(self, email: str) -> Optional[Rider]:
        return await self.find_one(Rider.email == email.lower())
