from typing import List

from localmarket.models.payment import Payment
from localmarket.repositories.base import Repository


class PaymentRepository(Repository[Payment]):
    model = Payment

    async def for_email(self, email: str) -> List[Payment]:
        return await self.find(Payment.email == email.lower(), order_by=[Payment.paid_at.desc()])
