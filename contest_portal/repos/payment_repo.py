# contest_portal/repos/payment_repo.py
from sqlalchemy import select

from contest_portal.data.models.payment import PaymentModel
from contest_portal.repos.base import BaseRepo


class PaymentRepo(BaseRepo):
    def get_payment(self, payment_id: int) -> PaymentModel | None:
        return self.db.get(PaymentModel, payment_id)

    def get_by_order_id(self, order_id: str) -> PaymentModel | None:
        return self.db.execute(
            select(PaymentModel).where(PaymentModel.order_id == order_id)
        ).scalar_one_or_none()
