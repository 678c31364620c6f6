# contest_portal/repos/registration_repo.py
from typing import List, Tuple

from sqlalchemy import func, select

from contest_portal.data.models.registration import RegistrationModel
from contest_portal.repos.base import BaseRepo


class RegistrationRepo(BaseRepo):
    def get_registration(self, registration_id: int) -> RegistrationModel | None:
        return self.db.get(RegistrationModel, registration_id)

    def list_by_user(self, user_id: int) -> List[RegistrationModel]:
        return list(
            self.db.execute(
                select(RegistrationModel)
                .where(RegistrationModel.user_id == user_id)
                .order_by(RegistrationModel.registered_at.desc(), RegistrationModel.id.desc())
            ).scalars()
        )

    def list_page(self, status: str | None, page: int, limit: int) -> Tuple[List[RegistrationModel], int]:
        query = select(RegistrationModel)
        count_query = select(func.count(RegistrationModel.id))
        if status:
            query = query.where(RegistrationModel.status == status)
            count_query = count_query.where(RegistrationModel.status == status)

        rows = self.db.execute(
            query.order_by(RegistrationModel.id.desc()).offset((page - 1) * limit).limit(limit)
        ).scalars()
        return list(rows), self.db.execute(count_query).scalar_one()
