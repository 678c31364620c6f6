from typing import List

from sqlalchemy import select

from contest_portal.data.models.user import UserModel
from contest_portal.repos.base import BaseRepo


class UserRepo(BaseRepo):
    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_by_token(self, token: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(UserModel.api_token == token)
        ).scalar_one_or_none()

    def list_by_roles(self, roles) -> List[UserModel]:
        return list(self.db.execute(select(UserModel).where(UserModel.role.in_(roles))).scalars())
