# contest_portal/repos/flag_repo.py
from typing import List, Tuple

from sqlalchemy import case, func, select

from contest_portal.data.models.flag import FlagModel
from contest_portal.data.models.moderation_action import ModerationActionModel
from contest_portal.data.models.post import PostModel
from contest_portal.domain.statuses import FLAG_SEVERITIES, FlagStatus
from contest_portal.repos.base import BaseRepo


class FlagRepo(BaseRepo):
    def get_post(self, post_id: int) -> PostModel | None:
        return self.db.get(PostModel, post_id)

    def get_flag(self, flag_id: int) -> FlagModel | None:
        return self.db.get(FlagModel, flag_id)

    def find_flag(self, user_id: int, post_id: int, reason: str) -> FlagModel | None:
        return self.db.execute(
            select(FlagModel).where(
                FlagModel.user_id == user_id,
                FlagModel.post_id == post_id,
                FlagModel.reason == reason,
            )
        ).scalars().first()

    def count_open_flags(self, post_id: int, exclude_flag_id: int | None = None) -> int:
        # liczone z tabeli flag, nie z licznika na poscie
        query = select(func.count(FlagModel.id)).where(
            FlagModel.post_id == post_id,
            FlagModel.status.in_(FlagStatus.OPEN),
        )
        if exclude_flag_id is not None:
            query = query.where(FlagModel.id != exclude_flag_id)
        return self.db.execute(query).scalar_one()

    def list_page(
        self,
        status: str,
        page: int,
        limit: int,
        severity: str | None = None,
    ) -> Tuple[List[FlagModel], int]:
        filters = [FlagModel.status == status]
        if severity:
            filters.append(FlagModel.severity == severity)

        severity_rank = case(
            {name: rank for rank, name in enumerate(FLAG_SEVERITIES)},
            value=FlagModel.severity,
            else_=0,
        )
        rows = self.db.execute(
            select(FlagModel)
            .where(*filters)
            .order_by(severity_rank.desc(), FlagModel.created_at.asc(), FlagModel.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars()
        total = self.db.execute(select(func.count(FlagModel.id)).where(*filters)).scalar_one()
        return list(rows), total

    def count_by_status(self, status: str) -> int:
        return self.db.execute(
            select(func.count(FlagModel.id)).where(FlagModel.status == status)
        ).scalar_one()

    def count_flagged_posts(self) -> int:
        return self.db.execute(
            select(func.count(PostModel.id)).where(PostModel.is_flagged.is_(True))
        ).scalar_one()

    def moderation_history(self, post_id: int) -> List[ModerationActionModel]:
        return list(
            self.db.execute(
                select(ModerationActionModel)
                .where(ModerationActionModel.post_id == post_id)
                .order_by(ModerationActionModel.moderated_at.desc(), ModerationActionModel.id.desc())
            ).scalars()
        )
