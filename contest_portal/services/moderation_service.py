# contest_portal/services/moderation_service.py
import math
from typing import Any, Dict, List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from contest_portal.data.models.flag import FlagModel
from contest_portal.data.models.moderation_action import ModerationActionModel
from contest_portal.data.models.notification import NotificationModel
from contest_portal.data.models.post import PostModel
from contest_portal.data.models.user import UserModel
from contest_portal.domain.errors import Conflict, Forbidden, NotFound, ValidationError
from contest_portal.domain.permissions import MODERATION_ROLES, has_permission
from contest_portal.domain.statuses import FlagStatus, ModerationStatus
from contest_portal.repos.flag_repo import FlagRepo
from contest_portal.repos.user_repo import UserRepo
from contest_portal.services.realtime_client import RealtimeClient
from contest_portal.utils.clock import utcnow
from contest_portal.utils.logging import get_logger
from contest_portal.utils.validators import sanitize_input

logger = get_logger(__name__)

# akcja -> (pole posta, wartosc)
_POST_ACTIONS = {
    "HIDE_POST": ("is_hidden", True),
    "UNHIDE_POST": ("is_hidden", False),
    "PIN_POST": ("is_pinned", True),
    "UNPIN_POST": ("is_pinned", False),
    "LOCK_POST": ("is_locked", True),
    "UNLOCK_POST": ("is_locked", False),
}


class ModerationService:
    """
    Zgloszenia postow (flagi) i ich przeglad przez moderatorow.

    Licznik flag na poscie jest zawsze przeliczany z tabeli flag w tej samej
    transakcji - nie ufamy wartosci zapisanej na poscie.
    Powiadomienia moderatorow i broadcast sa best-effort, po commicie.
    """

    def __init__(self, db: Session, realtime: RealtimeClient | None = None):
        self.repo = FlagRepo(db)
        self.users = UserRepo(db)
        self.realtime = realtime or RealtimeClient()

    # =====================================================
    # CREATE
    # =====================================================
    def create_flag(
        self,
        user_id: int,
        post_id: int,
        reason: str,
        details: str | None = None,
        severity: str = "MEDIUM",
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> FlagModel:
        post = self.repo.get_post(post_id)
        if not post:
            raise NotFound("Post not found")
        if post.author_id == user_id:
            raise ValidationError("You cannot flag your own post")
        if self.repo.find_flag(user_id, post_id, reason):
            raise Conflict("You have already flagged this post for this reason")

        try:
            flag = self.repo.add(
                FlagModel(
                    user_id=user_id,
                    post_id=post_id,
                    reason=reason,
                    description=sanitize_input(details) if details else None,
                    severity=severity,
                    status=FlagStatus.PENDING,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
            )
        except IntegrityError:
            # rownolegly request zdazyl wstawic ta sama flage
            self.repo.rollback()
            raise Conflict("You have already flagged this post for this reason")

        count = self.repo.count_open_flags(post_id)
        post.flag_count = count
        post.is_flagged = count > 0
        if post.moderation_status == ModerationStatus.APPROVED:
            post.moderation_status = ModerationStatus.FLAGGED
        self.repo.commit()

        logger.info(f"Flaga {flag.id} ({reason}) na post {post_id} od uzytkownika {user_id}, flag_count={count}")

        self._notify_moderators(flag, post)
        self._broadcast([("newFlagCreated", {
            "flagId": flag.id,
            "postId": post_id,
            "reason": reason,
            "severity": severity,
            "flagCount": count,
        })])
        return flag

    # =====================================================
    # REVIEW
    # =====================================================
    def review_flag(
        self,
        moderator: UserModel,
        flag_id: int,
        status: str,
        review_notes: str | None = None,
        moderation_action: str | None = None,
        moderation_reason: str | None = None,
    ) -> FlagModel:
        if not has_permission(moderator.role, "can_review_reports"):
            raise Forbidden("Insufficient permissions to review reports")
        if status == FlagStatus.ESCALATED and not has_permission(moderator.role, "can_escalate_reports"):
            raise Forbidden("Insufficient permissions to escalate reports")
        if moderation_action and not has_permission(moderator.role, "can_perform_moderation_actions"):
            raise Forbidden("Insufficient permissions to perform moderation actions")
        if status not in (FlagStatus.REVIEWED, FlagStatus.ESCALATED) + FlagStatus.CLOSING:
            raise ValidationError("Invalid review status")

        flag = self.repo.get_flag(flag_id)
        if not flag:
            raise NotFound("Report not found")
        if flag.status not in FlagStatus.OPEN:
            raise ValidationError("Report has already been processed")

        post = flag.post
        now = utcnow()

        flag.status = status
        flag.reviewed_by = moderator.id
        flag.reviewed_at = now
        flag.review_notes = sanitize_input(review_notes) if review_notes else None
        flag.updated_at = now

        if status in FlagStatus.CLOSING:
            # pozostale otwarte flagi bez tej, ktora wlasnie zamykamy
            remaining = self.repo.count_open_flags(post.id, exclude_flag_id=flag.id)
            post.flag_count = remaining
            post.is_flagged = remaining > 0
            if remaining == 0 and post.moderation_status == ModerationStatus.FLAGGED:
                post.moderation_status = ModerationStatus.APPROVED

        if moderation_action:
            self._apply_action(post, moderator, moderation_action, moderation_reason, now)

        self.repo.add(
            ModerationActionModel(
                action="APPROVE_FLAG",
                reason=flag.review_notes,
                post_id=post.id,
                moderator_id=moderator.id,
                moderated_at=now,
                meta={"flagId": flag.id, "flagReason": flag.reason, "reviewStatus": status},
            )
        )
        self.repo.commit()

        logger.info(
            f"Flaga {flag.id} -> {status} (moderator {moderator.id}), "
            f"post {post.id}: flag_count={post.flag_count}, is_flagged={post.is_flagged}"
        )

        events = []
        if status == FlagStatus.RESOLVED:
            events.append(("flagsResolved", {"flagIds": [flag.id], "postId": post.id}))
            events.append(("postModerationUpdate", {
                "postId": post.id,
                "isFlagged": post.is_flagged,
                "flagCount": post.flag_count,
                "isHidden": post.is_hidden,
                "moderationStatus": post.moderation_status,
            }))
        self._broadcast(events)
        return flag

    def _apply_action(self, post: PostModel, moderator: UserModel, action: str, reason: str | None, now):
        if action == "DELETE_POST":
            # soft delete
            post.moderation_status = ModerationStatus.REMOVED
            post.is_hidden = True
        elif action in _POST_ACTIONS:
            field, value = _POST_ACTIONS[action]
            setattr(post, field, value)
            if action == "HIDE_POST":
                post.moderation_status = ModerationStatus.HIDDEN
            elif action == "UNHIDE_POST" and post.moderation_status == ModerationStatus.HIDDEN:
                post.moderation_status = ModerationStatus.FLAGGED if post.is_flagged else ModerationStatus.APPROVED
        else:
            raise ValidationError("Invalid moderation action")

        post.moderated_by = moderator.id
        post.moderation_reason = sanitize_input(reason) if reason else None
        post.last_moderated_at = now

        self.repo.add(
            ModerationActionModel(
                action=action,
                reason=post.moderation_reason,
                post_id=post.id,
                moderator_id=moderator.id,
                moderated_at=now,
            )
        )
        logger.info(f"Akcja moderacyjna {action} na poscie {post.id} (moderator {moderator.id})")

    # =====================================================
    # QUERIES
    # =====================================================
    def list_flags(self, status: str = FlagStatus.PENDING, page: int = 1, limit: int = 20, severity: str | None = None) -> Dict[str, Any]:
        if page < 1 or limit < 1 or limit > 100:
            raise ValidationError("Invalid pagination parameters")

        flags, total = self.repo.list_page(status, page, limit, severity)
        total_pages = math.ceil(total / limit) if total else 0
        return {
            "flags": flags,
            "pagination": {
                "current_page": page,
                "total_pages": total_pages,
                "total_flags": total,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
        }

    def get_flag(self, flag_id: int) -> FlagModel:
        flag = self.repo.get_flag(flag_id)
        if not flag:
            raise NotFound("Report not found")
        return flag

    def moderation_stats(self) -> Dict[str, int]:
        counts = {
            status: self.repo.count_by_status(status)
            for status in (
                FlagStatus.PENDING,
                FlagStatus.REVIEWED,
                FlagStatus.RESOLVED,
                FlagStatus.DISMISSED,
                FlagStatus.ESCALATED,
            )
        }
        return {
            "pending_reports": counts[FlagStatus.PENDING],
            "reviewed_reports": counts[FlagStatus.REVIEWED],
            "resolved_reports": counts[FlagStatus.RESOLVED],
            "dismissed_reports": counts[FlagStatus.DISMISSED],
            "escalated_reports": counts[FlagStatus.ESCALATED],
            "flagged_posts": self.repo.count_flagged_posts(),
            "total_reports": sum(counts.values()),
        }

    def moderation_history(self, post_id: int) -> List[ModerationActionModel]:
        if not self.repo.get_post(post_id):
            raise NotFound("Post not found")
        return self.repo.moderation_history(post_id)

    # =====================================================
    # BEST-EFFORT SIDE EFFECTS
    # =====================================================
    def _notify_moderators(self, flag: FlagModel, post: PostModel):
        try:
            moderators = [u for u in self.users.list_by_roles(MODERATION_ROLES) if u.id != flag.user_id]
            for moderator in moderators:
                self.repo.db.add(
                    NotificationModel(
                        user_id=moderator.id,
                        type="POST_FLAGGED",
                        title="New post report",
                        message=f"Post #{post.id} was reported for {flag.reason.replace('_', ' ').lower()}",
                        data={"flagId": flag.id, "postId": post.id, "severity": flag.severity},
                    )
                )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            logger.exception(f"Failed to notify moderators about flag {flag.id}")

    def _broadcast(self, events: List[Tuple[str, Dict[str, Any]]]):
        if not self.realtime.enabled:
            return
        # statystyki ida w tym samym POST co reszta eventow
        try:
            events = events + [("moderationStatsUpdate", self.moderation_stats())]
        except Exception:
            logger.warning("Could not compute moderation stats for broadcast", exc_info=True)
        try:
            self.realtime.emit(events)
        except Exception:
            logger.warning(f"Realtime broadcast {[name for name, _ in events]} failed", exc_info=True)
