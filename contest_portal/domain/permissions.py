# contest_portal/domain/permissions.py
from typing import Dict

MEMBER = "MEMBER"
MODERATOR = "MODERATOR"
ADMIN = "ADMIN"
SUPER_ADMIN = "SUPER_ADMIN"

ADMIN_ROLES = (ADMIN, SUPER_ADMIN)
MODERATION_ROLES = (MODERATOR, ADMIN, SUPER_ADMIN)

_MODERATION = {
    "can_report_posts": True,
    "can_view_reports": True,
    "can_review_reports": True,
    "can_escalate_reports": True,
    "can_perform_moderation_actions": True,
}

ROLE_PERMISSIONS: Dict[str, Dict[str, bool]] = {
    MEMBER: {
        "can_report_posts": True,
        "can_view_reports": False,
        "can_review_reports": False,
        "can_escalate_reports": False,
        "can_perform_moderation_actions": False,
    },
    MODERATOR: dict(_MODERATION),
    ADMIN: dict(_MODERATION),
    SUPER_ADMIN: dict(_MODERATION),
}


def has_permission(role: str | None, permission: str) -> bool:
    return ROLE_PERMISSIONS.get(role or MEMBER, {}).get(permission, False)


def is_admin(role: str | None) -> bool:
    return role in ADMIN_ROLES
