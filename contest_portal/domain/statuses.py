# contest_portal/domain/statuses.py
# stale statusow trzymane jako zwykle stringi (tak jak w kolumnach)


class CartStatus:
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    EXPIRED = "EXPIRED"


class PaymentStatus:
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentMethod:
    CARD = "CARD"
    BANK_TRANSFER = "BANK_TRANSFER"


class RegistrationStatus:
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SUBMITTED = "SUBMITTED"
    CANCELLED = "CANCELLED"


class SubmissionStatus:
    NOT_SUBMITTED = "NOT_SUBMITTED"
    SUBMITTED = "SUBMITTED"


class ParticipantType:
    INDIVIDUAL = "INDIVIDUAL"
    TEAM = "TEAM"
    COMPANY = "COMPANY"
    STUDENT = "STUDENT"
    KIDS = "KIDS"


class FlagStatus:
    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    RESOLVED = "RESOLVED"
    DISMISSED = "DISMISSED"
    ESCALATED = "ESCALATED"

    OPEN = (PENDING, REVIEWED)
    CLOSING = (RESOLVED, DISMISSED)


FLAG_REASONS = (
    "SPAM",
    "HARASSMENT",
    "HATE_SPEECH",
    "INAPPROPRIATE_CONTENT",
    "MISINFORMATION",
    "COPYRIGHT_VIOLATION",
    "PERSONAL_INFORMATION",
    "OFF_TOPIC",
    "DUPLICATE_CONTENT",
    "SCAM_FRAUD",
    "VIOLENCE_THREATS",
    "SEXUAL_CONTENT",
    "ILLEGAL_CONTENT",
    "OTHER",
)

# kolejnosc = priorytet w kolejce moderacji
FLAG_SEVERITIES = ("LOW", "MEDIUM", "HIGH", "CRITICAL")


class ModerationStatus:
    APPROVED = "APPROVED"
    FLAGGED = "FLAGGED"
    HIDDEN = "HIDDEN"
    REMOVED = "REMOVED"


MODERATION_ACTIONS = (
    "HIDE_POST",
    "UNHIDE_POST",
    "PIN_POST",
    "UNPIN_POST",
    "LOCK_POST",
    "UNLOCK_POST",
    "DELETE_POST",
)
