#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from contest_portal.data.models.user import UserModel
from contest_portal.data.models.competition import CompetitionModel, RegistrationTypeModel
from contest_portal.data.models.cart import CartModel
from contest_portal.data.models.cart_item import CartItemModel
from contest_portal.data.models.payment import PaymentModel
from contest_portal.data.models.registration import RegistrationModel
from contest_portal.data.models.post import PostModel
from contest_portal.data.models.flag import FlagModel
from contest_portal.data.models.moderation_action import ModerationActionModel
from contest_portal.data.models.notification import NotificationModel

__all__ = [
    "UserModel",
    "CompetitionModel",
    "RegistrationTypeModel",
    "CartModel",
    "CartItemModel",
    "PaymentModel",
    "RegistrationModel",
    "PostModel",
    "FlagModel",
    "ModerationActionModel",
    "NotificationModel",
]
