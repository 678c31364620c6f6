# contest_portal/services/cart_service.py
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from contest_portal.data.models.cart import CartModel
from contest_portal.data.models.cart_item import CartItemModel
from contest_portal.domain.errors import Conflict, Forbidden, NotFound, ValidationError
from contest_portal.domain.statuses import CartStatus
from contest_portal.repos.cart_repo import CartRepo
from contest_portal.repos.competition_repo import CompetitionRepo
from contest_portal.utils.clock import as_utc, utcnow
from contest_portal.utils.logging import get_logger
from contest_portal.utils.settings import CART_EXPIRY_DISABLED, CART_TTL_SECONDS
from contest_portal.utils.validators import sanitize_input, sanitize_member, validate_member_info

logger = get_logger(__name__)

_AGREEMENT_FIELDS = (
    "agreed_to_terms",
    "agreed_to_website_terms",
    "agreed_to_privacy_policy",
    "agreed_to_refund_policy",
)


def calculate_cart_expiry(now: datetime | None = None) -> datetime:
    return (now or utcnow()) + timedelta(seconds=CART_TTL_SECONDS)


def is_cart_expired(cart: CartModel, now: datetime | None = None) -> bool:
    if CART_EXPIRY_DISABLED:
        return False
    return as_utc(cart.expires_at) <= (now or utcnow())


def summarize_cart(cart: CartModel | None, items: List[CartItemModel]) -> Dict[str, Any]:
    #dict przeksztalcany w CartOut
    subtotal = sum((i.subtotal for i in items), Decimal("0.00"))
    return {
        "cart_id": cart.id if cart else None,
        "status": cart.status if cart else None,
        "item_count": len(items),
        "subtotal": float(subtotal),
        "discount": 0.0,
        "total": float(subtotal),
        "expires_at": cart.expires_at if cart else None,
        "items": [
            {
                "id": i.id,
                "competition_title": i.competition.title,
                "registration_type": i.registration_type.name,
                "country": i.country,
                "member_count": len(i.members or []),
                "unit_price": float(i.unit_price),
                "subtotal": float(i.subtotal),
            }
            for i in items
        ],
    }


class CartService:
    """
    Use case dla domeny cart:
    commands (add, remove, clear) modyfikuja stan i bumpuja wersje koszyka,
    query (get) tylko odczyt + leniwe wygaszanie.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.competitions = CompetitionRepo(db)

    #query - odczyt
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_active_cart_by_user(user_id)

        if not cart:
            return summarize_cart(None, [])

        if is_cart_expired(cart):
            # nie ma sweepera - koszyk wygasa przy odczycie
            self.expire_cart(cart)
            return summarize_cart(None, [])

        return summarize_cart(cart, self.repo.get_cart_items(cart.id))

    def expire_cart(self, cart: CartModel):
        cart.status = CartStatus.EXPIRED
        self.repo.commit()
        logger.info(f"Koszyk {cart.id} wygasl (expires_at={cart.expires_at})")

    #commands
    def get_or_create_active_cart(self, user_id: int) -> CartModel:
        existing = self.repo.get_active_cart_by_user(user_id)

        if existing and not is_cart_expired(existing):
            return existing

        if existing:
            logger.info(f"Aktywny koszyk {existing.id} uzytkownika {user_id} wygasl, tworze nowy")
            existing.status = CartStatus.EXPIRED

        created = self.repo.create_cart(
            CartModel(
                user_id=user_id,
                status=CartStatus.ACTIVE,
                version=1,
                expires_at=calculate_cart_expiry(),
            )
        )
        logger.info(f"Utworzono nowy koszyk {created.id} dla uzytkownika {user_id}")
        return created

    def add_item(
        self,
        user_id: int,
        competition_id: int,
        registration_type_id: int,
        country: str,
        participant_type: str,
        members: List[Dict[str, Any]],
        agreements: Dict[str, bool],
        referral_source: str | None = None,
    ) -> Dict[str, Any]:
        # Walidacje wejscia
        if not country or not country.strip():
            raise ValidationError("Country is required")
        if not members:
            raise ValidationError("At least one member is required")
        if not all(agreements.get(name) for name in _AGREEMENT_FIELDS):
            raise ValidationError("All agreements must be accepted")

        competition = self.competitions.get_competition(competition_id)
        if not competition:
            raise NotFound("Competition not found")

        reg_type = self.competitions.get_registration_type(registration_type_id)
        if not reg_type or reg_type.competition_id != competition.id or not reg_type.is_active:
            raise NotFound("Registration type not found")

        if len(members) > reg_type.max_members:
            raise ValidationError(f"Maximum {reg_type.max_members} members allowed for this registration type")

        if utcnow() > as_utc(competition.registration_deadline):
            raise ValidationError("Registration deadline has passed")

        errors: List[str] = []
        for index, member in enumerate(members, start=1):
            valid, member_errors = validate_member_info(member, participant_type)
            if not valid:
                errors.extend(f"Member {index}: {e}" for e in member_errors)
        if errors:
            raise ValidationError("Invalid member information", details=errors)

        cart = self.get_or_create_active_cart(user_id)

        fee = Decimal(reg_type.fee)
        item = self.repo.add_cart_item(
            CartItemModel(
                cart_id=cart.id,
                competition_id=competition.id,
                registration_type_id=reg_type.id,
                country=sanitize_input(country),
                participant_type=participant_type,
                referral_source=sanitize_input(referral_source) if referral_source else None,
                members=[sanitize_member(m) for m in members],
                unit_price=fee,
                quantity=1,
                subtotal=fee,
                **{name: True for name in _AGREEMENT_FIELDS},
            )
        )

        # user jest aktywny - kazda zmiana przedluza waznosc koszyka
        self._bump_version(cart, {"expires_at": calculate_cart_expiry()})
        self.repo.commit()

        logger.info(
            f"Dodano zgloszenie {item.id} (competition={competition.id}, type={reg_type.id}) "
            f"do koszyka {cart.id}, nowa wersja: {cart.version}"
        )
        return {"cart_id": cart.id, "cart_item_id": item.id}

    def remove_item(self, user_id: int, item_id: int) -> Dict[str, Any]:
        item = self.repo.get_cart_item(item_id)

        if not item:
            raise NotFound("Cart item not found")

        cart = item.cart
        if cart.user_id != user_id:
            raise Forbidden("Unauthorized")

        logger.info(f"Usuwanie pozycji {item_id} z koszyka {cart.id}")
        remaining = [i for i in self.repo.get_cart_items(cart.id) if i.id != item.id]

        if not remaining:
            # pusty koszyk nie ma sensu - usuwamy go razem z pozycja (cascade)
            self.repo.delete_cart(cart)
            self.repo.commit()
            logger.info(f"Koszyk {cart.id} pusty - usuniety")
            return {"cart_id": None, "cart_deleted": True}

        self.repo.delete_cart_item(item)
        self._bump_version(cart, {"expires_at": calculate_cart_expiry()})
        self.repo.commit()
        return {"cart_id": cart.id, "cart_deleted": False}

    def clear_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_active_cart_by_user(user_id)
        if not cart:
            return {"removed": 0}

        removed = len(self.repo.get_cart_items(cart.id))
        # koszyk bez pozycji jest usuwany, pozycje ida kaskadowo
        self.repo.delete_cart(cart)
        self.repo.commit()
        logger.info(f"Wyczyszczono koszyk {cart.id} ({removed} pozycji)")
        return {"removed": removed}

    def _bump_version(self, cart: CartModel, new_data: Dict[str, Any]):
        # Optimistic locking: update set version = v+1 where id = :id and version = v
        old_version = cart.version
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=old_version,
            new_data={"version": old_version + 1, **new_data},
        )
        if rowcount == 0:
            self.repo.rollback()
            raise Conflict("Cart was modified by another request, please retry")
