# contest_portal/utils/codes.py
"""
Generatory identyfikatorow:
- order id platnosci (sekwencja w roku),
- publiczny numer zgloszenia (6 losowych znakow),
- kod wyswietlany dla admina (nadawany dopiero po potwierdzeniu platnosci).
"""
import secrets

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from contest_portal.data.models.payment import PaymentModel
from contest_portal.data.models.registration import RegistrationModel
from contest_portal.domain.errors import InternalError
from contest_portal.utils.clock import utcnow
from contest_portal.utils.settings import DISPLAY_CODE_MAX_ATTEMPTS
from contest_portal.utils.logging import get_logger

logger = get_logger(__name__)

# bez 0/O, 1/I - latwo pomylic przy przepisywaniu
REGISTRATION_NUMBER_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"
DISPLAY_CODE_ALPHABET = "2345679ABCDEFGHJKLMNPQRSTUVWXYZ"
CODE_LENGTH = 6


def _random_code(alphabet: str, length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


# =====================================================
# ORDER ID
# =====================================================
def order_id_prefix(year: int | None = None) -> str:
    return f"ORDER-AC{year or utcnow().year}"


def generate_order_id(sequence: int, year: int | None = None) -> str:
    return f"{order_id_prefix(year)}-{sequence:05d}"


def next_order_sequence(db: Session) -> int:
    # count + 1 - dwa rownolegle checkouty moga dostac ten sam numer,
    # kolizje lapie unique constraint na payments.order_id
    prefix = order_id_prefix()
    count = db.execute(
        select(func.count(PaymentModel.id)).where(PaymentModel.order_id.startswith(prefix))
    ).scalar_one()
    return count + 1


# =====================================================
# REGISTRATION NUMBER
# =====================================================
def generate_registration_number() -> str:
    return _random_code(REGISTRATION_NUMBER_ALPHABET)


def generate_unique_registration_number(db: Session) -> str:
    # 32^6 kombinacji - petla bez limitu
    while True:
        number = generate_registration_number()
        exists = db.execute(
            select(RegistrationModel.id).where(RegistrationModel.registration_number == number)
        ).first()
        if not exists:
            return number
        logger.info(f"Registration number collision: {number}, retrying")


# =====================================================
# DISPLAY CODE
# =====================================================
def generate_display_code(year: int | None = None) -> str:
    return f"ARC{year or utcnow().year}-{_random_code(DISPLAY_CODE_ALPHABET)}"


def generate_unique_display_code(
    db: Session,
    year: int | None = None,
    max_attempts: int = DISPLAY_CODE_MAX_ATTEMPTS,
) -> str:
    for _ in range(max_attempts):
        code = generate_display_code(year)
        exists = db.execute(
            select(RegistrationModel.id).where(RegistrationModel.display_code == code)
        ).first()
        if not exists:
            return code
        logger.info(f"Display code collision: {code}, retrying")

    raise InternalError("Failed to generate unique display code")
