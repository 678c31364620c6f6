# contest_portal/data/seed.py
import secrets
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from contest_portal.data.database import SessionLocal, init_db
from contest_portal.data.models import CompetitionModel, RegistrationTypeModel, UserModel
from contest_portal.domain.permissions import SUPER_ADMIN
from contest_portal.utils.clock import utcnow
from contest_portal.utils.logging import get_logger

logger = get_logger(__name__)

_REGISTRATION_TYPES = (
    # type, name, fee, max_members
    ("INDIVIDUAL", "Individual", Decimal("5000.00"), 1),
    ("TEAM", "Team", Decimal("10000.00"), 5),
    ("COMPANY", "Company", Decimal("20000.00"), 10),
    ("STUDENT", "Student", Decimal("2500.00"), 1),
    ("KIDS", "Kids", Decimal("1500.00"), 1),
)


def seed_db(db: Session) -> CompetitionModel:
    # not forcing: only seed if empty
    existing = db.execute(select(CompetitionModel)).scalars().first()
    if existing:
        return existing

    now = utcnow()
    competition = CompetitionModel(
        slug=f"archalley-{now.year}",
        title=f"Archalley Competition {now.year}",
        year=now.year,
        registration_deadline=now + timedelta(days=60),
        end_date=now + timedelta(days=90),
    )
    db.add(competition)
    db.flush()

    for type_, name, fee, max_members in _REGISTRATION_TYPES:
        db.add(
            RegistrationTypeModel(
                competition_id=competition.id,
                type=type_,
                name=name,
                fee=fee,
                max_members=max_members,
            )
        )

    admin = UserModel(name="Admin", email="admin@contest-portal.local", role=SUPER_ADMIN, api_token=secrets.token_hex(24))
    db.add(admin)
    db.commit()

    logger.info(f"Seeded competition {competition.slug} and admin user (token: {admin.api_token})")
    return competition


def seed():
    init_db()
    db = SessionLocal()
    try:
        seed_db(db)
    finally:
        db.close()


if __name__ == "__main__":
    seed()
