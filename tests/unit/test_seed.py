from sqlalchemy import func, select

from contest_portal.data.models import CompetitionModel, RegistrationTypeModel, UserModel
from contest_portal.data.seed import seed_db


def test_seed_is_idempotent(db):
    first = seed_db(db)
    second = seed_db(db)

    assert first.id == second.id
    assert db.execute(select(func.count(CompetitionModel.id))).scalar_one() == 1
    assert db.execute(select(func.count(RegistrationTypeModel.id))).scalar_one() == 5
    admin = db.execute(select(UserModel)).scalar_one()
    assert admin.role == "SUPER_ADMIN"
    assert admin.api_token
