from sqlalchemy.orm import Session


class BaseRepo:
    """Wspolne commit/rollback - serwis decyduje gdzie konczy sie transakcja."""

    def __init__(self, db: Session):
        self.db = db

    def add(self, obj):
        self.db.add(obj)
        self.db.flush()
        return obj

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
