from sqlalchemy import Column, Integer, String

from contest_portal.data.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    role = Column(String, nullable=False, default="MEMBER")
    api_token = Column(String, unique=True, index=True)
