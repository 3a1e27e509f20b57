from sqlalchemy import Column, Date, Enum, Integer, String

from .db import Base


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    # passlib hash string: algorithm, cost, salt and digest in one field
    password_hash = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    gender = Column(Enum("MALE", "FEMALE", name="gender_type"), nullable=False)
    birthdate = Column(Date, nullable=False)
    email = Column(String, nullable=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"
