from sqlalchemy import Column, String, DateTime
from datetime import datetime, timezone
from .db import Base


def _utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True)
    email = Column(String, unique=True, index=True, nullable=False)
    # argon2 hashes, never plaintext
    password = Column(String, nullable=False)
    refresh_token = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<User id={self.id!r} email={self.email!r}>"
