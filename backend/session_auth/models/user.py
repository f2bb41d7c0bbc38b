"""User ORM model."""
from sqlalchemy import Column, DateTime, Index, Integer, String
from sqlalchemy.sql import func

from session_auth.database import ACTIVE_ROW, Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    password_hash = Column(String(255), nullable=False)
    color_theme = Column(String(20), nullable=False, default="light")
    lang = Column(String(10), nullable=False, default="en")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # One live account per email / phone; soft-deleted rows free the value up again.
    __table_args__ = (
        Index("uq_users_email_active", "email", unique=True,
              postgresql_where=ACTIVE_ROW, sqlite_where=ACTIVE_ROW),
        Index("uq_users_phone_active", "phone", unique=True,
              postgresql_where=ACTIVE_ROW, sqlite_where=ACTIVE_ROW),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"
