"""OauthToken ORM model — one opaque bearer token per signed-in user."""
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.sql import func

from session_auth.database import ACTIVE_ROW, Base

TOKEN_LENGTH = 64  # 32 random bytes, hex encoded


class OauthToken(Base):
    __tablename__ = "oauth_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    token = Column(String(TOKEN_LENGTH), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("uq_oauth_tokens_user_active", "user_id", unique=True,
              postgresql_where=ACTIVE_ROW, sqlite_where=ACTIVE_ROW),
    )

    def __repr__(self) -> str:
        return f"<OauthToken id={self.id} user_id={self.user_id}>"
