from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from apps.api.app.db.session import Base


class RevokedToken(Base):
    __tablename__ = "revoked_token"

    user_id = Column(String, primary_key=True)
    jti = Column(String, primary_key=True)
    revoked_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    # Natural expiry of the revoked token; rows past it are pruned.
    expires_at = Column(DateTime(timezone=True), index=True, nullable=False)
