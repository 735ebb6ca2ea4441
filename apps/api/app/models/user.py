from apps.api.app.db.session import Base
from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import validates
from sqlalchemy.sql import func
import uuid


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    name = Column(String, nullable=False)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    locked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    password_changed_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    @validates("name")
    def _validate_name(self, key, value):
        if value is None or not str(value).strip():
            raise ValueError("name can't be blank")
        return str(value).strip()

    @validates("email")
    def _validate_email(self, key, value):
        if value is None or not str(value).strip():
            raise ValueError("email can't be blank")
        return str(value).strip().lower()

    @property
    def confirmed(self) -> bool:
        return self.confirmed_at is not None
