import pytest
from fastapi.testclient import TestClient

from apps.api.app.main import app
from apps.api.app.core.security import get_password_hash
from apps.api.app.core.time import utc_now
from apps.api.app.db.session import Base, SessionLocal, engine
from apps.api.app.models.user import User


@pytest.fixture()
def client():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        db.add(
            User(
                email="alice@test.com",
                hashed_password=get_password_hash("AlicePass123!"),
                name="Alice",
                confirmed_at=utc_now(),
            )
        )
        db.add(
            User(
                email="bob@test.com",
                hashed_password=get_password_hash("BobPass123!"),
                name="Bob",
                confirmed_at=utc_now(),
            )
        )
        db.add(
            User(
                email="locked@test.com",
                hashed_password=get_password_hash("LockedPass123!"),
                name="Locked",
                confirmed_at=utc_now(),
                locked=True,
            )
        )
        db.commit()
    finally:
        db.close()

    with TestClient(app) as tc:
        yield tc
