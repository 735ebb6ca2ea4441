from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import apps.api.app.models.user
import apps.api.app.models.audit_log
import apps.api.app.models.revoked_token
import apps.api.app.models.session_revocation
from apps.api.app.db.session import Base
from apps.api.app.services.credential_store import SqlCredentialStore
from apps.api.app.services.revocation_ledger import SqlRevocationLedger
from apps.api.app.services.token_sessions import TokenSessionManager


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    finally:
        engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def clock():
    return FakeClock(datetime(2026, 1, 5, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture()
def store(db):
    return SqlCredentialStore(db)


@pytest.fixture()
def ledger(db):
    return SqlRevocationLedger(db)


@pytest.fixture()
def manager(ledger, store, clock):
    return TokenSessionManager(
        secret_key="unit-secret",
        ledger=ledger,
        credentials=store,
        lifetime=timedelta(hours=1),
        clock=clock,
    )


def _make_user(db, store, email, name):
    user = store.register(email=email, password="Password123!", name=name)
    store.confirm(user)
    db.commit()
    return user


@pytest.fixture()
def user(db, store):
    return _make_user(db, store, "alice@test.com", "Alice")


@pytest.fixture()
def other_user(db, store):
    return _make_user(db, store, "bob@test.com", "Bob")
