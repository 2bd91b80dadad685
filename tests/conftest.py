import os

# Keep the app module from creating a sqlite file next to the tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from restobot.ordering.catalog import load_catalog
from restobot.ordering.state import ConversationState
from restobot.payment import PaymentGateway, PaymentInit, PaymentVerification


class FakeGateway(PaymentGateway):
    """Records calls and answers with canned results."""

    def __init__(self, init_result=None, verify_result=None):
        self.init_result = init_result or PaymentInit(
            success=True,
            redirect_url="https://checkout.paystack.com/abc123",
            message="Payment initialized successfully",
        )
        self.verify_result = verify_result
        self.init_calls = []
        self.verify_calls = []

    async def initialize(self, email, amount, reference):
        self.init_calls.append((email, amount, reference))
        return self.init_result

    async def verify(self, reference):
        self.verify_calls.append(reference)
        if self.verify_result is not None:
            return self.verify_result
        return PaymentVerification(verified=True, reference=reference, message="Payment verified")


@pytest.fixture
def catalog():
    return load_catalog()


@pytest.fixture
def state():
    return ConversationState()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    from restobot.db import Base
    import restobot.models  # noqa: F401  (registers tables)

    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def client(db_engine, gateway):
    """FastAPI TestClient over an in-memory SQLite DB and a fake payment gateway."""
    from restobot import db as db_mod
    from restobot.main import app, get_gateway

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def override_get_db():
        db_sess = TestingSessionLocal()
        try:
            yield db_sess
        finally:
            db_sess.close()

    app.dependency_overrides[db_mod.get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
