import os

# Must be set before fitstat.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

import fakeredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from factories import FakeGateway, make_class, make_user
from fitstat import rate_limiter
from fitstat.database import Base, get_db
from fitstat.domain.payments.router import get_payment_service
from fitstat.domain.payments.service import PaymentService
from fitstat.main import app

engine = create_engine(
    "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    try:
        yield
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def override_get_db(database):
    def _get_test_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def db_session(database):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def fake_redis():
    """Fresh rate-limit state for every test"""
    original = rate_limiter.redis_client
    client = fakeredis.FakeRedis(decode_responses=True)
    rate_limiter.redis_client = client
    with rate_limiter.cache_lock:
        rate_limiter.memory_cache.clear()
    try:
        yield client
    finally:
        rate_limiter.redis_client = original
        with rate_limiter.cache_lock:
            rate_limiter.memory_cache.clear()


@pytest_asyncio.fixture
async def api_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def member(db_session):
    return make_user(db_session, "mia@fitstat.test", name="Mia Member")


@pytest.fixture
def other_member(db_session):
    return make_user(db_session, "otto@fitstat.test", name="Otto Other")


@pytest.fixture
def trainer(db_session):
    return make_user(
        db_session,
        "tom@fitstat.test",
        role="trainer",
        name="Tom Trainer",
        experience=8,
        skills=["Yoga", "Pilates"],
    )


@pytest.fixture
def admin(db_session):
    return make_user(db_session, "ada@fitstat.test", role="admin", name="Ada Admin")


@pytest.fixture
def yoga_class(db_session):
    return make_class(db_session)


@pytest.fixture
def fake_gateway():
    gateway = FakeGateway()

    def _get_payment_service():
        db = TestingSessionLocal()
        try:
            yield PaymentService(db, gateway=gateway)
        finally:
            db.close()

    app.dependency_overrides[get_payment_service] = _get_payment_service
    try:
        yield gateway
    finally:
        app.dependency_overrides.pop(get_payment_service, None)
