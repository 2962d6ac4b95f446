import os

# До импорта app.database: тесты работают на SQLite в памяти
os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal  # noqa: E402
from typing import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import StaticPool, create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from app import crud  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.schemas import CoffeeCreate  # noqa: E402

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def tables() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def api_app():
    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api_app) -> Generator[TestClient, None, None]:
    with TestClient(api_app) as test_client:
        yield test_client


@pytest.fixture
def coffee_payload() -> dict:
    return {
        "name": "Yirgacheffe",
        "roaster": "Acme",
        "roastLevel": "light",
        "origin": "Ethiopia",
        "currentPrice": 12.50,
        "description": "Floral and bright",
        "tastingNotes": ["jasmine", "lemon", "honey", "bergamot"],
    }


@pytest.fixture
def make_coffee(db: Session):
    """Создаёт кофе через сервисный слой; поля можно переопределить."""

    def _make(**overrides):
        data = {
            "name": "House Blend",
            "roaster": "Acme",
            "roast_level": "medium",
            "current_price": Decimal("10.00"),
        }
        data.update(overrides)
        return crud.create_coffee(db, CoffeeCreate(**data))

    return _make
