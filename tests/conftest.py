import os

# Must be set before storefront.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_storefront.db")
os.environ.setdefault("ADMIN_SECRET_KEY", "test-admin-secret")
os.environ.setdefault("APP_ENV", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from storefront.main import app as fastapi_app
from storefront.database import Base, get_db

SQLALCHEMY_DATABASE_URL = "sqlite:///./test_storefront.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={
                       "check_same_thread": False})
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

def _override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def db():
    session = TestingSessionLocal()
    yield session
    session.close()

@pytest.fixture
def client():
    fastapi_app.dependency_overrides[get_db] = _override_get_db
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()

@pytest.fixture
def items():
    return [{"id": "eggypro-original", "name": "EggyPro Original", "price": 29.99, "quantity": 1}]

@pytest.fixture
def customer():
    return {"name": "John Doe", "address": "123 Main Street", "city": "New York", "zip": "10001"}

@pytest.fixture
def session_factory():
    return TestingSessionLocal
