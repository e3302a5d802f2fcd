import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient
from datetime import date
from decimal import Decimal
import uuid
import os

# Add project root to sys.path to allow imports from opsdesk
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))


from opsdesk.main import app
from opsdesk.db.base_class import Base
from opsdesk.db.session import get_db
from opsdesk.core.cache import revenue_cache
from opsdesk.crud import crud_user, crud_product, crud_sale
from opsdesk.models.user import Profile as ProfileModel
from opsdesk.models.product import Product as ProductModel
from opsdesk.schemas.user import ProfileCreate
from opsdesk.schemas.product import ProductCreate
from opsdesk.schemas.sale import SaleCreate
import opsdesk.models # noqa: F401  registers every table on Base.metadata

# Use a separate SQLite database for testing
TEST_SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base.metadata.create_all(bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture(scope="session")
def test_engine():
    Base.metadata.create_all(bind=engine)
    yield engine

@pytest.fixture(scope="function")
def db_session(test_engine):
    """
    Provides a database session for each test function.
    Tables are dropped and recreated, and the revenue cache emptied, so ids
    reused by a fresh schema never hit a stale cached view.
    """
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    revenue_cache.invalidate_all_funnels()

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client():
    # The TestClient uses the app with the overridden get_db dependency
    with TestClient(app) as c:
        yield c


def create_profile_for_test(db: Session, role: str = "member", is_superuser: bool = False, password: str = "testpassword123") -> ProfileModel:
    email = f"{role}_{uuid.uuid4().hex[:6]}@example.com"
    return crud_user.create_profile(db, obj_in=ProfileCreate(
        email=email,
        full_name=f"Test {role.title()}",
        role=role,
        is_superuser=is_superuser,
        password=password,
    ))

def _create_profile_and_get_token(db: Session, client: TestClient, role: str, is_superuser: bool = False):
    password = "testpassword123"
    profile = create_profile_for_test(db, role=role, is_superuser=is_superuser, password=password)

    response = client.post("/api/v1/auth/login", data={"username": profile.email, "password": password})
    if response.status_code != 200:
        raise Exception(f"Failed to log in {profile.email} during fixture setup. Status: {response.status_code}, Detail: {response.text}")

    token = response.json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}
    return headers, profile

@pytest.fixture(scope="function")
def superuser_token_headers(db_session: Session, client: TestClient):
    return _create_profile_and_get_token(db_session, client, role="admin", is_superuser=True)

@pytest.fixture(scope="function")
def seller_token_headers(db_session: Session, client: TestClient):
    return _create_profile_and_get_token(db_session, client, role="seller")

@pytest.fixture(scope="function")
def sdr_token_headers(db_session: Session, client: TestClient):
    return _create_profile_and_get_token(db_session, client, role="sdr")

@pytest.fixture(scope="function")
def seller(db_session: Session) -> ProfileModel:
    return create_profile_for_test(db_session, role="seller")

@pytest.fixture(scope="function")
def sdr(db_session: Session) -> ProfileModel:
    return create_profile_for_test(db_session, role="sdr")

@pytest.fixture(scope="function")
def admin(db_session: Session) -> ProfileModel:
    return create_profile_for_test(db_session, role="admin", is_superuser=True)

@pytest.fixture(scope="function")
def test_product(db_session: Session) -> ProductModel:
    return crud_product.create_product(db=db_session, obj_in=ProductCreate(
        name=f"Curso Teste {uuid.uuid4().hex[:6]}",
        description="A great test course",
        default_commission_percent=Decimal("10"),
        price=Decimal("1200.00"),
        is_active=True,
    ))

@pytest.fixture(scope="function")
def make_sale(db_session: Session):
    """Factory for sales; every call gets a fresh external_id."""
    def _make_sale(**overrides):
        data = {
            "external_id": f"TX-{uuid.uuid4().hex[:8]}",
            "client_name": "Maria Cliente",
            "client_email": "maria@example.com",
            "total_value": Decimal("300.00"),
            "installments_count": 3,
            "sale_date": date(2024, 1, 15),
            "platform": "manual",
        }
        data.update(overrides)
        return crud_sale.create_sale(db_session, obj_in=SaleCreate(**data))
    return _make_sale
