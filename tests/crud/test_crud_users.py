import pytest
from sqlalchemy.orm import Session
from decimal import Decimal

from opsdesk.core.security import verify_password
from opsdesk.crud import crud_user, crud_product
from opsdesk.schemas.user import ProfileCreate, ProfileUpdate
from opsdesk.schemas.product import ProductCreate, ProductUpdate

pytestmark = pytest.mark.crud

def test_create_profile_hashes_password(db_session: Session):
    profile = crud_user.create_profile(db_session, obj_in=ProfileCreate(
        email="vendedora@example.com", full_name="Vendedora", role="seller", password="segredo123"
    ))
    assert profile.is_active is True
    assert profile.hashed_password != "segredo123"
    assert verify_password("segredo123", profile.hashed_password)
    assert crud_user.get_profile_by_email(db_session, email="vendedora@example.com").id == profile.id

def test_update_profile_password(db_session: Session, seller):
    updated = crud_user.update_profile(db_session, db_obj=seller, obj_in=ProfileUpdate(password="novasenha", full_name="Renamed"))
    assert updated.full_name == "Renamed"
    assert verify_password("novasenha", updated.hashed_password)

def test_get_profiles_by_role(db_session: Session, seller, sdr):
    assert [p.id for p in crud_user.get_profiles(db_session, role="sdr")] == [sdr.id]
    assert len(crud_user.get_profiles(db_session)) == 2

def test_products_crud(db_session: Session, test_product):
    inactive = crud_product.create_product(db_session, obj_in=ProductCreate(name="Antigo", is_active=False))
    assert [p.id for p in crud_product.get_products(db_session, is_active=True)] == [test_product.id]
    assert len(crud_product.get_products(db_session)) == 2

    updated = crud_product.update_product(db_session, db_obj=inactive, obj_in=ProductUpdate(is_active=True, default_commission_percent=Decimal("15")))
    assert updated.is_active is True
    assert updated.default_commission_percent == Decimal("15")
