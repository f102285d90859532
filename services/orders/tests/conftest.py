import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("RUN_MIGRATIONS", "false")

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.auth import create_access_token
from app.api.routes import get_order_service
from app.application.schemas import OrderCreate, OrderLineCreate
from app.application.security import CurrentUser
from app.application.service import OrderService
from app.core_settings import Settings, get_settings
from app.domain.enums import OrderType, UserRole
from app.domain.models import Base, Category, Product, Store
from app.main import app

class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite+pysqlite:///:memory:",
        JWT_SECRET="test-secret",
        CANCELLATION_WINDOW_MINUTES=5,
        DEFAULT_PAGE_SIZE=20,
        MAX_PAGE_SIZE=50,
    )

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()

@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()

@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 11, 15, 12, 0, tzinfo=timezone.utc))

@pytest.fixture
def service(db, settings, clock):
    return OrderService(db, settings=settings, clock=clock)

@pytest.fixture
def catalog(db):
    korean = Category(id=uuid.uuid4(), name="Korean")
    chinese = Category(id=uuid.uuid4(), name="Chinese")
    kimbap = Store(id=uuid.uuid4(), name="Kimbap Heaven", category_id=korean.id)
    wok = Store(id=uuid.uuid4(), name="Dragon Wok", category_id=chinese.id)
    kimbap_roll = Product(id=uuid.uuid4(), store_id=kimbap.id, name="Kimbap", price=Decimal("1000"))
    ramyeon = Product(id=uuid.uuid4(), store_id=kimbap.id, name="Ramyeon", price=Decimal("3500"))
    noodles = Product(id=uuid.uuid4(), store_id=wok.id, name="Jajangmyeon", price=Decimal("8000"))
    db.add_all([korean, chinese])
    db.flush()
    db.add_all([kimbap, wok])
    db.flush()
    db.add_all([kimbap_roll, ramyeon, noodles])
    db.commit()
    return SimpleNamespace(
        korean=korean,
        chinese=chinese,
        kimbap=kimbap,
        wok=wok,
        kimbap_roll=kimbap_roll,
        ramyeon=ramyeon,
        noodles=noodles,
    )

@pytest.fixture
def customer():
    return CurrentUser(id=uuid.uuid4(), role=UserRole.CUSTOMER)

@pytest.fixture
def other_customer():
    return CurrentUser(id=uuid.uuid4(), role=UserRole.CUSTOMER)

@pytest.fixture
def owner():
    return CurrentUser(id=uuid.uuid4(), role=UserRole.OWNER)

@pytest.fixture
def manager():
    return CurrentUser(id=uuid.uuid4(), role=UserRole.MANAGER)

@pytest.fixture
def order_request(catalog):
    """Build an OrderCreate for the Kimbap Heaven store"""
    def build(*lines, store=None, order_type=OrderType.PICKUP, address=None, note=None):
        lines = lines or ((catalog.kimbap_roll, 2),)
        return OrderCreate(
            store_id=(store or catalog.kimbap).id,
            order_type=order_type,
            delivery_address=address,
            request_note=note,
            products=[OrderLineCreate(product_id=product.id, quantity=qty) for product, qty in lines],
        )
    return build

@pytest.fixture
def client(db, settings, clock):
    app.dependency_overrides[get_order_service] = lambda: OrderService(db, settings=settings, clock=clock)
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()

@pytest.fixture
def auth_headers(settings):
    def build(user: CurrentUser):
        token = create_access_token(user.id, user.role, settings=settings)
        return {"Authorization": f"Bearer {token}"}
    return build
