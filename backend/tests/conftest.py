from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront import models
from storefront.auth import SessionStore
from storefront.database import Base, get_db
from storefront.grid import GridRegistry
from storefront.rotator import RotatorRegistry
from storefront.main import app, get_cache


class FakeRedis:
    """Just enough of redis.Redis for the settings cache and session store."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = value
        self.ttls[key] = ex
        return True

    def exists(self, key):
        return int(key in self.store)

    def delete(self, key):
        return int(self.store.pop(key, None) is not None)

    def ping(self):
        return True


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


def add_product(db, category, slug, price="100.00", age_days=0, **fields):
    base = datetime(2026, 1, 1)
    product = models.Product(
        slug=slug,
        name=fields.pop("name", slug.replace("-", " ").title()),
        price_ttd=Decimal(price),
        category=category,
        created_at=base + timedelta(days=age_days),
        **fields,
    )
    db.add(product)
    return product


@pytest.fixture
def catalog(db):
    """
    heels: 15 products (every third on sale, every fifth new)
    sandals: 3 products, bags: none
    """
    heels = models.Category(name="Heels", slug="heels", sort_order=1)
    sandals = models.Category(name="Sandals", slug="sandals", sort_order=2)
    bags = models.Category(name="Bags", slug="bags", sort_order=None)
    db.add_all([heels, sandals, bags])

    for i in range(15):
        add_product(
            db,
            heels,
            f"heel-{i:02d}",
            price=f"{100 + (i * 37) % 500}.00",
            age_days=i,
            on_sale=(i % 3 == 0),
            is_new=(i % 5 == 0),
            featured=(i < 10),
        )
    for i in range(3):
        add_product(db, sandals, f"sandal-{i}", price=f"{50 + i}.00", age_days=20 + i)
    db.commit()
    return {"heels": heels, "sandals": sandals, "bags": bags}


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    saved = (
        app.state.session_factory,
        app.state.grids,
        app.state.rotators,
        app.state.session_store,
    )
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: None
    app.state.session_factory = session_factory
    app.state.grids = GridRegistry(max_size=16)
    app.state.rotators = RotatorRegistry(max_size=16)
    app.state.session_store = SessionStore(None)

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.state.grids.close_all()
    app.state.rotators.close_all()
    (
        app.state.session_factory,
        app.state.grids,
        app.state.rotators,
        app.state.session_store,
    ) = saved
