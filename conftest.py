import os

# In-memory database for the app module; must be set before jumbo_planner is imported
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from jumbo_planner import database, models
from jumbo_planner.api.base import get_registry
from jumbo_planner.main import app
from jumbo_planner.services.manual_adjustment import SuggestionRegistry
from jumbo_planner.services.roll_types import ExistingStockRoll, PaperSpec, PendingRequirement

GOLDEN = PaperSpec(gsm=120, bf=18.0, shade="Golden")
NATURAL = PaperSpec(gsm=100, bf=16.0, shade="Natural")


def make_requirement(requirement_id, width, quantity, order_id="ORD-1", spec=GOLDEN, **extra):
    return PendingRequirement(
        requirement_id=requirement_id,
        width=width,
        spec=spec,
        quantity=quantity,
        order_id=order_id,
        **extra,
    )


def make_stock(roll_id, width, spec=GOLDEN):
    return ExistingStockRoll(roll_id=roll_id, width=width, spec=spec, source="test")


@pytest.fixture
def engine():
    test_engine = database.build_engine("sqlite://")
    models.Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def registry():
    return SuggestionRegistry()


@pytest.fixture
def client(session_factory, registry):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[database.get_db] = override_get_db
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def spec_example():
    """40" x3 and 38" x2 in one spec: two sets {40, 40, 38} and {40, 38}."""
    return [
        make_requirement("REQ-40", 40, 3, order_id="ORD-A", client_name="Acme Papers"),
        make_requirement("REQ-38", 38, 2, order_id="ORD-B", client_name="Bharat Boards"),
    ]
