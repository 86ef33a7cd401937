import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from pos_sync.core.database import Base, get_db, init_db
from pos_sync.app.main import create_app
from pos_sync.modules.pos.adapters.cloudpos_adapter import CloudPOSAdapter
from pos_sync.modules.pos.repositories.document_repository import (
    SQLAlchemyDocumentRepository,
)
from pos_sync.modules.pos.services.sync_orchestrator import SyncOrchestrator
from pos_sync.modules.pos.services.sync_runtime import SyncRuntime

from .factories import SHOP_ID, make_integration
from .fake_cloudpos import FakeCloudPOS

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    init_db(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_pos():
    return FakeCloudPOS()


@pytest.fixture
def adapter(fake_pos):
    return CloudPOSAdapter(
        {"license_name": "license-1", "token": "secret-token"},
        transport=fake_pos.transport(),
    )


@pytest.fixture
def runtime(fake_pos):
    return SyncRuntime(
        adapter_builder=lambda integration: CloudPOSAdapter(
            integration.credentials, transport=fake_pos.transport()
        )
    )


@pytest.fixture
def integration(db_session):
    return make_integration(db_session)


@pytest.fixture
def repository(db_session):
    return SQLAlchemyDocumentRepository(db_session, SHOP_ID)


@pytest.fixture
def orchestrator(db_session, runtime):
    return SyncOrchestrator(db_session, runtime)


@pytest.fixture(scope="function")
def client(db_session, runtime):
    """Create a test client with database dependency override."""
    app = create_app(runtime)

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
