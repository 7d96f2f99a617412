import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.events import ErrorEmitter
from app.db.rules import Principal, SecurityRules
from app.db.store import DocumentStore
from app.main import create_app, init_app_state
from tests.fakes import FakeDatabase, FakeLlm

ADMIN_EMAIL = "admin@zimmah.com"


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def rules():
    return SecurityRules(ADMIN_EMAIL)


@pytest.fixture
def store(database, rules):
    return DocumentStore(database, rules)


@pytest.fixture
def emitter():
    return ErrorEmitter()


@pytest.fixture
def alice():
    return Principal(uid="alice", email="alice@example.com")


@pytest.fixture
def bob():
    return Principal(uid="bob", email="bob@example.com")


@pytest.fixture
def admin():
    return Principal(uid="root", email=ADMIN_EMAIL)


@pytest.fixture
def production_settings():
    return Settings(ENVIRONMENT="production", SECRET_KEY="test-production-secret")


@pytest.fixture
def development_settings():
    return Settings(ENVIRONMENT="development")


@pytest.fixture
def llm():
    return FakeLlm()


@pytest.fixture
def app(database, llm):
    application = create_app(use_lifespan=False)
    init_app_state(application, database, llm=llm)
    return application


@pytest.fixture
def client(app):
    return TestClient(app)

