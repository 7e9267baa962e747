import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from fakes import EchoVerifier, FakeTransport, RecordingSleep, meal_plan_text
from mealgen import main
from mealgen.api import deps
from mealgen.services.jobs import JobLifecycleController
from mealgen.services.llm.generation_client import GenerationClient, RetryPolicy
from mealgen.storage import db as db_module
from mealgen.storage.repositories import JobStore


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="store")
def store_fixture(engine):
    return JobStore(session_factory=lambda: Session(engine))


@pytest.fixture(name="transport")
def transport_fixture():
    return FakeTransport([meal_plan_text()])


@pytest.fixture(name="sleep")
def sleep_fixture():
    return RecordingSleep()


@pytest.fixture(name="gen_client")
def gen_client_fixture(transport, sleep):
    return GenerationClient(transport, policy=RetryPolicy(), timeout_s=5, sleep=sleep)


@pytest.fixture(name="enqueued")
def enqueued_fixture():
    return []


@pytest.fixture(name="client")
def client_fixture(monkeypatch, engine, gen_client, enqueued):
    def _get_session_override():
        return Session(engine)

    monkeypatch.setattr(db_module, "engine", engine)
    monkeypatch.setattr(db_module, "get_session", _get_session_override)
    monkeypatch.setattr(main, "check_llm_configuration", lambda: True)
    monkeypatch.setattr(deps, "caller_verifier", EchoVerifier())

    main.app.dependency_overrides[deps.get_controller] = lambda: JobLifecycleController(
        JobStore(), enqueue=enqueued.append
    )
    main.app.dependency_overrides[deps.get_client] = lambda: gen_client
    client = TestClient(main.app)
    yield client
    main.app.dependency_overrides.clear()
