import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["VAPI_WORKFLOW_ID"] = "wf-test"
os.environ["VAPI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import prepwise.models  # noqa: F401
from prepwise.database import Base, get_db
from prepwise.dependencies import get_feedback_service
from prepwise.services.feedback import FeedbackService
from tests.fakes import FakeModel, make_assessment

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def session_factory():
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_model():
    return FakeModel(make_assessment())


@pytest.fixture
def client(session_factory, fake_model):
    from backend import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    service = FeedbackService(fake_model, session_factory=session_factory)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_feedback_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
