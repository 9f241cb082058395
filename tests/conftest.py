import os
import tempfile
import uuid

# Settings are read at import time; point them at throwaway resources first.
_TMP_DIR = tempfile.mkdtemp(prefix="standflow-tests-")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STATIC_DIR"] = os.path.join(_TMP_DIR, "static")
os.environ["LOG_FILE"] = os.path.join(_TMP_DIR, "test.log")
os.environ["PUBLIC_URL"] = "http://testserver"

import pytest
from fastapi import BackgroundTasks
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

from app.db.core import engine
from app.db.schema import StandConfiguration, ConfigurationStatus, BoothType
from app.main import app
from app.models.auth import Actor, ActorRole
from app.models.stand_configuration import ArtworkRequirement, Guidelines


@pytest.fixture(autouse=True)
def reset_db():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def background_tasks():
    # Service tests never run the queued side effects
    return BackgroundTasks()


@pytest.fixture
def admin():
    return Actor(email="organizer@event.test", name="Olivia Organizer",
                 title="Event Manager", role=ActorRole.ADMIN)


@pytest.fixture
def partner():
    return Actor(email="booth@partner.test", name="Pat Partner", title="Marketing Lead",
                 role=ActorRole.PARTNER, partner_id=uuid.uuid4())


@pytest.fixture
def other_partner():
    return Actor(email="someone@else.test", name="Sam Else", title="CEO",
                 role=ActorRole.PARTNER, partner_id=uuid.uuid4())


@pytest.fixture
def default_configuration(session):
    """An active default template with a 6 x 3 m 'Main Banner' slot."""
    config = StandConfiguration(
        name="Standard Booth",
        status=ConfigurationStatus.ACTIVE,
        artwork_requirements=[
            ArtworkRequirement(name="Main Banner", width=6.0, height=3.0,
                               accepted_formats=["PDF", "PNG"]).model_dump(),
            ArtworkRequirement(name="Side Panel", width=2.0, height=3.0).model_dump(),
        ],
        available_voltages=["110V", "220V"],
        guidelines=Guidelines().model_dump(),
        applicable_booth_types=[t.value for t in BoothType],
        is_default=True
    )
    session.add(config)
    session.commit()
    session.refresh(config)
    return config


@pytest.fixture
def client():
    with TestClient(app) as client:
        yield client
