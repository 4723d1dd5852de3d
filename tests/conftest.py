import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"

import pytest
from unittest.mock import MagicMock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.core.security import create_token, hash_password
from app.core.services import get_scan_service
from app.main import app
from app.models.user import User
from app.services.analysis.ai_enrichment import AIEnrichmentClient
from app.services.analysis.alternative_images import AlternativeImageEnricher
from app.services.ingestion.label_ocr import LabelOCRClient
from app.services.ingestion.product_lookup import OpenFoodFactsClient
from app.services.scan_lookup import ScanLookupService


def make_response(status_code=200, json_data=None):
    """Fake requests.Response"""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSession()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def http_session():
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def product_client(http_session):
    return OpenFoodFactsClient(session=http_session)


@pytest.fixture
def ai_client():
    client = MagicMock(spec=AIEnrichmentClient)
    client.assess.return_value = None
    return client


@pytest.fixture
def ocr_client():
    client = MagicMock(spec=LabelOCRClient)
    client.enabled = True
    return client


@pytest.fixture
def scan_service(product_client, ai_client, ocr_client):
    return ScanLookupService(
        product_client=product_client,
        ai_client=ai_client,
        image_enricher=AlternativeImageEnricher(product_client),
        ocr_client=ocr_client
    )


@pytest.fixture
def client(db_session, scan_service):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scan_service] = lambda: scan_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user(db_session):
    user = User(
        username="asha",
        email="asha@example.com",
        password_hash=hash_password("secret123"),
        health_conditions=["diabetes"],
        allergies=[],
        is_verified=True
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {create_token(user.id)}"}
