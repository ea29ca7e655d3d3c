import pytest
import shutil
import tempfile
from typing import Generator
from uuid import uuid4
from fastapi.testclient import TestClient

# It is important to set environment variables before importing app modules
import os
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["ENVIRONMENT"] = "testing"
CONTENT_DIR = tempfile.mkdtemp(prefix="recipe-share-images-")
os.environ["CONTENT_DIR"] = CONTENT_DIR

from recipe_share import crud, schemas
from recipe_share.db.session import Base, SessionLocal, engine
from recipe_share.main import app


@pytest.fixture(scope="session", autouse=True)
def db_engine():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield engine
    # Drop tables
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    os.remove("./test.db")
    shutil.rmtree(CONTENT_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def clean_tables(db_engine):
    # Every test starts from empty tables; API calls commit on their own sessions.
    yield
    with db_engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture(scope="function")
def db(db_engine) -> Generator:
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="module")
def client() -> Generator:
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    def _make_user(username=None, password="password"):
        username = username or f"cook_{uuid4().hex[:8]}"
        return crud.create_user(db, schemas.UserCreate(username=username, password=password))
    return _make_user


@pytest.fixture
def make_recipe(client):
    def _make_recipe(user_id, title="Test Recipe", **fields):
        payload = {
            "user_id": str(user_id),
            "title": title,
            "ingredients": [],
            "instructions": [],
            **fields,
        }
        response = client.post("/recipes", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _make_recipe
