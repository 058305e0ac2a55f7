"""Pytest fixtures for API testing."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recipebook.main import app
from recipebook.core.database import get_db
from recipebook.models import Base, DeweyCategory

# In-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Test client with database override.

    Note: db_session already created tables, so we don't need to create them again.
    """
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _category(code, name, level, parent_code=None, is_active=True):
    return DeweyCategory(
        dewey_code=code,
        name=name,
        level=level,
        parent_code=parent_code,
        is_active=is_active,
    )


@pytest.fixture
def dewey_hierarchy(db_session):
    """Create a small Dewey tree.

    4 Dinners
      41 Mains
        411 Poultry
          411.2 Chicken
            411.21 Breast      (level 5 leaf: gets sequence numbers)
            411.22 Thigh       (level 5 leaf)
        412 Sides              (level 3 leaf: too shallow for numbering)
    5 Desserts
    """
    categories = {
        "dinners": _category("4", "Dinners", 1),
        "mains": _category("41", "Mains", 2, "4"),
        "poultry": _category("411", "Poultry", 3, "41"),
        "chicken": _category("411.2", "Chicken", 4, "411"),
        "breast": _category("411.21", "Breast", 5, "411.2"),
        "thigh": _category("411.22", "Thigh", 5, "411.2"),
        "sides": _category("412", "Sides", 3, "41"),
        "desserts": _category("5", "Desserts", 1),
    }
    db_session.add_all(categories.values())
    db_session.commit()
    return categories

