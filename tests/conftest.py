# tests/conftest.py

import os
import tempfile

# Point the app at a throwaway database and upload directory before it is imported
os.environ["TESTING"] = "1"
_scratch = tempfile.mkdtemp(prefix="order-intake-tests-")
os.environ.setdefault("TEST_DATABASE_URL", f"sqlite:///{os.path.join(_scratch, 'test_orders.db')}")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_scratch, "uploads"))

import pytest
from sqlmodel import SQLModel, Session
from order_intake.db import engine, get_session
from order_intake.main import app, get_storage
from order_intake.uploads import UploadStorage


# Fixture to create the test database and tables
@pytest.fixture(name="create_test_database")
def create_test_database_fixture():
    """
    Overrides the get_session dependency to use the test database session.
    Creates all tables before tests and drops them after tests.
    """
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    # Setup: create tables in the test DB
    SQLModel.metadata.create_all(engine)
    yield
    # Teardown: drop tables after tests
    SQLModel.metadata.drop_all(engine)

    # Remove only the specific dependency override
    app.dependency_overrides.pop(get_session, None)


# Fixture giving each test its own upload directory
@pytest.fixture(name="upload_storage")
def upload_storage_fixture(tmp_path):
    """
    Overrides the get_storage dependency with a storage rooted in tmp_path.
    """
    storage = UploadStorage(tmp_path / "uploads")
    app.dependency_overrides[get_storage] = lambda: storage
    yield storage
    app.dependency_overrides.pop(get_storage, None)


@pytest.fixture(name="order_form")
def order_form_fixture():
    """A submission that passes every validation rule."""
    return {
        "name": "A",
        "email": "a@b.com",
        "phone": "1234567890",
        "address": "X",
        "pincode": "000",
        "city": "Y",
        "totalAmount": "100",
        "products": '[{"productId":"p1","name":"Widget","price":100,"quantity":1}]',
    }
