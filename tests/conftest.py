import pytest
import os
import tempfile
from datetime import date
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["UPLOAD_DIR"] = os.path.join(tempfile.gettempdir(), "absence-tracker-tests")

from absence_tracker.database import Base, get_db
from absence_tracker.main import app
from absence_tracker.models.absence import Absence, AbsenceFile, AbsenceStatus, AbsenceType
from absence_tracker.models.user import User, UserRole
from absence_tracker.routers.auth_deps import get_storage
from absence_tracker.services.storage import LocalStorageService
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """Fresh schema per test; services commit and roll back on their own."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    
    yield session
    
    session.close()
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def storage(tmp_path):
    return LocalStorageService(str(tmp_path / "uploads"))

@pytest.fixture(scope="function")
def employee(db_session):
    """Employee hired long enough ago to be past the trial period."""
    user = User(
        email="employee@example.com",
        full_name="Jordan Employee",
        role=UserRole.EMPLOYEE,
        hire_date=date(2023, 1, 1),
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user

@pytest.fixture(scope="function")
def admin_user(db_session):
    user = User(
        email="admin@example.com",
        full_name="System Admin",
        role=UserRole.ADMIN,
        hire_date=date(2020, 1, 1),
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user

@pytest.fixture(scope="function")
def make_absence(db_session):
    """Insert an absence directly, bypassing admission."""
    def _make_absence(user, absence_type, start, end=None, status=AbsenceStatus.PENDING, files=0):
        absence = Absence(
            user_id=user.id,
            type=AbsenceType(absence_type).value,
            start_date=start,
            end_date=end or start,
            status=AbsenceStatus(status).value,
        )
        for i in range(files):
            absence.files.append(AbsenceFile(
                file_name=f"stored-{i}.pdf",
                original_name=f"certificate-{i}.pdf",
                mime_type="application/pdf",
                size=10,
                storage_path=f"{user.id}/seed/stored-{i}.pdf",
            ))
        db_session.add(absence)
        db_session.commit()
        return absence
    return _make_absence

@pytest.fixture(scope="function")
def auth_headers():
    def _auth_headers(user):
        return {"X-User-ID": str(user.id)}
    return _auth_headers

@pytest.fixture(scope="function")
def client(db_session, storage):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass
            
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
