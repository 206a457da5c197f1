import os

SERVICE_KEY = "test-service-key"

os.environ["PORTAL_DATABASE_URL"] = "sqlite://"
os.environ["PORTAL_SCHEDULER_ENABLED"] = "false"
os.environ["PORTAL_SERVICE_ROLE_KEY"] = SERVICE_KEY

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from portal import models  # noqa: E402,F401
from portal.core.constants import Role  # noqa: E402
from portal.core.database import Base, get_db  # noqa: E402
from portal.main import create_app  # noqa: E402
from portal.services import deduction_service, user_service  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite needs explicit BEGIN for SAVEPOINT to work.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, future=True)


@pytest.fixture
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture
def admin(session):
    return user_service.create_user(
        session, user_code="A001", full_name="مدير النظام", email="admin@school.test", role_id=Role.ADMIN
    )


@pytest.fixture
def teacher(session):
    return user_service.create_user(
        session, user_code="T001", full_name="أ. سارة", email="teacher@school.test", role_id=Role.TEACHER
    )


@pytest.fixture
def student(session):
    return user_service.create_user(
        session, user_code="S001", full_name="ليان أحمد", email="s1@school.test", role_id=Role.STUDENT
    )


@pytest.fixture
def other_student(session):
    return user_service.create_user(
        session, user_code="S002", full_name="عمر خالد", email="s2@school.test", role_id=Role.STUDENT
    )


@pytest.fixture
def tiers(session, admin):
    """Yellow at 20 negative points (25%, 7 days), red at 50 (50%, 14 days)."""

    yellow = deduction_service.create_tier(
        session,
        actor_id=admin.id,
        name="الكرت الأصفر",
        negative_points_threshold=20,
        deduction_percentage=25,
        active_duration_days=7,
    )
    red = deduction_service.create_tier(
        session,
        actor_id=admin.id,
        name="الكرت الأحمر",
        negative_points_threshold=50,
        deduction_percentage=50,
        active_duration_days=14,
    )
    return yellow, red


@pytest.fixture
def client(session_factory):
    app = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
