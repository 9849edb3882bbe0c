from datetime import UTC, date, datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient


def _configure_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_file.as_posix()}")
    monkeypatch.setenv("MEMBERSHIP_SECRET", "test-membership-secret")
    monkeypatch.setenv("JWT_SECRET", "test-jwt-secret")
    monkeypatch.setenv("ENTITLEMENT_TIMEZONE", "UTC")
    monkeypatch.setenv("RATE_LIMIT_CLEANUP_INTERVAL_SECONDS", "0")
    monkeypatch.setenv("DUPLICATE_REPORT_STATUS", "200")
    monkeypatch.setenv("AUTO_CREATE_ADMIN", "true")
    monkeypatch.setenv("BOOTSTRAP_ADMIN_LOGIN", "admin")
    monkeypatch.setenv("BOOTSTRAP_ADMIN_PASSWORD", "admin123")


@pytest.fixture()
def database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _configure_env(tmp_path, monkeypatch)

    from fleetgate.core.config import clear_settings_cache
    from fleetgate.db.base import Base
    from fleetgate.db.session import get_engine, get_session_factory, reset_engine
    import fleetgate.models  # noqa: F401

    clear_settings_cache()
    reset_engine()
    Base.metadata.create_all(bind=get_engine())

    yield get_session_factory()

    Base.metadata.drop_all(bind=get_engine())
    reset_engine()
    clear_settings_cache()


@pytest.fixture()
def db_session(database):
    with database() as db:
        yield db


@pytest.fixture()
def app_client(database):
    from fleetgate.main import create_app

    app = create_app()
    with TestClient(app) as client:
        yield client


def utc_today() -> date:
    return datetime.now(UTC).date()


def seed_customer(
    session_factory,
    *,
    days_left: int = 30,
    suspended: bool = False,
    code: str = "XN-TEST-01-AAAA",
    active: bool = True,
    name: str = "Test customer",
) -> str:
    from fleetgate.models.customer import Customer
    from fleetgate.models.pickup_code import PickupCode

    today = utc_today()
    with session_factory() as db:
        customer = Customer(
            customer_name=name,
            plan="pro",
            start_date=today - timedelta(days=30),
            end_date=today + timedelta(days=days_left),
            is_suspended=suspended,
        )
        db.add(customer)
        db.flush()
        db.add(PickupCode(pickup_code=code, customer_id=customer.id, is_active=active))
        db.commit()
    return code


def auth_headers(client: TestClient) -> dict[str, str]:
    response = client.post("/auth/login", json={"login": "admin", "password": "admin123"})
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
