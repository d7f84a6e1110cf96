"""
Pytest configuration and fixtures
"""

import os
import tempfile
from pathlib import Path
from typing import Generator

import jwt
import pytest
from sqlalchemy.orm import Session

# Environment must be in place before api.config is imported
_TEST_DATA_DIR = Path(tempfile.mkdtemp(prefix="interio_test_"))
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JWT_SECRET", "mock-secret-key-for-testing-only-not-for-production")
os.environ.setdefault("JWT_AUD", "authenticated")
os.environ.setdefault("RATE_LIMIT_DEFAULT", "1000/minute")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DATA_DIR / 'session.db'}")

from interio_estimator_core.infra import db as db_module
from interio_estimator_core.infra.db import Database

TEST_ACCOUNT = "acct-1111"
OTHER_ACCOUNT = "acct-2222"


@pytest.fixture
def test_database(tmp_path) -> Generator[Database, None, None]:
    """Fresh file-backed SQLite database per test"""
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    db.create_tables()
    yield db
    db.close()


@pytest.fixture
def db_session(test_database) -> Generator[Session, None, None]:
    """Transactional session; committed when the test body returns"""
    with test_database.session_scope() as session:
        yield session


@pytest.fixture(autouse=True)
def reset_singleton(tmp_path, monkeypatch):
    """Point the global database at a per-test file and reset the singleton"""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'app.db'}")
    db_module._db_instance = None
    yield
    if db_module._db_instance is not None:
        db_module._db_instance.close()
    db_module._db_instance = None


def make_token(account_id: str = TEST_ACCOUNT, **claims) -> str:
    payload = {"sub": account_id, "aud": os.environ["JWT_AUD"]}
    payload.update(claims)
    return jwt.encode(payload, os.environ["JWT_SECRET"], algorithm="HS256")


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def other_auth_headers():
    return {"Authorization": f"Bearer {make_token(OTHER_ACCOUNT)}"}


@pytest.fixture
def sample_grid_csv():
    """Drop/Width CSV as exported from a supplier price list"""
    return (
        "Drop/Width,60,90,120\n"
        "100,45.00,52.50,61.00\n"
        "150,50.00,58.00,67.50\n"
    )


@pytest.fixture
def sample_grid_data():
    """Canonical stored grid (cm)"""
    return {
        "unit": "cm",
        "widthColumns": [60, 90, 120],
        "dropRows": [
            {"drop": 100, "prices": [45.0, 52.5, 61.0]},
            {"drop": 150, "prices": [50.0, 58.0, 67.5]},
        ],
        "version": 1,
    }


@pytest.fixture
def curtain_summary():
    """Curtain worksheet save with every essential measurement present"""
    return {
        "window_id": "win-001",
        "treatment_category": "curtains",
        "treatment_type": "curtains",
        "fabric_details": {"name": "Linen Natural", "width": 137},
        "template_details": {"fullness_ratio": 2.0},
        "measurements_details": {
            "rail_width": 200,
            "drop": 220,
            "header_allowance": 8,
            "bottom_hem": 15,
            "pooling_amount_cm": 2,
        },
        "fabric_cost": 310.5,
        "manufacturing_cost": 120.0,
        "total_cost": 430.5,
    }


# Test markers
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (database, HTTP)"
    )
    config.addinivalue_line(
        "markers", "critical: Critical path tests that must pass"
    )
