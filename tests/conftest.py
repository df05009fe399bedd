"""
Pytest fixtures for the link catalog tests.

Provides an in-memory catalog connection seeded with a small, deterministic
set of resources and providers, an on-disk copy for HTTP-level tests, and
TestClient instances with and without credentials.

Seed layout (6 joined rows over 5 resources; alpha.com has two providers):

    resource_id  resource     main_category  da  metrics_update_date  providers (price)
    1            alpha.com    Tech.Mobile    10  2023-01-10           a@ (100), b@ (150)
    2            beta.com     Finance        20  2023-01-15           c@ (200)
    3            gamma.com    Auto           30  2023-02-01           d@ (50)
    4            delta.com    Business       40  2023-02-20           e@ (300)
    5            epsilon.com  Gambling       50  2023-03-05           f@ (10)
"""

import sqlite3
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.config import AppConfig
from utils.database import create_schema

TEST_TOKEN = "test-token"

_RESOURCES = [
    # resource_id, resource, main_category, other_categories, da, dr, metrics_update_date, social_media, other_info
    (1, "alpha.com", "Tech.Mobile", "Business,Finance", 10, 20, "2023-01-10", "twitter.com/alpha", None),
    (2, "beta.com", "Finance", None, 20, 30, "2023-01-15", None, "fast turnaround"),
    (3, "gamma.com", "Auto", "Travel", 30, 40, "2023-02-01", None, None),
    (4, "delta.com", "Business", None, 40, 50, "2023-02-20", None, None),
    (5, "epsilon.com", "Gambling", None, 50, 60, "2023-03-05", None, None),
]

_PROVIDERS = [
    # id, resource_id, email, currency, price, casino_price, payment_method, notes
    (1, 1, "a@alpha.com", "USD", 100, None, "PayPal", "100% guaranteed"),
    (2, 1, "b@alpha.com", "EUR", 150, None, "Wire", "discount_code applies"),
    (3, 2, "c@beta.com", "USD", 200, None, "PayPal", None),
    (4, 3, "d@gamma.com", "USD", 50, 80, "Crypto", None),
    (5, 4, "e@delta.com", "GBP", 300, None, "Wire", None),
    (6, 5, "f@epsilon.com", "USD", 10, 25, "PayPal", None),
]


def seed_catalog(conn: sqlite3.Connection) -> None:
    """Create the schema and insert the seed rows described above."""
    create_schema(conn)
    conn.executemany(
        "INSERT INTO lbs_resources (resource_id, resource, main_category, "
        "other_categories, da, dr, metrics_update_date, social_media, other_info) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
        _RESOURCES,
    )
    conn.executemany(
        "INSERT INTO lbs_providers (id, resource_id, email, currency, price, "
        "casino_price, payment_method, notes) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
        _PROVIDERS,
    )
    conn.commit()


def seed_bulk(conn: sqlite3.Connection, count: int) -> None:
    """Create the schema and insert count resources with one provider each.

    Resources are named site01.com, site02.com, ... so sorting by resource
    matches sorting by id.
    """
    create_schema(conn)
    for i in range(1, count + 1):
        conn.execute(
            "INSERT INTO lbs_resources (resource_id, resource, main_category) "
            "VALUES (?, ?, ?)",
            (i, f"site{i:02d}.com", "General"),
        )
        conn.execute(
            "INSERT INTO lbs_providers (id, resource_id, email, price) VALUES (?, ?, ?, ?)",
            (i, i, f"owner{i}@example.com", i * 10),
        )
    conn.commit()


@pytest.fixture()
def db():
    """In-memory catalog with the seed rows."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    seed_catalog(conn)
    yield conn
    conn.close()


@pytest.fixture()
def empty_db():
    """In-memory catalog with the schema and no rows."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    create_schema(conn)
    yield conn
    conn.close()


@pytest.fixture()
def bulk_db():
    """In-memory catalog with 25 single-provider resources."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    seed_bulk(conn, 25)
    yield conn
    conn.close()


@pytest.fixture()
def db_path(tmp_path):
    """On-disk catalog with the seed rows."""
    path = tmp_path / "catalog.sqlite"
    conn = sqlite3.connect(str(path))
    seed_catalog(conn)
    conn.close()
    return path


@pytest.fixture()
def app_config():
    """AppConfig with a known token and defaults for everything else."""
    cfg = AppConfig()
    cfg.api_tokens = [TEST_TOKEN]
    cfg.max_page_size = 500
    cfg.legacy_page_window = False
    cfg.validation_error_status = 500
    return cfg


@pytest.fixture()
def app(db_path, app_config):
    from api.app import create_app
    return create_app(db_path=db_path, config=app_config)


@pytest.fixture()
def client(app):
    """TestClient that sends the test token on every request."""
    from fastapi.testclient import TestClient
    with TestClient(app, headers={"Authorization": f"Bearer {TEST_TOKEN}"}) as c:
        yield c


@pytest.fixture()
def anon_client(app):
    """TestClient without credentials."""
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
