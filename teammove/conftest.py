# teammove/conftest.py
import os

# Settings are read at import time, so the test environment must be in place first
os.environ["ENV"] = "test"
os.environ["TEST_DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-for-teammove-suite-0001")
os.environ.setdefault("ADMIN_KEY", "test-admin-key")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from teammove.core.config import settings  # noqa: E402
from teammove.core.database import reset_database  # noqa: E402
from teammove.features.plans import cache  # noqa: E402
from teammove.features.plans.service import seed_plans  # noqa: E402


ADMIN_HEADERS = {"X-Admin-Key": settings.ADMIN_KEY}


@pytest.fixture(scope="function", autouse=True)
def reset_db():
    """
    Fresh in-memory schema and seeded plan catalog for every test.

    The plan cache is process-wide, so it is cleared as well.
    """
    reset_database()
    seed_plans()
    cache.clear_plan_cache()
    yield
    cache.set_clock_for_tests(None)


@pytest.fixture
def client():
    from teammove.main import app
    return TestClient(app)


@pytest.fixture
def admin_headers():
    return dict(ADMIN_HEADERS)


@pytest.fixture
def make_company():
    """Register a company on a tier and return its id."""
    from teammove.features.companies.service import register_company

    counter = {"n": 0}

    def _make(tier="DECOUVERTE", name=None):
        counter["n"] += 1
        result = register_company(
            name or f"Company {counter['n']}",
            f"contact{counter['n']}@example.com",
            tier,
        )
        return result.company.company_id

    return _make


@pytest.fixture
def company_on():
    """Company already moved to the given tier (quote tiers included)."""
    from teammove.features.companies.service import register_company
    from teammove.features.plans.service import change_plan

    counter = {"n": 0}

    def _make(tier):
        counter["n"] += 1
        result = register_company(f"Tiered {counter['n']}", f"tiered{counter['n']}@example.com")
        company_id = result.company.company_id
        if tier != "DECOUVERTE":
            change_plan(company_id, tier, changed_by="tests")
        return company_id

    return _make
