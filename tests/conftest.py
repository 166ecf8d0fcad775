import os
import random
import sys
from datetime import date, timedelta

import pytest

# Ensure repository root is on sys.path so `import lotobonheur.*` works during tests
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from lotobonheur.algorithms.models import DrawRecord, PredictionCategory, PredictionResult  # noqa: E402

ADMIN_KEY = "test-admin-key"
NEWEST_DRAW_DATE = date(2024, 6, 3)


def make_draws(count, draw_name="Réveil", seed=0, newest=NEWEST_DRAW_DATE, step_days=7, fixed=()):
    """Newest-first synthetic draws, one every `step_days`, each containing `fixed`."""
    rng = random.Random(seed)
    draws = []
    for i in range(count):
        numbers = set(fixed)
        while len(numbers) < 5:
            numbers.add(rng.randint(1, 90))
        draws.append(DrawRecord.from_values(draw_name, newest - timedelta(days=i * step_days), sorted(numbers)))
    return draws


def make_prediction(numbers, confidence=0.7, rank_score=0.6, category=PredictionCategory.STATISTICAL,
                    name="Test Algorithm", accuracy=None):
    return PredictionResult(
        numbers=tuple(numbers),
        confidence=confidence,
        algorithm_name=name,
        factors=("test",),
        rank_score=rank_score,
        category=category,
        accuracy=accuracy,
    )


@pytest.fixture
def sample_draws():
    """120 weekly Réveil draws"""
    return make_draws(120, seed=7)


@pytest.fixture
def long_history():
    """320 weekly Réveil draws, enough for every scorer's minimum"""
    return make_draws(320, seed=11)


@pytest.fixture(autouse=True)
def patch_db_path(tmp_path, monkeypatch):
    # Force the application to use a fresh on-disk test database
    import lotobonheur.database as db
    db_file = str(tmp_path / "lotobonheur_test.db")
    monkeypatch.setattr(db, "get_db_path", lambda: db_file, raising=True)
    db.initialize_database()
    yield db_file


@pytest.fixture
def seeded_db(long_history):
    import lotobonheur.database as db
    db.upsert_draw_results(long_history)
    return long_history


@pytest.fixture()
def fastapi_app(monkeypatch):
    monkeypatch.setenv("LOTO_ADMIN_API_KEY", ADMIN_KEY)
    import lotobonheur.api as api
    return api.app


@pytest.fixture()
def client(fastapi_app):
    from fastapi.testclient import TestClient
    with TestClient(fastapi_app) as test_client:
        yield test_client


@pytest.fixture()
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_KEY}"}
