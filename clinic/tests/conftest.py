import pytest
from django.core.cache import cache

from clinic.tests.factories import make_admin, make_patient, make_professional


@pytest.fixture(autouse=True)
def _clear_cache():
    # Throttle counters and cached reports live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def professional(db):
    return make_professional()


@pytest.fixture
def admin(db):
    return make_admin()


@pytest.fixture
def patient(db):
    return make_patient(cpf='12345678901')
