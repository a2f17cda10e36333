"""Pytest configuration and fixtures for the test suite."""
import pytest

from catalog_admin.app import create_app
from catalog_admin.services.supabase_database import SupabaseDatabaseService
from fakes import FakeRedis, FakeSupabaseClient
from helpers import make_token


@pytest.fixture
def catalog_rows():
    """A small catalog: brands (one unnamed), a three-level category branch and products."""
    return {
        'brands': [
            {'brand_id': 'b1', 'name': 'Acme'},
            {'brand_id': 'b2', 'name': 'Zeta'},
            {'brand_id': 'b3', 'name': ''},
        ],
        'product_categories': [
            {'id': 1, 'name': 'Beauty', 'parent_id': None},
            {'id': 2, 'name': 'Skincare', 'parent_id': 1},
            {'id': 3, 'name': 'Toner', 'parent_id': 2},
            {'id': 4, 'name': 'Apparel', 'parent_id': None},
            {'id': 5, 'name': 'Outlet', 'parent_id': None},
        ],
        'products': [
            {'product_id': 'p1', 'name': 'Rose toner', 'description': 'Hydrating', 'brand_id': 'b1',
             'category_id': 3, 'image_url': 'products/p1.png', 'created_at': '2025-01-01T00:00:01+00:00'},
            {'product_id': 'p2', 'name': 'Cotton shirt', 'description': 'Plain white', 'brand_id': 'b2',
             'category_id': None, 'image_url': None, 'created_at': '2025-01-01T00:00:02+00:00'},
            {'product_id': 'p3', 'name': 'Aloe gel', 'description': 'Soothing', 'brand_id': 'b2',
             'category_id': 2, 'image_url': None, 'created_at': '2025-01-01T00:00:03+00:00'},
        ],
    }


@pytest.fixture
def fake_client(catalog_rows):
    return FakeSupabaseClient(catalog_rows)


@pytest.fixture
def db(fake_client):
    return SupabaseDatabaseService(client=fake_client)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def app(fake_client, fake_redis):
    """Create a test Flask application backed by the fakes."""
    return create_app('testing', supabase_client=fake_client, redis_client=fake_redis)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers():
    return {'Authorization': f'Bearer {make_token()}'}
