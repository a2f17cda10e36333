"""Tests for product set registration, MD pick and price history."""
from unittest.mock import Mock

import pytest

from catalog_admin.exceptions import NotFoundError, StoreError, TriggerError, ValidationFailed
from catalog_admin.services.product_set_service import ProductSetService
from fakes import api_error

PLATFORM_ID = 'd7aa0533-ea87-46b5-84d2-aa35ccce9506'


@pytest.fixture
def trigger():
    return Mock()


@pytest.fixture
def service(db, trigger):
    return ProductSetService(db, trigger=trigger, default_platform_id=PLATFORM_ID)


@pytest.fixture
def product_sets(fake_client):
    fake_client.tables['product_sets'] = [
        {'product_set_id': 's1', 'product_id': 'p1', 'product_name': 'Toner 200ml', 'md_pick': False,
         'link_url': 'https://shop/1', 'platforms': {'name': 'Shop'}},
        {'product_set_id': 's2', 'product_id': 'p1', 'product_name': 'Toner 100ml', 'md_pick': True,
         'link_url': 'https://shop/2', 'platforms': [{'name': 'Market'}]},
        {'product_set_id': 's3', 'product_id': 'p3', 'product_name': 'Gel set', 'md_pick': False,
         'link_url': 'https://shop/3', 'platforms': None},
    ]
    fake_client.tables['product_price_histories'] = [
        {'id': 1, 'product_set_id': 's1', 'original_price': 15000, 'discount_price': 12000,
         'shipping_fee': 3000, 'recorded_at': '2025-02-01T00:00:00+00:00'},
        {'id': 2, 'product_set_id': 's1', 'original_price': 16000, 'discount_price': None,
         'shipping_fee': 0, 'recorded_at': '2025-02-05T00:00:00+00:00'},
    ]
    return fake_client


class TestRegistration:

    def test_one_product_set_per_link_then_one_trigger(self, service, trigger, fake_client):
        result = service.register_product_sets('p2', '"https://a", https://b,, https://a')

        rows = fake_client.rows('product_sets')
        assert [r['link_url'] for r in rows] == ['https://a', 'https://b', 'https://a']
        assert {r['platform_id'] for r in rows} == {PLATFORM_ID}
        assert len(result.inserted) == 3
        assert result.triggered
        trigger.trigger.assert_called_once_with('p2')

    def test_failed_insert_is_skipped(self, service, trigger, fake_client):
        fake_client.failures[('product_sets', 'insert')] = api_error('bad link')

        result = service.register_product_sets('p2', 'https://a, https://b')

        assert result.inserted == []
        assert [f['link_url'] for f in result.failed] == ['https://a', 'https://b']
        trigger.trigger.assert_called_once_with('p2')

    def test_unknown_product_aborts_before_inserting(self, service, trigger, fake_client):
        with pytest.raises(NotFoundError):
            service.register_product_sets('nope', 'https://a')

        assert ('product_sets', 'insert') not in fake_client.calls
        trigger.trigger.assert_not_called()

    def test_empty_link_input(self, service, trigger):
        with pytest.raises(ValidationFailed):
            service.register_product_sets('p2', ' , ""')
        trigger.trigger.assert_not_called()

    def test_trigger_failure_is_reported_not_raised(self, service, trigger):
        trigger.trigger.side_effect = TriggerError()

        result = service.register_product_sets('p2', 'https://a')

        assert not result.triggered
        assert result.to_dict()['inserted'] == 1


class TestMdPick:

    def test_toggle_flips_current_value(self, service, product_sets):
        assert service.set_md_pick('s1')['md_pick'] is True
        assert service.set_md_pick('s1')['md_pick'] is False

    def test_explicit_value(self, service, product_sets):
        assert service.set_md_pick('s2', False)['md_pick'] is False

    def test_unknown_product_set(self, service, product_sets):
        with pytest.raises(NotFoundError):
            service.set_md_pick('missing')

    def test_search_by_name_sorted_with_prices(self, service, product_sets):
        results = service.search_md_pick('toner')

        assert [(r['product_name'], r['product_set_name']) for r in results] == [
            ('Rose toner', 'Toner 100ml'), ('Rose toner', 'Toner 200ml')
        ]
        by_set = {r['product_set_id']: r for r in results}
        assert by_set['s1']['original_price'] == 16000
        assert by_set['s1']['discount_price_display'] == '-'
        assert by_set['s1']['platform_name'] == 'Shop'
        assert by_set['s2']['platform_name'] == 'Market'
        assert by_set['s2']['original_price_display'] == '0원'

    def test_search_by_product_id(self, service, product_sets, fake_client):
        product_id = '0f9a0ac6-6f3c-4a43-9a8e-54b1d4bd4e3b'
        fake_client.tables['products'].append({'product_id': product_id, 'name': 'Mask'})
        fake_client.tables['product_sets'].append(
            {'product_set_id': 's4', 'product_id': product_id, 'product_name': 'Mask x10', 'md_pick': False}
        )

        results = service.search_md_pick(product_id)

        assert [r['product_set_id'] for r in results] == ['s4']

    def test_blank_or_unmatched_search(self, service, product_sets):
        assert service.search_md_pick('  ') == []
        assert service.search_md_pick('nothing like it') == []


class TestEdits:

    def test_update_product_set(self, service, product_sets):
        row = service.update_product_set('s3', {'product_name': 'Gel duo', 'label': '', 'product_id': 'p9'})

        assert row['product_name'] == 'Gel duo'
        assert row['label'] is None
        assert row['product_id'] == 'p3'

    def test_update_requires_fields(self, service, product_sets):
        with pytest.raises(ValidationFailed):
            service.update_product_set('s3', {})

    def test_delete_product_set(self, service, product_sets):
        service.delete_product_set('s3')
        with pytest.raises(NotFoundError):
            service.delete_product_set('s3')

    def test_list_for_product(self, service, product_sets):
        sets = service.list_for_product('p1')
        assert {s['product_set_id'] for s in sets} == {'s1', 's2'}
        assert all('platforms' not in s for s in sets)


class TestPriceHistory:

    def test_history_newest_first(self, service, product_sets):
        assert [row['id'] for row in service.price_history('s1')] == [2, 1]

    def test_latest_prices(self, service, product_sets):
        latest = service.latest_prices(['s1', 's2'])
        assert latest['s1']['original_price'] == 16000
        assert 's2' not in latest
        assert service.latest_prices([]) == {}

    def test_record_price_appends(self, service, product_sets, fake_client):
        row = service.record_price('s2', 9000, discount_price=8000, shipping_fee=2500)

        assert row['product_set_id'] == 's2'
        assert len(fake_client.rows('product_price_histories')) == 3
        assert service.latest_prices(['s2'])['s2']['discount_price'] == 8000

    def test_record_price_stores_metadata_column(self, service, product_sets, fake_client):
        service.record_price('s2', 9000, metadata={'source': 'manual'})

        stored = fake_client.rows('product_price_histories')[-1]
        assert stored['price_metadata'] == {'source': 'manual'}
        assert 'metadata' not in stored

    def test_record_price_without_metadata(self, service, product_sets, fake_client):
        service.record_price('s2', 9000)

        assert 'price_metadata' not in fake_client.rows('product_price_histories')[-1]

    def test_negative_prices_rejected(self, service, product_sets):
        with pytest.raises(ValidationFailed):
            service.record_price('s2', -1)
        with pytest.raises(ValidationFailed):
            service.record_price('s2', 100, shipping_fee=-5)

    def test_set_with_first_price(self, service, product_sets, fake_client):
        created = service.create_product_set_with_price('p2', 'https://shop/9', 20000, shipping_fee=0)

        assert created['latest_price']['original_price'] == 20000
        assert created['platform_id'] == PLATFORM_ID

    def test_set_removed_when_price_fails(self, service, product_sets, fake_client):
        fake_client.failures[('product_price_histories', 'insert')] = api_error()

        with pytest.raises(StoreError):
            service.create_product_set_with_price('p2', 'https://shop/9', 20000)

        assert [s['product_set_id'] for s in fake_client.rows('product_sets')] == ['s1', 's2', 's3']
